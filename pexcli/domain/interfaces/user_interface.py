"""Interface for presenting results to the user.

Defines the contract for rendering data envelopes, errors, warnings and
informational messages, allowing different UI implementations (e.g.,
console, captured output in tests).
"""

import abc
from typing import Any, Mapping, Union

from pexcli.domain.models.common import JsonValue


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_data(self, payload: JsonValue, **kwargs: Any) -> None:
        """Renders a successful result on standard output.

        Args:
            payload: An envelope, or a bare string for raw values such as paths.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error: Union[str, Mapping[str, Any]], **kwargs: Any) -> None:
        """Renders an error document on standard error.

        This is the only place where errors are serialized.

        Args:
            error: A message, or the structured mapping of an HTTP error.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user.

        Args:
            warning_message: The warning message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass
