"""Domain error types.

Errors carry their structured fields end-to-end and are only serialized
by the display layer (see `ConsoleDisplay.display_error`).
"""

from typing import Any, Dict, Optional


class PexelsError(Exception):
    """Base class for all errors surfaced to the CLI user."""

    def to_dict(self) -> Dict[str, Any]:
        """Returns the structured form rendered on stderr."""
        return {"error": str(self)}


class ConfigurationError(PexelsError):
    """Raised for missing tokens, unsupported keys or unreadable config."""


class ResourceFieldError(PexelsError):
    """Raised when a response lacks a field a command depends on (e.g. src.original)."""


class TransportError(PexelsError):
    """Connection-level failure (DNS, connect, timeout) after the retry budget.

    The message must already be redacted; it is shown to the user as-is.
    """

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)


class HttpError(PexelsError):
    """Terminal HTTP failure: a non-retryable status or an exhausted retry budget."""

    def __init__(
        self,
        status_code: int,
        reason: str,
        request_id: Optional[str] = None,
        error_type: Optional[Any] = None,
        hint: Optional[Any] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.reason = reason
        self.request_id = request_id
        self.error_type = error_type
        self.hint = hint
        self.body = body
        super().__init__(f"HTTP {status_code} {reason}")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.status_code, "reason": self.reason}
        if self.error_type is not None:
            out["type"] = self.error_type
        if self.hint is not None:
            out["hint"] = self.hint
        if self.request_id:
            out["request_id"] = self.request_id
        if self.body:
            out["body"] = self.body
        return out
