import json
import logging
from typing import Any, Mapping, Union

import yaml
from rich.box import HEAVY, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from pexcli.domain.interfaces.user_interface import UserInterface
from pexcli.domain.models.common import JsonValue, OutputFormat

logger = logging.getLogger(__name__)


def render(payload: JsonValue, output_format: OutputFormat) -> str:
    """Serializes a payload in the requested format.

    Bare strings are emitted as-is in raw mode. YAML keeps the key order of
    the payload.
    """
    if output_format == OutputFormat.RAW:
        if isinstance(payload, str):
            return payload
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    if output_format == OutputFormat.JSON:
        return json.dumps(payload, ensure_ascii=False, indent=2)
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True, default_flow_style=False).rstrip("\n")


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output.

    Data goes to stdout and everything else to stderr, so piping the output
    into another tool never mixes in diagnostics.
    """

    def __init__(self, output_format: OutputFormat = OutputFormat.YAML, use_color: bool = False):
        """Initializes the rich Consoles.

        Args:
            output_format: Format used for data and error documents.
            use_color: Whether to syntax-highlight documents and style messages.
        """
        self.output_format = output_format
        self.use_color = use_color
        self._console = Console(no_color=not use_color, emoji=False)
        self._err_console = Console(stderr=True, no_color=not use_color, emoji=False)

    @property
    def console(self) -> Console:
        """Get the Rich console instance for stdout."""
        return self._console

    @property
    def err_console(self) -> Console:
        """Get the Rich console instance for stderr."""
        return self._err_console

    def _emit(self, console: Console, payload: JsonValue, output_format: OutputFormat) -> None:
        text = render(payload, output_format)
        if self.use_color and output_format != OutputFormat.RAW:
            lexer = "json" if output_format == OutputFormat.JSON else "yaml"
            console.print(Syntax(text, lexer, background_color="default"), soft_wrap=True)
            return
        console.print(text, markup=False, highlight=False, soft_wrap=True)

    def display_data(self, payload: JsonValue, **kwargs: Any) -> None:
        """Writes a result document to stdout.

        Args:
            payload: The envelope (or bare string) to display.
            **kwargs: Additional arguments including:
                - output_format: Override for this call (e.g. raw paths).
        """
        output_format = kwargs.get("output_format") or self.output_format
        logger.debug(f"display_data called: format={output_format.value}")
        self._emit(self.console, payload, output_format)

    def display_error(self, error: Union[str, Mapping[str, Any]], **kwargs: Any) -> None:
        """Writes an error document to stderr.

        A plain message becomes `{"error": message}`; a mapping is the
        whole document. Raw mode still reports errors as YAML.
        """
        document = {"error": error} if isinstance(error, str) else dict(error)
        output_format = OutputFormat.JSON if self.output_format == OutputFormat.JSON else OutputFormat.YAML
        self._emit(self.err_console, document, output_format)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message on stderr."""
        if not self.use_color:
            self.err_console.print(info_message, markup=False, highlight=False)
            return
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.err_console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message on stderr."""
        logger.debug(f"Display warning: {warning_message}")
        if not self.use_color:
            self.err_console.print(f"warning: {warning_message}", markup=False, highlight=False)
            return
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.err_console.print(panel)
