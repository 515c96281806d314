"""Centralized logging configuration for the pexels CLI.

Logs always go to stderr; stdout is reserved for command output so it can
be piped into other tools.
"""

import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
RICH_LOG_FORMAT = '%(message)s'


def level_from_flags(verbose: bool = False, debug: bool = False) -> int:
    """--debug wins over --verbose; default is WARNING."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return DEFAULT_LOG_LEVEL


def use_color_for(choice: Optional[str]) -> bool:
    """Resolves --color always|auto|never; auto honors NO_COLOR and a tty."""
    if choice == "always":
        return True
    if choice == "never":
        return False
    return "NO_COLOR" not in os.environ and sys.stderr.isatty()


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    use_color: bool = False,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.INFO).
        use_color: Render with rich on stderr instead of a plain stream handler.
        log_file: Optional path to a file for logging output.
        log_format: The format string for plain log messages.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if use_color:
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        console_handler.setFormatter(logging.Formatter(RICH_LOG_FORMAT))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(log_format))
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}")

    # httpx logs every request at INFO; keep it for --debug only
    logging.getLogger("httpx").setLevel(logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING)
    logging.debug(f"Logging configured. Level={logging.getLevelName(log_level)}")
