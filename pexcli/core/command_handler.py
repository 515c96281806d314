"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the
work to the application services (MediaService, AccountService). It is the
single place where failures are turned into an error document and a
non-zero exit status.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from pexcli.core.services.account_service import AccountService
from pexcli.core.services.media_service import (
    MediaService, ResourceKind, build_envelope, resolve_selectors
)
from pexcli.domain.errors import PexelsError
from pexcli.domain.interfaces.user_interface import UserInterface
from pexcli.domain.models.common import JsonValue, OutputFormat

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

MediaOperation = Callable[[MediaService], Awaitable[JsonValue]]


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        ui: UserInterface,
        account_service: AccountService,
        media_factory: Callable[[], MediaService],
        fields: Optional[Sequence[str]] = None,
        raw: bool = False,
    ):
        """Initializes the CommandHandler with required services.

        Args:
            ui: Where results and errors are rendered.
            account_service: Credential and config-file operations.
            media_factory: Builds a MediaService (and its HTTP client) on demand,
                so account commands never open a connection.
            fields: Selectors from `--fields`; defaults apply when empty.
            raw: Emit the upstream body without shaping or projection.
        """
        self.ui = ui
        self.account_service = account_service
        self.media_factory = media_factory
        self.fields = list(fields or [])
        self.raw = raw

    async def handle_listing(self, operation: MediaOperation, kind: ResourceKind) -> int:
        """Runs an API read and prints it as a projected envelope."""
        if self.raw and self.fields:
            self.ui.display_warning("--fields is ignored with --raw")

        async def shaped(media: MediaService) -> JsonValue:
            response = await operation(media)
            if self.raw:
                return response
            return build_envelope(response, resolve_selectors(self.fields, kind))

        return await self._with_media(shaped)

    async def handle_wrapped(self, operation: MediaOperation) -> int:
        """Runs an operation that already returns its own envelope."""
        return await self._with_media(operation)

    def handle_account(self, operation: Callable[[AccountService], Any], raw_value: bool = False) -> int:
        """Runs a credential/config operation.

        Args:
            operation: Receives the AccountService and returns the payload.
            raw_value: Print a bare string value (paths, config values) as-is.
        """
        try:
            payload = operation(self.account_service)
        except Exception as e:
            return self._fail(e)
        self.ui.display_data(payload, output_format=OutputFormat.RAW if raw_value else None)
        return EXIT_OK

    async def _with_media(self, operation: MediaOperation) -> int:
        try:
            media = self.media_factory()
            try:
                payload = await operation(media)
            finally:
                await media.aclose()
        except Exception as e:
            return self._fail(e)
        self.ui.display_data(payload)
        return EXIT_OK

    def _fail(self, error: Exception) -> int:
        if isinstance(error, PexelsError):
            logger.info(f"Command failed: {error}")
            self.ui.display_error(error.to_dict())
        elif isinstance(error, OSError):
            logger.info(f"File operation failed: {error}")
            self.ui.display_error(str(error))
        else:
            logger.error(f"Unexpected error: {error}", exc_info=True)
            self.ui.display_error(str(error))
        return EXIT_FAILURE
