import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from pexcli.core.command_handler import CommandHandler
from pexcli.core.services.account_service import AccountService
from pexcli.core.services.media_service import MediaService, ResourceKind
from pexcli.domain.errors import ConfigurationError, HttpError, TransportError
from pexcli.domain.interfaces.user_interface import UserInterface
from pexcli.domain.models.common import OutputFormat


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def mock_account_service():
    return MagicMock(spec=AccountService)


@pytest.fixture
def mock_media_service():
    media = MagicMock(spec=MediaService)
    media.aclose = AsyncMock()
    return media


@pytest.fixture
def command_handler(mock_ui, mock_account_service, mock_media_service):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(
        ui=mock_ui,
        account_service=mock_account_service,
        media_factory=lambda: mock_media_service,
    )


def test_handle_listing_projects_default_fields(command_handler, mock_ui, mock_media_service, photo):
    mock_media_service.curated_photos = AsyncMock(return_value={"photos": [photo], "page": 1})

    code = asyncio.run(command_handler.handle_listing(
        lambda media: media.curated_photos(None), ResourceKind.PHOTOS))

    assert code == 0
    mock_ui.display_data.assert_called_once_with({
        "data": [{
            "id": photo["id"], "photographer": photo["photographer"], "alt": photo["alt"],
            "width": 3024, "height": 3024, "avg_color": photo["avg_color"],
        }],
        "meta": {"next_page": None, "prev_page": None},
    })
    mock_media_service.aclose.assert_awaited_once()


def test_handle_listing_uses_caller_fields(mock_ui, mock_account_service, mock_media_service, photo):
    handler = CommandHandler(mock_ui, mock_account_service, lambda: mock_media_service, fields=["@ids"])
    mock_media_service.get_photo = AsyncMock(return_value=photo)

    asyncio.run(handler.handle_listing(lambda media: media.get_photo("1"), ResourceKind.PHOTOS))

    payload = mock_ui.display_data.call_args.args[0]
    assert payload["data"] == {"id": photo["id"], "photographer_id": photo["photographer_id"]}


def test_raw_mode_skips_shaping(mock_ui, mock_account_service, mock_media_service):
    handler = CommandHandler(mock_ui, mock_account_service, lambda: mock_media_service, raw=True)
    body = {"photos": [{"id": 1, "extra": True}], "next_page": "x"}
    mock_media_service.curated_photos = AsyncMock(return_value=body)

    asyncio.run(handler.handle_listing(lambda media: media.curated_photos(None), ResourceKind.PHOTOS))

    mock_ui.display_data.assert_called_once_with(body)


def test_http_error_is_displayed_structured(command_handler, mock_ui, mock_media_service):
    error = HttpError(404, "Not Found", request_id="r-1")
    mock_media_service.get_photo = AsyncMock(side_effect=error)

    code = asyncio.run(command_handler.handle_listing(lambda media: media.get_photo("9"), ResourceKind.PHOTOS))

    assert code == 1
    mock_ui.display_error.assert_called_once_with({"code": 404, "reason": "Not Found", "request_id": "r-1"})
    mock_ui.display_data.assert_not_called()
    mock_media_service.aclose.assert_awaited_once()


def test_transport_error_is_displayed_as_message(command_handler, mock_ui, mock_media_service):
    mock_media_service.ping = AsyncMock(side_effect=TransportError("ConnectError: refused", attempts=4))

    code = asyncio.run(command_handler.handle_wrapped(lambda media: media.ping()))

    assert code == 1
    mock_ui.display_error.assert_called_once_with({"error": "ConnectError: refused"})


def test_os_error_during_download(command_handler, mock_ui, mock_media_service):
    mock_media_service.download_photo = AsyncMock(side_effect=PermissionError("Permission denied: /root/x"))

    code = asyncio.run(command_handler.handle_wrapped(lambda media: media.download_photo("1", "/root/x")))

    assert code == 1
    mock_ui.display_error.assert_called_once_with("Permission denied: /root/x")


def test_unexpected_error_is_reported(command_handler, mock_ui, mock_media_service):
    mock_media_service.quota = AsyncMock(side_effect=RuntimeError("boom"))

    code = asyncio.run(command_handler.handle_listing(lambda media: media.quota(), ResourceKind.NONE))

    assert code == 1
    mock_ui.display_error.assert_called_once_with("boom")


def test_handle_account_success(command_handler, mock_ui, mock_account_service):
    mock_account_service.status.return_value = {"data": {"present": False}}

    assert command_handler.handle_account(lambda account: account.status()) == 0
    mock_ui.display_data.assert_called_once_with({"data": {"present": False}}, output_format=None)


def test_handle_account_raw_value(command_handler, mock_ui, mock_account_service):
    mock_account_service.config_path.return_value = "/tmp/pexels/config.yaml"

    command_handler.handle_account(lambda account: account.config_path(), raw_value=True)

    mock_ui.display_data.assert_called_once_with("/tmp/pexels/config.yaml", output_format=OutputFormat.RAW)


def test_handle_account_error(command_handler, mock_ui, mock_account_service):
    mock_account_service.config_set.side_effect = ConfigurationError("unsupported key: color")

    assert command_handler.handle_account(lambda account: account.config_set("color", "x")) == 1
    mock_ui.display_error.assert_called_once_with({"error": "unsupported key: color"})


def test_media_factory_not_called_for_account_commands(mock_ui, mock_account_service):
    factory = MagicMock()
    handler = CommandHandler(mock_ui, mock_account_service, factory)
    handler.handle_account(lambda account: account.token_source())
    factory.assert_not_called()


def test_fields_with_raw_mode_warns(mock_ui, mock_account_service, mock_media_service):
    handler = CommandHandler(mock_ui, mock_account_service, lambda: mock_media_service, fields=["id"], raw=True)
    mock_media_service.curated_photos = AsyncMock(return_value={"photos": []})

    asyncio.run(handler.handle_listing(lambda media: media.curated_photos(None), ResourceKind.PHOTOS))

    mock_ui.display_warning.assert_called_once_with("--fields is ignored with --raw")
    mock_ui.display_data.assert_called_once_with({"photos": []})
