"""Main entry point for the pexels CLI application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.

Global options belong to the root command. The output and paging flags may
also follow the subcommand, so `pexels --json photos search cats` and
`pexels photos search cats --json` are equivalent.
"""

import asyncio
import functools
import inspect
import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from pexcli.core.command_handler import CommandHandler
from pexcli.core.services.account_service import AccountService
from pexcli.core.services.media_service import ListingOptions, MediaService, PhotoSize, ResourceKind

# --- Domain Layer ---
from pexcli.domain.models.common import OutputFormat

# --- Infrastructure Layer ---
# Config
from pexcli.infrastructure.config.settings import (
    DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_SECS, ClientConfig, build_client_config, load_configuration
)
# UI
from pexcli.infrastructure.cli.display import ConsoleDisplay
# HTTP
from pexcli.infrastructure.api.pexels_client import PexelsClient
# FileSystem
from pexcli.infrastructure.filesystem.local_fs import LocalFileSystem
# Monitoring
from pexcli.infrastructure.monitoring.logger_setup import level_from_flags, setup_logging, use_color_for

logger = logging.getLogger(__name__)


class ColorChoice(str, Enum):
    ALWAYS = "always"
    AUTO = "auto"
    NEVER = "never"


# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    client_config: ClientConfig,
    output_format: OutputFormat,
    use_color: bool,
    fields: Optional[List[str]],
    listing: ListingOptions,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one invocation.

    This acts as the Composition Root. The HTTP client is only built when a
    command actually needs the API.
    """
    logger.debug("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {}
    dependencies['client_config'] = client_config
    dependencies['listing'] = listing
    dependencies['ui'] = ConsoleDisplay(output_format=output_format, use_color=use_color)
    dependencies['file_system'] = LocalFileSystem()
    dependencies['account_service'] = AccountService()

    def media_factory() -> MediaService:
        client = PexelsClient(client_config)
        return MediaService(client, dependencies['file_system'])

    dependencies['command_handler'] = CommandHandler(
        ui=dependencies['ui'],
        account_service=dependencies['account_service'],
        media_factory=media_factory,
        fields=fields,
        raw=output_format == OutputFormat.RAW,
    )
    logger.debug("Application dependencies initialized successfully.")
    return dependencies


# --- Typer Application Setup ---

app = typer.Typer(
    name="pexels",
    help="Pexels CLI: search and fetch photos, videos and collections.",
    add_completion=False,
    no_args_is_help=True,
)
auth_app = typer.Typer(help="Manage the stored API token.", no_args_is_help=True)
config_app = typer.Typer(help="Read and write the config file.", no_args_is_help=True)
quota_app = typer.Typer(help="Inspect rate-limit quota.", no_args_is_help=True)
photos_app = typer.Typer(help="Search and fetch photos.", no_args_is_help=True)
videos_app = typer.Typer(help="Search and fetch videos.", no_args_is_help=True)
collections_app = typer.Typer(help="Browse collections.", no_args_is_help=True)
util_app = typer.Typer(help="Connectivity diagnostics.", no_args_is_help=True)

app.add_typer(auth_app, name="auth")
app.add_typer(config_app, name="config")
app.add_typer(quota_app, name="quota")
app.add_typer(photos_app, name="photos")
app.add_typer(videos_app, name="videos")
app.add_typer(collections_app, name="collections")
app.add_typer(util_app, name="util")


def run_async(coro: Coroutine) -> Any:
    """Runs a coroutine on a fresh event loop."""
    return asyncio.run(coro)


def _finish(code: int) -> None:
    if code != 0:
        raise typer.Exit(code=code)


def output_format_for(json_output: bool, raw: bool) -> OutputFormat:
    if raw:
        return OutputFormat.RAW
    if json_output:
        return OutputFormat.JSON
    return OutputFormat.YAML


def _handler(ctx: typer.Context) -> CommandHandler:
    state = ctx.obj
    if 'command_handler' not in state:
        dependencies = create_dependencies(
            state['client_config'],
            output_format_for(state['json_output'], state['raw']),
            state['use_color'],
            state['fields'],
            state['listing'],
        )
        state.update(dependencies)
    return state['command_handler']


def _listing(ctx: typer.Context) -> ListingOptions:
    return ctx.obj['listing']


def _require_query(query: Optional[str], query_option: Optional[str]) -> str:
    value = query or query_option
    if not value:
        raise typer.BadParameter("a search query is required (QUERY or --query)")
    return value


# --- Reusable option types ---
QueryArgument = Annotated[Optional[str], typer.Argument(help="Search terms.", show_default=False)]
QueryOption = Annotated[Optional[str], typer.Option("--query", "-q", help="Search terms (alternative to QUERY).")]

JsonFlag = Annotated[bool, typer.Option("--json", help="JSON output.")]
RawFlag = Annotated[bool, typer.Option("--raw", help="Raw output (upstream body, compact).")]
FieldsOption = Annotated[Optional[List[str]], typer.Option("--fields", help="Field selector (dot path, a[*].b or @ids/@urls/@files/@thumbnails/@all). Repeatable.")]
PageOption = Annotated[Optional[int], typer.Option("--page", min=1, help="Page number.")]
PerPageOption = Annotated[Optional[int], typer.Option("--per-page", min=1, help="Items per page.")]
AllFlag = Annotated[bool, typer.Option("--all", help="Follow next_page links and aggregate.")]
LimitOption = Annotated[Optional[int], typer.Option("--limit", min=0, help="Max items when aggregating.")]
MaxPagesOption = Annotated[Optional[int], typer.Option("--max-pages", min=0, help="Max pages when aggregating.")]


def _keyword(name: str, annotation: Any, default: Any) -> inspect.Parameter:
    return inspect.Parameter(name, inspect.Parameter.KEYWORD_ONLY, default=default, annotation=annotation)


OUTPUT_PARAMETERS = (
    _keyword("json_output", JsonFlag, False),
    _keyword("raw", RawFlag, False),
    _keyword("fields", FieldsOption, None),
)
PAGING_PARAMETERS = (
    _keyword("page", PageOption, None),
    _keyword("per_page", PerPageOption, None),
    _keyword("fetch_all", AllFlag, False),
    _keyword("limit", LimitOption, None),
    _keyword("max_pages", MaxPagesOption, None),
)


def merge_trailing_options(state: Dict[str, Any], values: Dict[str, Any]) -> None:
    """Folds flags given after the subcommand into the root options.

    Switches are OR-ed, `--fields` selectors accumulate and paging values
    given later replace the earlier ones.
    """
    state['json_output'] = state['json_output'] or values.get('json_output', False)
    state['raw'] = state['raw'] or values.get('raw', False)
    if values.get('fields'):
        state['fields'] = [*state['fields'], *values['fields']]
    overrides = {
        name: values[name]
        for name in ('page', 'per_page', 'limit', 'max_pages')
        if values.get(name) is not None
    }
    if values.get('fetch_all'):
        overrides['fetch_all'] = True
    if overrides:
        state['listing'] = replace(state['listing'], **overrides)


def accepts_global_options(paging: bool = True) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Lets a command take the output flags (and paging flags) after its name."""
    extra = OUTPUT_PARAMETERS + (PAGING_PARAMETERS if paging else ())

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            values = {param.name: kwargs.pop(param.name, param.default) for param in extra}
            ctx = kwargs['ctx'] if 'ctx' in kwargs else args[0]
            merge_trailing_options(ctx.obj, values)
            return func(*args, **kwargs)

        wrapper.__signature__ = signature.replace(parameters=[*signature.parameters.values(), *extra])
        wrapper.__annotations__ = {**func.__annotations__, **{param.name: param.annotation for param in extra}}
        return wrapper

    return decorator


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_output: JsonFlag = False,
    raw: RawFlag = False,
    fields: FieldsOption = None,
    page: PageOption = None,
    per_page: PerPageOption = None,
    fetch_all: AllFlag = False,
    limit: LimitOption = None,
    max_pages: MaxPagesOption = None,
    timeout: Annotated[float, typer.Option("--timeout", min=0.0, help="Request timeout in seconds.")] = DEFAULT_TIMEOUT_SECS,
    max_retries: Annotated[int, typer.Option("--max-retries", min=0, help="Retries for 429/5xx and transport errors.")] = DEFAULT_MAX_RETRIES,
    retry_after: Annotated[Optional[float], typer.Option("--retry-after", min=0.0, help="Fixed retry delay in seconds (overrides Retry-After).")] = None,
    host: Annotated[Optional[str], typer.Option("--host", help="API host override.")] = None,
    locale: Annotated[Optional[str], typer.Option("--locale", help="Accept-Language value, e.g. en-US.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Info logging on stderr.")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Debug logging on stderr.")] = False,
    color: Annotated[ColorChoice, typer.Option("--color", case_sensitive=False, help="Color control.")] = ColorChoice.AUTO,
):
    """Pexels API client. Output is YAML unless --json or --raw is given."""
    use_color = use_color_for(color.value)
    setup_logging(log_level=level_from_flags(verbose, debug), use_color=use_color)
    load_configuration()

    client_config = build_client_config(
        host=host,
        timeout_secs=timeout,
        locale=locale,
        max_retries=max_retries,
        retry_after=retry_after,
    )
    logger.debug(f"Token source: {client_config.token_source}; host: {client_config.host}")
    listing = ListingOptions(
        page=page,
        per_page=per_page,
        fetch_all=fetch_all,
        limit=limit,
        max_pages=max_pages,
    )
    # Dependencies are built by the command, after trailing flags are merged
    ctx.obj = {
        'client_config': client_config,
        'use_color': use_color,
        'json_output': json_output,
        'raw': raw,
        'fields': list(fields or []),
        'listing': listing,
    }


# --- auth ---

@auth_app.command("login")
@accepts_global_options(paging=False)
def auth_login(
    ctx: typer.Context,
    token: Annotated[Optional[str], typer.Argument(help="API key; defaults to PEXELS_TOKEN/PEXELS_API_KEY.", show_default=False)] = None,
):
    """Store an API token in the config file."""
    _finish(_handler(ctx).handle_account(lambda account: account.login(token)))


@auth_app.command("status")
@accepts_global_options(paging=False)
def auth_status(ctx: typer.Context):
    """Show whether a token is available and where it comes from."""
    _finish(_handler(ctx).handle_account(lambda account: account.status()))


@auth_app.command("token-source")
@accepts_global_options(paging=False)
def auth_token_source(ctx: typer.Context):
    """Show where the active token comes from."""
    _finish(_handler(ctx).handle_account(lambda account: account.token_source()))


@auth_app.command("logout")
@accepts_global_options(paging=False)
def auth_logout(ctx: typer.Context):
    """Remove the stored token."""
    _finish(_handler(ctx).handle_account(lambda account: account.logout()))


# --- config ---

@config_app.command("set")
@accepts_global_options(paging=False)
def config_set(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Config key (token or api_key).")],
    value: Annotated[str, typer.Argument(help="Value to store.")],
):
    """Set a config value."""
    _finish(_handler(ctx).handle_account(lambda account: account.config_set(key, value)))


@config_app.command("get")
@accepts_global_options(paging=False)
def config_get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Config key.")],
):
    """Print a config value."""
    _finish(_handler(ctx).handle_account(lambda account: account.config_get(key), raw_value=True))


@config_app.command("path")
@accepts_global_options(paging=False)
def config_path(ctx: typer.Context):
    """Print the config file path."""
    _finish(_handler(ctx).handle_account(lambda account: account.config_path(), raw_value=True))


# --- quota ---

@quota_app.command("view")
@accepts_global_options(paging=False)
def quota_view(ctx: typer.Context):
    """Show rate-limit headers and whether the API is reachable."""
    _finish(run_async(_handler(ctx).handle_listing(lambda media: media.quota(), ResourceKind.NONE)))


# --- photos ---

@photos_app.command("search")
@accepts_global_options()
def photos_search(ctx: typer.Context, query: QueryArgument = None, query_option: QueryOption = None):
    """Search photos."""
    terms = _require_query(query, query_option)
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.search_photos(terms, options), ResourceKind.PHOTOS)))


@photos_app.command("curated")
@accepts_global_options()
def photos_curated(ctx: typer.Context):
    """List curated photos."""
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.curated_photos(options), ResourceKind.PHOTOS)))


@photos_app.command("get")
@accepts_global_options(paging=False)
def photos_get(ctx: typer.Context, photo_id: Annotated[str, typer.Argument(metavar="ID", help="Photo id.")]):
    """Fetch one photo."""
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.get_photo(photo_id), ResourceKind.PHOTOS)))


@photos_app.command("url")
@accepts_global_options(paging=False)
def photos_url(
    ctx: typer.Context,
    photo_id: Annotated[str, typer.Argument(metavar="ID", help="Photo id.")],
    size: Annotated[PhotoSize, typer.Option("--size", help="Size variant from src.*.")] = PhotoSize.ORIGINAL,
):
    """Print the URL of a photo size variant."""
    _finish(run_async(_handler(ctx).handle_wrapped(lambda media: media.photo_url(photo_id, size))))


@photos_app.command("download")
@accepts_global_options(paging=False)
def photos_download(
    ctx: typer.Context,
    photo_id: Annotated[str, typer.Argument(metavar="ID", help="Photo id.")],
    path: Annotated[str, typer.Argument(help="Destination file.")],
):
    """Download the original photo to PATH."""
    _finish(run_async(_handler(ctx).handle_wrapped(lambda media: media.download_photo(photo_id, path))))


# --- videos ---

@videos_app.command("search")
@accepts_global_options()
def videos_search(ctx: typer.Context, query: QueryArgument = None, query_option: QueryOption = None):
    """Search videos."""
    terms = _require_query(query, query_option)
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.search_videos(terms, options), ResourceKind.VIDEOS)))


@videos_app.command("popular")
@accepts_global_options()
def videos_popular(ctx: typer.Context):
    """List popular videos."""
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.popular_videos(options), ResourceKind.VIDEOS)))


@videos_app.command("get")
@accepts_global_options(paging=False)
def videos_get(ctx: typer.Context, video_id: Annotated[str, typer.Argument(metavar="ID", help="Video id.")]):
    """Fetch one video."""
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.get_video(video_id), ResourceKind.VIDEOS)))


# --- collections ---

@collections_app.command("list")
@accepts_global_options()
def collections_list(ctx: typer.Context):
    """List your collections."""
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.list_collections(options), ResourceKind.COLLECTIONS)))


@collections_app.command("featured")
@accepts_global_options()
def collections_featured(ctx: typer.Context):
    """List featured collections."""
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.featured_collections(options), ResourceKind.COLLECTIONS)))


@collections_app.command("get")
@accepts_global_options(paging=False)
def collections_get(ctx: typer.Context, collection_id: Annotated[str, typer.Argument(metavar="ID", help="Collection id.")]):
    """Fetch one collection."""
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.get_collection(collection_id), ResourceKind.COLLECTIONS)))


@collections_app.command("items")
@accepts_global_options()
def collections_items(ctx: typer.Context, collection_id: Annotated[str, typer.Argument(metavar="ID", help="Collection id.")]):
    """List the media of a collection."""
    options = _listing(ctx)
    _finish(run_async(_handler(ctx).handle_listing(
        lambda media: media.collection_items(collection_id, options), ResourceKind.COLLECTIONS)))


# --- util ---

@util_app.command("inspect")
@accepts_global_options(paging=False)
def util_inspect(ctx: typer.Context):
    """Show effective connection settings."""

    async def inspect(media: MediaService) -> Dict[str, Any]:
        return media.inspect()

    _finish(run_async(_handler(ctx).handle_wrapped(inspect)))


@util_app.command("ping")
@accepts_global_options(paging=False)
def util_ping(ctx: typer.Context):
    """Check that the API answers."""
    _finish(run_async(_handler(ctx).handle_wrapped(lambda media: media.ping())))


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
