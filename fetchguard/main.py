"""Main entry point for the fetchguard application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Annotated, Any, Coroutine, Dict, Optional, TypeVar

import typer

# --- Core Layer ---
from fetchguard.core.command_handler import CommandHandler
from fetchguard.core.services.fetch_orchestrator import FetchOrchestrator

# --- Domain Layer ---
from fetchguard.domain.errors import ConfigurationError, FetchGuardError, StoreUnavailableError
from fetchguard.domain.interfaces.cache_layer import CacheLayer
from fetchguard.domain.interfaces.user_interface import UserInterface
from fetchguard.domain.models.config import FetchConfig
from fetchguard.domain.models.results import FetchState

# --- Infrastructure Layer ---
# Cache
from fetchguard.infrastructure.cache.cache_layer import NullCacheLayer, StoreCacheLayer
# UI
from fetchguard.infrastructure.cli.display import ConsoleDisplay
# Config
from fetchguard.infrastructure.config.settings import (
    get_logging_settings,
    get_store_password,
    load_fetch_config,
)
# HTTP
from fetchguard.infrastructure.http.fetcher import HttpFetcher
from fetchguard.infrastructure.http.httpx_transport import HttpxTransport
# Monitoring
from fetchguard.infrastructure.monitoring.fetch_observer import (
    CompositeFetchObserver,
    ConsoleFetchObserver,
    LoggingFetchObserver,
)
from fetchguard.infrastructure.monitoring.logger_setup import (
    DEFAULT_LOG_FORMAT,
    resolve_log_level,
    setup_logging,
)
# Resilience
from fetchguard.infrastructure.resilience.backoff import exponential_backoff
# Store
from fetchguard.infrastructure.store.factory import create_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_URL = "https://example.com"


def configure_logging(verbose: bool = False) -> None:
    """Applies the configured logging settings; --verbose forces DEBUG."""
    settings = get_logging_settings()
    level = logging.DEBUG if verbose else resolve_log_level(settings['level'])
    setup_logging(
        log_level=level,
        log_format=settings['format'] or DEFAULT_LOG_FORMAT,
        log_file=settings['file'],
    )


# --- Dependency Injection (Manual) ---

async def connect_cache_layer(config: FetchConfig, ui: UserInterface, required: bool = False) -> CacheLayer:
    """Builds the cache layer, degrading to NullCacheLayer if the store is unreachable.

    Args:
        config: Fetch configuration (cache flag and store address).
        ui: Where connection warnings are shown.
        required: Connect even when caching is disabled and raise
            StoreUnavailableError instead of degrading.
    """
    if not (config.cache_enabled or required):
        return NullCacheLayer()

    store = None
    try:
        store = create_store(config.store_address, password=get_store_password())
        await store.ping()
    except StoreUnavailableError as e:
        if store is not None:
            await store.close()
        if required:
            raise
        ui.display_warning(f"Failed to connect to store at {config.store_address}: {e}")
        ui.display_warning("Continuing without cache...")
        return NullCacheLayer()

    logger.info(f"Connected to store at {store.address}")
    if config.cache_enabled:
        ui.display_info(f"Connected to store at {config.store_address}")
    return StoreCacheLayer(store)


def create_dependencies(config: FetchConfig, cache_layer: CacheLayer, ui: UserInterface) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command.

    This acts as the Composition Root.
    """
    logger.debug("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {'config': config, 'cache_layer': cache_layer, 'ui': ui}

    dependencies['transport'] = HttpxTransport()
    dependencies['observer'] = CompositeFetchObserver([LoggingFetchObserver(), ConsoleFetchObserver(ui)])
    dependencies['fetcher'] = HttpFetcher(
        transport=dependencies['transport'],
        retries=config.retries,
        backoff=exponential_backoff(config.backoff_base, config.backoff_factor),
        observer=dependencies['observer'],
        request_timeout=config.request_timeout,
    )
    dependencies['orchestrator'] = FetchOrchestrator(
        config=config,
        cache_layer=cache_layer,
        fetcher=dependencies['fetcher'],
    )
    dependencies['command_handler'] = CommandHandler(
        orchestrator=dependencies['orchestrator'],
        cache_layer=cache_layer,
        ui=ui,
    )
    logger.debug("All dependencies initialized successfully.")
    return dependencies


async def close_dependencies(dependencies: Dict[str, Any]) -> None:
    """Releases the network client and the store connection."""
    transport = dependencies.get('transport')
    if transport is not None:
        await transport.close()
    cache_layer = dependencies.get('cache_layer')
    if cache_layer is not None:
        await cache_layer.close()


# --- Typer App Definition ---
app = typer.Typer(
    name="fetchguard",
    help="fetchguard: resilient HTTP fetches with retries, a shared response cache and rate limiting.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, T], ui: UserInterface) -> T:
    """Runs an async command from a sync Typer command.

    Domain errors are shown to the user and turned into exit status 1.
    """
    try:
        return asyncio.run(coro)
    except FetchGuardError as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        ui.display_error(str(e))
        raise typer.Exit(code=1)


def _load_config(ui: UserInterface, **overrides: Any) -> FetchConfig:
    try:
        return load_fetch_config(**overrides)
    except ConfigurationError as e:
        ui.display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)


# --- CLI Commands ---

StoreOption = Annotated[
    Optional[str],
    typer.Option("--store", "-s", help="Store address: host:port, redis://..., or disk://<dir>."),
]

VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]


async def _fetch(url: str, config: FetchConfig, ui: UserInterface):
    cache_layer = await connect_cache_layer(config, ui)
    dependencies = create_dependencies(config, cache_layer, ui)
    try:
        handler: CommandHandler = dependencies['command_handler']
        return await handler.handle_fetch(url)
    finally:
        await close_dependencies(dependencies)


@app.command()
def fetch(
    url: Annotated[str, typer.Argument(help="URL to fetch.")] = DEFAULT_URL,
    retries: Annotated[Optional[int], typer.Option("--retries", "-r", help="Maximum retries after the first attempt.")] = None,
    cache: Annotated[Optional[bool], typer.Option("--cache/--no-cache", help="Use the shared response cache.")] = None,
    store: StoreOption = None,
    rate_limit: Annotated[Optional[int], typer.Option("--rate-limit", help="Allowed requests per window (0 disables).")] = None,
    ttl: Annotated[Optional[float], typer.Option("--ttl", help="Cache entry lifetime in seconds.")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Per-attempt request timeout in seconds.")] = None,
    deadline: Annotated[Optional[float], typer.Option("--deadline", help="Overall time budget in seconds.")] = None,
    verbose: VerboseOption = False,
):
    """Fetch a URL through the rate limiter and the cache."""
    configure_logging(verbose)
    ui = ConsoleDisplay()
    config = _load_config(
        ui,
        retries=retries,
        cache_enabled=cache,
        store_address=store,
        rate_limit=rate_limit,
        ttl=ttl,
        request_timeout=timeout,
        deadline=deadline,
    )
    outcome = run_async(_fetch(url, config, ui), ui)
    if outcome.state is not FetchState.DONE:
        raise typer.Exit(code=1)


async def _with_store(config: FetchConfig, ui: UserInterface, action):
    cache_layer = await connect_cache_layer(config, ui, required=True)
    handler = CommandHandler(orchestrator=None, cache_layer=cache_layer, ui=ui)
    try:
        return await action(handler)
    finally:
        await cache_layer.close()


@app.command()
def stats(
    url: Annotated[str, typer.Argument(help="URL whose cache entry to inspect.")],
    store: StoreOption = None,
    verbose: VerboseOption = False,
):
    """Show cache statistics for a URL."""
    configure_logging(verbose)
    ui = ConsoleDisplay()
    config = _load_config(ui, store_address=store)
    found = run_async(_with_store(config, ui, lambda handler: handler.handle_stats(url)), ui)
    if not found:
        raise typer.Exit(code=1)


@app.command(name="clear-cache")
def clear_cache_command(
    store: StoreOption = None,
    verbose: VerboseOption = False,
):
    """Remove every cached response (rate-limit counters are kept)."""
    configure_logging(verbose)
    ui = ConsoleDisplay()
    config = _load_config(ui, store_address=store)
    run_async(_with_store(config, ui, lambda handler: handler.handle_clear_cache()), ui)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
