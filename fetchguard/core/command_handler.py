"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work
to the FetchOrchestrator or the cache layer and reports results through
the UserInterface.
"""

import logging
from typing import Optional

from fetchguard.core.services.fetch_orchestrator import FetchOrchestrator
from fetchguard.domain.errors import CacheEntryNotFoundError, SerializationError, StoreUnavailableError
from fetchguard.domain.interfaces.cache_layer import CacheLayer
from fetchguard.domain.interfaces.user_interface import UserInterface
from fetchguard.domain.models.results import SOURCE_CACHE, FetchOutcome, FetchState

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        orchestrator: Optional[FetchOrchestrator],
        cache_layer: CacheLayer,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler with required services.

        ``orchestrator`` may be None for commands that only touch the cache.
        """
        self.orchestrator = orchestrator
        self.cache_layer = cache_layer
        self.ui = ui

    @property
    def config(self):
        return self.orchestrator.config

    async def handle_fetch(self, url: str) -> FetchOutcome:
        """Handles the 'fetch' command and reports the outcome."""
        logger.info(f"Handling 'fetch' command for: {url}")
        outcome = await self.orchestrator.run(url)

        if outcome.state is FetchState.ABORT:
            self.ui.display_error(
                f"Rate limited: {url} (limit: {self.config.rate_limit} requests "
                f"per {self.config.rate_limit_window:g}s)"
            )
        elif outcome.state is FetchState.RETURN_ERROR:
            self.ui.display_error(f"Error: {outcome.error} (attempts: {outcome.attempts})")
        elif outcome.source == SOURCE_CACHE:
            self.ui.display_info(f"Cache HIT for {url}")
            self.ui.display_cached_entry(outcome.entry)
            await self._show_stats(url)
        else:
            if self.cache_layer.enabled:
                self.ui.display_info(f"Cache MISS for {url}")
            self.ui.display_response(outcome.response, outcome.latency)
            if outcome.cached:
                self.ui.display_info(f"Response cached with TTL: {self.config.ttl:g}s")
            elif self.cache_layer.enabled:
                self.ui.display_warning("Failed to cache response.")
        return outcome

    async def _show_stats(self, url: str) -> None:
        try:
            self.ui.display_stats(await self.cache_layer.stats(url))
        except (CacheEntryNotFoundError, SerializationError, StoreUnavailableError) as e:
            logger.debug(f"No stats to show for {url}: {e}")

    async def handle_stats(self, url: str) -> bool:
        """Handles the 'stats' command. Returns False if nothing was found."""
        logger.info(f"Handling 'stats' command for: {url}")
        try:
            stats = await self.cache_layer.stats(url)
        except CacheEntryNotFoundError:
            self.ui.display_warning(f"No cached entry for {url}")
            return False
        except (SerializationError, StoreUnavailableError) as e:
            logger.error(f"Failed to read stats for {url}: {e}", exc_info=True)
            self.ui.display_error(f"Failed to read cache stats: {e}")
            return False
        self.ui.display_stats(stats)
        return True

    async def handle_clear_cache(self) -> int:
        """Handles the 'clear-cache' command. Returns the number of keys removed."""
        logger.info("Handling 'clear-cache' command")
        removed = await self.cache_layer.clear()
        self.ui.display_info(f"Cache cleared. Removed {removed} keys.")
        return removed
