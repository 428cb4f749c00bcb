"""Interface for interacting with the user (output only).

Defines the contract for displaying information, errors, warnings and fetch
results, allowing different UI implementations (e.g., console, JSON).
"""

import abc
from typing import Any, Dict

from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.http import HttpResponse


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays standard output to the user.

        Args:
            output: The string to display.
            **kwargs: Additional arguments for formatting (e.g., style).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
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

    def display_response(self, response: HttpResponse, latency: float) -> None:
        """Displays a freshly fetched response summary.

        Args:
            response: The response received from the network.
            latency: Latency of the attempt that produced it, in seconds.
        """
        pass

    def display_cached_entry(self, entry: CacheEntry) -> None:
        """Displays a response served from the cache.

        Args:
            entry: The cached entry.
        """
        pass

    def display_stats(self, stats: Dict[str, Any]) -> None:
        """Displays cache statistics for one resource.

        Args:
            stats: Entry metadata merged with hit counters.
        """
        pass
