"""Interface for the HTTP transport.

The transport is an external collaborator: connection management, TLS and
redirects are its business. The fetcher only needs a single GET.
"""

import abc

from fetchguard.domain.models.http import HttpResponse


class HttpTransport(abc.ABC):
    """Abstract Base Class for issuing HTTP GET requests."""

    @abc.abstractmethod
    async def get(self, url: str, timeout: float) -> HttpResponse:
        """Issues one GET request.

        Args:
            url: The absolute URL to fetch.
            timeout: Maximum time in seconds the request may take.

        Returns:
            The received response (any status code).

        Raises:
            TransportError: If no response could be obtained (network error, timeout).
        """
        pass

    async def close(self) -> None:
        """Releases transport resources. Default is a no-op."""
        return None
