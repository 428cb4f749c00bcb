"""HttpTransport implementation over ``httpx.AsyncClient``."""

import logging
from typing import Mapping, Optional

import httpx

from fetchguard.domain.errors import TransportError
from fetchguard.domain.interfaces.http_transport import HttpTransport
from fetchguard.domain.models.http import HttpResponse, first_value_headers

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fetchguard/1.0"


class HttpxTransport(HttpTransport):
    """Issues GET requests with a shared ``httpx.AsyncClient``.

    Redirects are followed; TLS and connection pooling are left to httpx.
    Any received response is returned as is, whatever its status code.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        """Initializes the transport.

        Args:
            client: Pre-built client (owned by the caller if given).
            transport: Low-level httpx transport for a client built here,
                e.g. ``httpx.MockTransport`` in tests.
            headers: Default request headers for a client built here.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            transport=transport,
            headers=dict(headers or {"User-Agent": DEFAULT_USER_AGENT}),
            follow_redirects=True,
        )

    async def get(self, url: str, timeout: float) -> HttpResponse:
        try:
            response = await self._client.get(url, timeout=timeout)
        except httpx.TimeoutException as e:
            raise TransportError(f"GET {url} timed out after {timeout:.2f}s: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {type(e).__name__}: {e}", url=url) from e

        logger.debug(f"GET {url} -> {response.status_code} ({len(response.content)} bytes)")
        return HttpResponse(
            status_code=response.status_code,
            headers=first_value_headers(response.headers.multi_items()),
            body=response.content,
            url=str(response.url),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
