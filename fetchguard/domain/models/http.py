"""HTTP value objects exchanged between the transport, the fetcher and the cache."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Tuple, Union

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def first_value_headers(headers: HeaderSource) -> Dict[str, str]:
    """Collapses headers to a plain mapping keeping only the first value per name.

    Multi-value headers (e.g. several ``Set-Cookie`` lines) lose every value
    after the first one. Names keep the casing of their first occurrence.
    """
    items = headers.items() if isinstance(headers, Mapping) else headers
    collapsed: Dict[str, str] = {}
    seen = set()
    for name, value in items:
        lowered = name.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        collapsed[name] = value
    return collapsed


@dataclass(frozen=True)
class HttpResponse:
    """A response actually received from the transport."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""

    @property
    def body_size(self) -> int:
        return len(self.body)


@dataclass(frozen=True)
class FetchResult:
    """Final successful response of one logical GET.

    ``latency`` is the duration of the attempt that produced ``response``,
    not the time spent across all retries.
    """
    response: HttpResponse
    latency: float
    attempts: int = 1
