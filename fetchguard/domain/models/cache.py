"""Cache entry model and its persisted representation.

Entries are stored as a self-describing JSON record so that every store
backend reads and writes the same format:

    {"status_code": 200, "headers": {...}, "body": "<base64>",
     "cached_at": "<RFC3339>", "expires_at": "<RFC3339>", "request_count": 0}
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from fetchguard.domain.errors import SerializationError


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(raw: Any) -> datetime:
    if not isinstance(raw, str):
        raise SerializationError(f"Timestamp must be a string, got {type(raw).__name__}")
    # Other writers may encode UTC as a trailing "Z"
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise SerializationError(f"Invalid timestamp '{raw}': {e}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class CacheEntry:
    """One cached HTTP response with its lifetime metadata."""
    status_code: int
    cached_at: datetime
    expires_at: datetime
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    request_count: int = 0

    def __post_init__(self) -> None:
        if self.expires_at <= self.cached_at:
            raise ValueError("expires_at must be later than cached_at")

    @property
    def body_size(self) -> int:
        return len(self.body)

    def is_expired(self, now: datetime) -> bool:
        """True once ``now`` has reached ``expires_at``."""
        return self.expires_at <= now

    def remaining_ttl(self, now: datetime) -> float:
        """Seconds left before expiry (never negative)."""
        return max(0.0, (self.expires_at - now).total_seconds())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "headers": dict(self.headers),
            "body": base64.b64encode(self.body).decode("ascii"),
            "cached_at": _format_timestamp(self.cached_at),
            "expires_at": _format_timestamp(self.expires_at),
            "request_count": self.request_count,
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> "CacheEntry":
        """Decodes a persisted entry.

        Raises:
            SerializationError: If the payload is not a valid entry record.
        """
        try:
            row = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise SerializationError(f"Cache payload is not valid JSON: {e}") from e
        if not isinstance(row, dict):
            raise SerializationError("Cache payload must be a JSON object")

        status_code = row.get("status_code")
        if not isinstance(status_code, int) or isinstance(status_code, bool):
            raise SerializationError("Cache payload is missing an integer status_code")

        headers = row.get("headers") or {}
        if not isinstance(headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise SerializationError("Cache payload headers must map strings to strings")

        body_raw = row.get("body") or ""
        if not isinstance(body_raw, str):
            raise SerializationError("Cache payload body must be a base64 string")
        try:
            body = base64.b64decode(body_raw, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SerializationError(f"Cache payload body is not valid base64: {e}") from e

        request_count = row.get("request_count", 0)
        if not isinstance(request_count, int):
            raise SerializationError("Cache payload request_count must be an integer")

        try:
            return cls(
                status_code=status_code,
                headers=headers,
                body=body,
                cached_at=_parse_timestamp(row.get("cached_at")),
                expires_at=_parse_timestamp(row.get("expires_at")),
                request_count=request_count,
            )
        except ValueError as e:
            raise SerializationError(f"Inconsistent cache entry: {e}") from e
