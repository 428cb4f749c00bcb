"""Redis-backed key-value store.

Uses the asyncio Redis client. The fixed-window check-and-increment runs as
one Lua script, so the read, the decision and the increment are a single
atomic operation on the server.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from fetchguard.domain.errors import StoreUnavailableError
from fetchguard.domain.interfaces.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT_SECONDS = 5.0

# KEYS[1] counter key, ARGV[1] limit, ARGV[2] window in milliseconds.
# A counter left without expiry (PTTL == -1) gets one so it can never pin the window.
INCREMENT_WITHIN_LIMIT_SCRIPT = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
local limit = tonumber(ARGV[1])
if current >= limit then
    return {0, current}
end
current = redis.call('INCR', KEYS[1])
if current == 1 or redis.call('PTTL', KEYS[1]) == -1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[2])
end
return {1, current}
"""


def normalize_redis_url(address: str) -> str:
    """Turns ``host:port`` (or ``host``) into a ``redis://`` URL."""
    if "://" in address:
        return address
    host, _, port = address.partition(":")
    return f"redis://{host or 'localhost'}:{port or 6379}/0"


def _to_millis(seconds: float) -> int:
    return max(1, int(round(seconds * 1000)))


class RedisKeyValueStore(KeyValueStore):
    """KeyValueStore implementation on top of ``redis.asyncio``."""

    def __init__(
        self,
        address: str = "localhost:6379",
        password: Optional[str] = None,
        client: Optional[aioredis.Redis] = None,
        socket_timeout: float = DEFAULT_SOCKET_TIMEOUT_SECONDS,
    ):
        """Initializes the Redis store.

        Args:
            address: ``host:port`` or ``redis://`` URL of the server.
            password: Optional password (overrides one in the URL).
            client: Pre-built client, mainly for tests.
            socket_timeout: Connect/read timeout in seconds.
        """
        self.address = normalize_redis_url(address)
        if client is None:
            client = aioredis.Redis.from_url(
                self.address,
                password=password,
                socket_connect_timeout=socket_timeout,
                socket_timeout=socket_timeout,
            )
        self._client = client
        self._increment_within_limit = self._client.register_script(INCREMENT_WITHIN_LIMIT_SCRIPT)

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except RedisError as e:
            raise StoreUnavailableError(
                f"Redis {operation} failed at {self.address}: {e}", address=self.address
            ) from e

    async def get(self, key: str) -> Optional[bytes]:
        with self._translate_errors("GET"):
            return await self._client.get(key)

    async def set(self, key: str, value: bytes, ttl: Optional[float] = None) -> None:
        with self._translate_errors("SET"):
            if ttl is not None:
                await self._client.set(key, value, px=_to_millis(ttl))
            else:
                await self._client.set(key, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with self._translate_errors("DEL"):
            return int(await self._client.delete(*keys))

    async def exists(self, key: str) -> bool:
        with self._translate_errors("EXISTS"):
            return bool(await self._client.exists(key))

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        with self._translate_errors("HINCRBY"):
            return int(await self._client.hincrby(key, field, amount))

    async def hgetall(self, key: str) -> Dict[str, str]:
        with self._translate_errors("HGETALL"):
            raw = await self._client.hgetall(key)
        return {_decode(k): _decode(v) for k, v in raw.items()}

    async def expire(self, key: str, ttl: float) -> bool:
        with self._translate_errors("PEXPIRE"):
            return bool(await self._client.pexpire(key, _to_millis(ttl)))

    async def ttl(self, key: str) -> Optional[float]:
        with self._translate_errors("PTTL"):
            millis = await self._client.pttl(key)
        # -2: missing key, -1: no expiry
        if millis is None or millis < 0:
            return None
        return millis / 1000.0

    async def incr(self, key: str) -> int:
        with self._translate_errors("INCR"):
            return int(await self._client.incr(key))

    async def increment_within_limit(self, key: str, limit: int, window: float) -> Tuple[bool, int]:
        with self._translate_errors("EVALSHA"):
            allowed, count = await self._increment_within_limit(
                keys=[key], args=[limit, _to_millis(window)]
            )
        return bool(int(allowed)), int(count)

    async def scan_prefix(self, prefix: str) -> List[str]:
        keys: List[str] = []
        with self._translate_errors("SCAN"):
            async for key in self._client.scan_iter(match=f"{prefix}*", count=100):
                keys.append(_decode(key))
        return keys

    async def ping(self) -> bool:
        with self._translate_errors("PING"):
            await self._client.ping()
        return True

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis connection to {self.address}: {e}")


def _decode(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)
