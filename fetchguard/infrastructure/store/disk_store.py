"""diskcache-backed key-value store.

Stores everything in a SQLite-backed ``diskcache.Cache`` directory, which can
be shared by several processes on one host. Compound operations (hash field
increments, the fixed-window check-and-increment) run inside
``Cache.transact()``, which holds the database write lock for their duration.
Every call runs in a worker thread so that lock waits never stall the event
loop.
"""

import asyncio
import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

import diskcache as dc

from fetchguard.domain.errors import StoreUnavailableError
from fetchguard.domain.interfaces.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DISK_SCHEME = "disk://"
DEFAULT_DISK_TIMEOUT_SECONDS = 1.0

T = TypeVar("T")


def _remaining(expire_time: Optional[float]) -> Optional[float]:
    if expire_time is None:
        return None
    return max(0.0, expire_time - time.time())


class DiskKeyValueStore(KeyValueStore):
    """KeyValueStore implementation on top of ``diskcache.Cache``."""

    def __init__(self, directory: Union[str, Path], timeout: float = DEFAULT_DISK_TIMEOUT_SECONDS):
        """Initializes the disk store.

        Args:
            directory: Cache directory (created if missing).
            timeout: SQLite lock timeout in seconds.
        """
        self.directory = Path(directory).expanduser()
        self.address = f"{DISK_SCHEME}{self.directory}"
        try:
            self._cache = dc.Cache(str(self.directory), timeout=timeout)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(
                f"Cannot open disk store at {self.directory}: {e}", address=self.address
            ) from e
        logger.debug(f"Opened disk store at: {self._cache.directory}")

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (dc.Timeout, sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(
                f"Disk store {operation} failed at {self.directory}: {e}", address=self.address
            ) from e

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """Runs a blocking diskcache call in a worker thread.

        diskcache opens one SQLite connection per thread, so a call that waits
        on the database lock only holds up its own task.
        """
        def call() -> T:
            with self._translate_errors(operation):
                return func(*args)

        return await asyncio.to_thread(call)

    def _read(self, key: str) -> Tuple[Any, Optional[float]]:
        value, expire_time = self._cache.get(key, default=None, expire_time=True)
        return value, expire_time

    async def get(self, key: str) -> Optional[bytes]:
        value = await self._run("get", self._cache.get, key)
        if value is None or isinstance(value, bytes):
            return value
        if isinstance(value, int):
            return str(value).encode("ascii")
        return json.dumps(value).encode("utf-8")

    async def set(self, key: str, value: bytes, ttl: Optional[float] = None) -> None:
        await self._run("set", self._set, key, value, ttl)

    def _set(self, key: str, value: bytes, ttl: Optional[float]) -> None:
        self._cache.set(key, value, expire=ttl)

    async def delete(self, *keys: str) -> int:
        return await self._run("delete", self._delete, keys)

    def _delete(self, keys: Tuple[str, ...]) -> int:
        return sum(1 for key in keys if self._cache.delete(key))

    async def exists(self, key: str) -> bool:
        return await self._run("exists", self._cache.__contains__, key)

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        return await self._run("hincrby", self._hincrby, key, field, amount)

    def _hincrby(self, key: str, field: str, amount: int) -> int:
        with self._cache.transact():
            row, expire_time = self._read(key)
            fields: Dict[str, int] = dict(row) if isinstance(row, dict) else {}
            fields[field] = int(fields.get(field, 0)) + amount
            self._cache.set(key, fields, expire=_remaining(expire_time))
        return fields[field]

    async def hgetall(self, key: str) -> Dict[str, str]:
        row = await self._run("hgetall", self._cache.get, key)
        if not isinstance(row, dict):
            return {}
        return {str(k): str(v) for k, v in row.items()}

    async def expire(self, key: str, ttl: float) -> bool:
        return bool(await self._run("expire", self._touch, key, ttl))

    def _touch(self, key: str, ttl: float) -> bool:
        return self._cache.touch(key, expire=ttl)

    async def ttl(self, key: str) -> Optional[float]:
        value, expire_time = await self._run("ttl", self._read, key)
        if value is None:
            return None
        return _remaining(expire_time)

    async def incr(self, key: str) -> int:
        return int(await self._run("incr", self._cache.incr, key, 1, 0))

    async def increment_within_limit(self, key: str, limit: int, window: float) -> Tuple[bool, int]:
        return await self._run("increment_within_limit", self._increment_within_limit, key, limit, window)

    def _increment_within_limit(self, key: str, limit: int, window: float) -> Tuple[bool, int]:
        with self._cache.transact():
            value, expire_time = self._read(key)
            current = int(value or 0)
            if current >= limit:
                return False, current
            current += 1
            if value is None or expire_time is None:
                self._cache.set(key, current, expire=window)
            else:
                self._cache.set(key, current, expire=_remaining(expire_time))
        return True, current

    async def scan_prefix(self, prefix: str) -> List[str]:
        return await self._run("scan", self._scan_prefix, prefix)

    def _scan_prefix(self, prefix: str) -> List[str]:
        self._cache.expire()
        return [key for key in self._cache.iterkeys() if isinstance(key, str) and key.startswith(prefix)]

    async def ping(self) -> bool:
        await self._run("ping", self._cache.get, "__ping__")
        return True

    async def close(self) -> None:
        self._cache.close()
