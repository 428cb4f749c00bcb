"""Builds a KeyValueStore from a store address."""

import logging
from typing import Optional

from fetchguard.domain.interfaces.key_value_store import KeyValueStore
from fetchguard.infrastructure.store.disk_store import DISK_SCHEME, DiskKeyValueStore
from fetchguard.infrastructure.store.redis_store import RedisKeyValueStore

logger = logging.getLogger(__name__)


def create_store(address: str, password: Optional[str] = None) -> KeyValueStore:
    """Creates the store matching ``address``.

    ``disk://<dir>`` selects the diskcache backend; ``redis://...``,
    ``rediss://...`` and bare ``host:port`` select Redis.

    Args:
        address: Store address.
        password: Redis password (ignored by the disk backend).
    """
    address = address.strip()
    if address.startswith(DISK_SCHEME):
        directory = address[len(DISK_SCHEME):] or "."
        logger.debug(f"Using disk store at {directory}")
        return DiskKeyValueStore(directory)
    logger.debug(f"Using Redis store at {address}")
    return RedisKeyValueStore(address, password=password)
