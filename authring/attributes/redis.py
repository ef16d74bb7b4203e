"""Redis-backed attribute store.

Each attribute is a plain binary string at key ``{prefix}:{owner_id}:{slot}``.
Writes are unconditional ``SET``s, so concurrent writers to one slot resolve
as last writer wins, the same contract the rings are designed against.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import AttributeNotFoundError, AttributeStoreError
from .store import AttributeStore

logger = logging.getLogger(__name__)


class RedisAttributeStore(AttributeStore):
    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "authring:attr",
    ):
        self.url = url
        self.prefix = prefix.rstrip(":")
        self._client: Optional[redis.Redis] = None

    async def _get_client(self) -> redis.Redis:
        if self._client is None:
            # Attributes are binary blobs; never decode them.
            self._client = redis.from_url(self.url, decode_responses=False)
        return self._client

    def _key(self, owner_id: str, slot: str) -> str:
        return f"{self.prefix}:{owner_id}:{slot}"

    async def get_attribute(self, owner_id: str, slot: str) -> bytes:
        client = await self._get_client()
        try:
            raw = await client.get(self._key(owner_id, slot))
        except RedisError as e:
            logger.error("Redis read of %s for %s failed: %s", slot, owner_id, e)
            raise AttributeStoreError(f"read of {slot!r} failed: {e}") from e
        if raw is None:
            raise AttributeNotFoundError(owner_id, slot)
        return raw

    async def set_attribute(self, owner_id: str, slot: str, value: bytes) -> None:
        client = await self._get_client()
        try:
            await client.set(self._key(owner_id, slot), bytes(value))
        except RedisError as e:
            logger.error("Redis write of %s for %s failed: %s", slot, owner_id, e)
            raise AttributeStoreError(f"write of {slot!r} failed: {e}") from e
        logger.debug("Stored attribute %s for %s", slot, owner_id)

    async def delete_attribute(self, owner_id: str, slot: str) -> bool:
        client = await self._get_client()
        try:
            return (await client.delete(self._key(owner_id, slot))) == 1
        except RedisError as e:
            raise AttributeStoreError(f"delete of {slot!r} failed: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["RedisAttributeStore"]
