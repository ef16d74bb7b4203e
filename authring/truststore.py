"""
Storage of authenticated contacts.

A ``TrustStore`` keeps one authentication ring per key type for a local
identity. Each ring maps a contact's handle to the ``TrustRecord`` holding the
authenticated key fingerprint, the authentication method and the key
confidence. Rings are loaded from and saved to the external attribute store
as flat 29 byte record sequences (see ``authring.codec``).

Rings must be loaded (or initialised empty) before they can be read or
updated. The local identity never tracks itself.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Awaitable, Dict, Mapping, Optional, Union

from .attributes import AttributeStore
from .codec import (
    AuthenticationMethod,
    Fingerprint,
    Handle,
    KeyConfidence,
    TrustCollection,
    TrustRecord,
    decode_handle,
    deserialize,
    encode_handle,
    fingerprint_to_bytes,
    pack_trust_indicator,
    serialize,
    unpack_trust_indicator,
)
from .config import AuthringConfig
from .errors import UninitializedStoreError
from .keytypes import KeyType
from .monitoring import MetricsRegistry, get_registry

logger = logging.getLogger(__name__)


def canonical_handle(handle: Handle) -> str:
    """Text form of a handle given as text or raw bytes."""
    return encode_handle(decode_handle(handle))


class TrustStore:
    """Authentication rings of one local identity, one per key type."""

    def __init__(
        self,
        attribute_store: AttributeStore,
        owner_handle: Handle,
        config: Optional[AuthringConfig] = None,
        metrics: Optional[MetricsRegistry] = None,
    ):
        self.attribute_store = attribute_store
        self.owner_handle = canonical_handle(owner_handle)
        self.config = config or AuthringConfig()
        self.metrics = metrics or get_registry()
        self._rings: Dict[KeyType, Optional[TrustCollection]] = {key_type: None for key_type in KeyType}
        # Bumped on every in-memory reset; a load that straddles a reset is stale.
        self._generations: Dict[KeyType, int] = {key_type: 0 for key_type in KeyType}
        self._save_locks: Dict[KeyType, asyncio.Lock] = {}

    def is_loaded(self, key_type: Union[KeyType, str]) -> bool:
        return self._rings[KeyType.coerce(key_type)] is not None

    def _ring(self, key_type: KeyType) -> TrustCollection:
        ring = self._rings[key_type]
        if ring is None:
            raise UninitializedStoreError(
                f"{key_type.value} ring not initialised; call load() first"
            )
        return ring

    def initialize_empty(self, key_type: Union[KeyType, str]) -> None:
        """Replace the in-memory ring with an empty one without persisting it.

        A ``load`` still in flight for the same key type will not overwrite it.
        """
        key_type = KeyType.coerce(key_type)
        self._generations[key_type] += 1
        self._rings[key_type] = {}

    def _save_lock(self, key_type: KeyType) -> asyncio.Lock:
        # Created on first use so the lock binds to the running loop.
        lock = self._save_locks.get(key_type)
        if lock is None:
            lock = self._save_locks[key_type] = asyncio.Lock()
        return lock

    def load(self, key_type: Union[KeyType, str]) -> Awaitable[TrustCollection]:
        """Fetch, decode and cache the ring for ``key_type``.

        The ring is pinned to the store's state at call time: if it is reset
        (``initialize_empty``, ``scrub``, ``clear``) before the fetch completes,
        the fetched ring is discarded and the current one is returned.

        Raises:
            UnsupportedKeyTypeError: For key types other than Ed25519 and RSA.
            AttributeStoreError: If the ring cannot be fetched.
            MalformedRecordError: If the persisted ring is corrupt.
            UninitializedStoreError: If the ring was cleared while loading.
        """
        key_type = KeyType.coerce(key_type)
        return self._load(key_type, self._generations[key_type])

    async def _load(self, key_type: KeyType, generation: int) -> TrustCollection:
        try:
            blob = await self.attribute_store.get_attribute(self.owner_handle, key_type.slot_name)
            ring = deserialize(blob)
        except Exception as e:
            logger.error(f"Error retrieving authentication ring for key type {key_type.value}: {e}")
            raise
        if generation != self._generations[key_type]:
            logger.debug(f"Discarding authentication ring for key type {key_type.value}: reset while loading.")
            return self._ring(key_type)
        self._rings[key_type] = ring
        logger.debug(f"Got authentication ring for key type {key_type.value} ({len(ring)} records).")
        return ring

    async def save(self, key_type: Union[KeyType, str]) -> None:
        """Serialise the in-memory ring and write it to the attribute store."""
        key_type = KeyType.coerce(key_type)
        self._ring(key_type)
        if self.config.serialize_saves:
            async with self._save_lock(key_type):
                await self._write(key_type)
        else:
            await self._write(key_type)

    async def _write(self, key_type: KeyType) -> None:
        # Serialise at write time so a queued save carries every earlier update.
        blob = serialize(self._ring(key_type))
        try:
            await self.attribute_store.set_attribute(self.owner_handle, key_type.slot_name, blob)
        except Exception as e:
            self.metrics.observe_save(key_type.value, ok=False)
            logger.error(f"Error saving authentication ring for key type {key_type.value}: {e}")
            raise
        self.metrics.observe_save(key_type.value, ok=True)

    def get_record(self, handle: Handle, key_type: Union[KeyType, str]) -> Optional[TrustRecord]:
        """Authentication state of a contact, ``None`` for an unauthenticated one."""
        key_type = KeyType.coerce(key_type)
        return self._ring(key_type).get(canonical_handle(handle))

    async def set_record(
        self,
        handle: Handle,
        fingerprint: Fingerprint,
        key_type: Union[KeyType, str],
        method: int = AuthenticationMethod.SEEN,
        confidence: int = KeyConfidence.UNSURE,
    ) -> bool:
        """Store a contact authentication and persist the ring.

        Returns ``False`` without touching the ring when ``handle`` is the
        local identity's own handle.

        Raises:
            UninitializedStoreError: If the ring was not loaded yet.
        """
        key_type = KeyType.coerce(key_type)
        ring = self._ring(key_type)
        handle = canonical_handle(handle)
        if handle == self.owner_handle:
            # We don't track ourselves.
            logger.warning("Refusing to authenticate own handle for key type %s", key_type.value)
            return False

        method, confidence = unpack_trust_indicator(pack_trust_indicator(method, confidence))
        record = TrustRecord(
            fingerprint=fingerprint_to_bytes(fingerprint),
            method=method,
            confidence=confidence,
        )
        ring[handle] = record
        self.metrics.observe_record_set(key_type.value)
        logger.debug(
            "Authenticated %s for key type %s: fingerprint=%s method=%d confidence=%d",
            handle, key_type.value, record.fingerprint_hex, record.method, record.confidence,
        )
        await self.save(key_type)
        return True

    async def scrub(self, key_type: Union[KeyType, str]) -> None:
        """Irreversibly reset the ring for ``key_type`` to empty and persist it."""
        key_type = KeyType.coerce(key_type)
        self.initialize_empty(key_type)
        logger.info("Scrubbing authentication ring for key type %s", key_type.value)
        await self.save(key_type)

    async def scrub_all(self) -> None:
        """Purge all fingerprints from every authentication ring."""
        for key_type in KeyType:
            await self.scrub(key_type)

    def records(self, key_type: Union[KeyType, str]) -> Mapping[str, TrustRecord]:
        """Read-only snapshot of a ring."""
        return MappingProxyType(dict(self._ring(KeyType.coerce(key_type))))

    def clear(self) -> None:
        """Drop every in-memory ring (on logout). Nothing is persisted."""
        for key_type in KeyType:
            self._generations[key_type] += 1
            self._rings[key_type] = None


__all__ = ["TrustStore", "canonical_handle"]
