import asyncio

import pytest

from authring import (
    AuthenticationMethod,
    AuthringConfig,
    KeyConfidence,
    KeyType,
    TrustRecord,
    TrustStore,
)
from authring.attributes import MemoryAttributeStore
from authring.codec import RECORD_SIZE, serialize_record
from authring.errors import (
    AttributeNotFoundError,
    MalformedRecordError,
    TrustIndicatorError,
    UninitializedStoreError,
    UnsupportedKeyTypeError,
)

from conftest import make_handle

pytestmark = pytest.mark.asyncio

FP_HEX = "aabbcc" * 6 + "aabb"


class DelayedStore(MemoryAttributeStore):
    """Writes complete after the given delays, in call order."""

    def __init__(self, delays):
        super().__init__()
        self.delays = list(delays)

    async def set_attribute(self, owner_id, slot, value):
        delay = self.delays.pop(0) if self.delays else 0
        await asyncio.sleep(delay)
        await super().set_attribute(owner_id, slot, value)


class FailingStore(MemoryAttributeStore):
    async def set_attribute(self, owner_id, slot, value):
        raise OSError("disk on fire")


@pytest.fixture
async def loaded(attribute_store, own_handle):
    for key_type in KeyType:
        await attribute_store.set_attribute(own_handle, key_type.slot_name, b"")
    attribute_store.writes.clear()
    store = TrustStore(attribute_store, own_handle)
    await store.load(KeyType.ED25519)
    await store.load(KeyType.RSA)
    return store


async def test_example_scenario(loaded, attribute_store, own_handle):
    contact = make_handle(42)
    stored = await loaded.set_record(
        contact, FP_HEX, KeyType.ED25519,
        AuthenticationMethod.FINGERPRINT_COMPARISON, KeyConfidence.UNSURE,
    )
    assert stored is True

    record = loaded.get_record(contact, KeyType.ED25519)
    assert record.fingerprint == bytes.fromhex(FP_HEX)
    assert record.fingerprint_hex == FP_HEX
    assert record.method == 1
    assert record.confidence == 0

    blob = attribute_store.peek(own_handle, "authring")
    assert len(blob) == RECORD_SIZE
    assert blob == serialize_record(contact, FP_HEX, 1, 0)

    await loaded.scrub(KeyType.ED25519)
    assert attribute_store.peek(own_handle, "authring") == b""
    assert loaded.get_record(contact, KeyType.ED25519) is None


async def test_get_record_missing_is_none(loaded):
    assert loaded.get_record(make_handle(3), KeyType.RSA) is None


async def test_own_handle_is_noop(loaded, attribute_store, own_handle):
    stored = await loaded.set_record(own_handle, FP_HEX, KeyType.ED25519)
    assert stored is False
    assert loaded.get_record(own_handle, KeyType.ED25519) is None
    assert attribute_store.writes == []


async def test_own_handle_as_raw_bytes_is_noop(loaded, attribute_store):
    raw = (1).to_bytes(8, "big")
    assert await loaded.set_record(raw, FP_HEX, KeyType.RSA) is False
    assert attribute_store.writes == []


async def test_key_types_are_independent(loaded, attribute_store, own_handle):
    contact = make_handle(9)
    await loaded.set_record(contact, FP_HEX, KeyType.RSA, AuthenticationMethod.SIGNATURE_VERIFIED)
    assert loaded.get_record(contact, KeyType.ED25519) is None
    assert loaded.get_record(contact, "RSA").method is AuthenticationMethod.SIGNATURE_VERIFIED
    assert attribute_store.writes == [(own_handle, "authRSA")]
    assert attribute_store.peek(own_handle, "authring") == b""


async def test_upsert_replaces(loaded):
    contact = make_handle(9)
    await loaded.set_record(contact, FP_HEX, KeyType.ED25519, AuthenticationMethod.SEEN)
    await loaded.set_record(contact, b"\x01" * 20, KeyType.ED25519, AuthenticationMethod.SIGNATURE_VERIFIED)
    record = loaded.get_record(contact, KeyType.ED25519)
    assert record == TrustRecord(b"\x01" * 20, AuthenticationMethod.SIGNATURE_VERIFIED, KeyConfidence.UNSURE)
    assert len(loaded.records(KeyType.ED25519)) == 1


async def test_reload_round_trip(loaded, attribute_store, own_handle):
    for n in range(2, 6):
        await loaded.set_record(make_handle(n), bytes([n]) * 20, KeyType.ED25519, n % 3)
    fresh = TrustStore(attribute_store, own_handle)
    ring = await fresh.load(KeyType.ED25519)
    assert ring == dict(loaded.records(KeyType.ED25519))


async def test_uninitialized_store(attribute_store, own_handle):
    store = TrustStore(attribute_store, own_handle)
    assert not store.is_loaded(KeyType.ED25519)
    with pytest.raises(UninitializedStoreError):
        await store.set_record(make_handle(2), FP_HEX, KeyType.ED25519)
    with pytest.raises(UninitializedStoreError):
        store.get_record(make_handle(2), KeyType.ED25519)
    with pytest.raises(UninitializedStoreError):
        await store.save(KeyType.RSA)
    assert attribute_store.writes == []


async def test_unsupported_key_type(loaded):
    with pytest.raises(UnsupportedKeyTypeError):
        loaded.get_record(make_handle(2), "DSA")
    with pytest.raises(UnsupportedKeyTypeError):
        await loaded.load("DSA")


async def test_invalid_indicator_leaves_ring_untouched(loaded, attribute_store):
    with pytest.raises(TrustIndicatorError):
        await loaded.set_record(make_handle(2), FP_HEX, KeyType.ED25519, method=16)
    assert loaded.get_record(make_handle(2), KeyType.ED25519) is None
    assert attribute_store.writes == []


async def test_load_missing_ring_propagates(attribute_store, own_handle):
    store = TrustStore(attribute_store, own_handle)
    with pytest.raises(AttributeNotFoundError):
        await store.load(KeyType.ED25519)
    assert not store.is_loaded(KeyType.ED25519)


async def test_load_malformed_ring(attribute_store, own_handle):
    await attribute_store.set_attribute(own_handle, "authRSA", b"\x00" * (RECORD_SIZE + 1))
    store = TrustStore(attribute_store, own_handle)
    with pytest.raises(MalformedRecordError):
        await store.load(KeyType.RSA)
    assert not store.is_loaded(KeyType.RSA)


async def test_save_failure_propagates(own_handle):
    store = TrustStore(FailingStore(), own_handle)
    store.initialize_empty(KeyType.ED25519)
    with pytest.raises(OSError):
        await store.set_record(make_handle(2), FP_HEX, KeyType.ED25519)


async def test_scrub_all(loaded, attribute_store, own_handle):
    await loaded.set_record(make_handle(2), FP_HEX, KeyType.ED25519)
    await loaded.set_record(make_handle(2), FP_HEX, KeyType.RSA)
    await loaded.scrub_all()
    assert loaded.records(KeyType.ED25519) == {}
    assert loaded.records(KeyType.RSA) == {}
    assert attribute_store.peek(own_handle, "authring") == b""
    assert attribute_store.peek(own_handle, "authRSA") == b""


async def test_records_is_read_only(loaded):
    with pytest.raises(TypeError):
        loaded.records(KeyType.ED25519)[make_handle(2)] = None


async def test_clear_drops_rings(loaded):
    loaded.clear()
    assert not loaded.is_loaded(KeyType.ED25519)
    assert not loaded.is_loaded(KeyType.RSA)


class TestConcurrentUpdates:
    async def _two_updates(self, store):
        await asyncio.gather(
            store.set_record(make_handle(2), b"\x02" * 20, KeyType.ED25519),
            store.set_record(make_handle(3), b"\x03" * 20, KeyType.ED25519),
        )

    async def test_serialized_saves_keep_both_records(self, own_handle):
        backend = DelayedStore([0.05, 0.0])
        store = TrustStore(backend, own_handle, AuthringConfig(serialize_saves=True))
        store.initialize_empty(KeyType.ED25519)
        await self._two_updates(store)

        fresh = TrustStore(backend, own_handle)
        ring = await fresh.load(KeyType.ED25519)
        assert set(ring) == {make_handle(2), make_handle(3)}

    async def test_unserialized_saves_last_writer_wins(self, own_handle):
        backend = DelayedStore([0.05, 0.0])
        store = TrustStore(backend, own_handle, AuthringConfig(serialize_saves=False))
        store.initialize_empty(KeyType.ED25519)
        await self._two_updates(store)

        fresh = TrustStore(backend, own_handle)
        ring = await fresh.load(KeyType.ED25519)
        # The slow first save lands last and drops the second record.
        assert set(ring) == {make_handle(2)}
        assert set(store.records(KeyType.ED25519)) == {make_handle(2), make_handle(3)}


class TestResetWhileLoading:
    async def test_reset_wins_over_pending_load(self, loaded, attribute_store, own_handle):
        await loaded.set_record(make_handle(2), FP_HEX, KeyType.ED25519)
        pending = loaded.load(KeyType.ED25519)
        loaded.initialize_empty(KeyType.ED25519)

        assert await pending == {}
        assert loaded.records(KeyType.ED25519) == {}

    async def test_scrub_wins_over_pending_load(self, loaded, attribute_store, own_handle):
        await loaded.set_record(make_handle(2), FP_HEX, KeyType.RSA)
        pending = asyncio.ensure_future(loaded.load(KeyType.RSA))
        await loaded.scrub(KeyType.RSA)
        await pending

        assert loaded.records(KeyType.RSA) == {}
        assert attribute_store.peek(own_handle, "authRSA") == b""

    async def test_logout_during_load(self, loaded):
        pending = loaded.load(KeyType.ED25519)
        loaded.clear()
        with pytest.raises(UninitializedStoreError):
            await pending
        assert not loaded.is_loaded(KeyType.ED25519)

    async def test_load_after_reset_is_applied(self, loaded, attribute_store, own_handle):
        loaded.initialize_empty(KeyType.ED25519)
        await attribute_store.set_attribute(own_handle, "authring", serialize_record(make_handle(4), FP_HEX, 0, 0))
        ring = await loaded.load(KeyType.ED25519)
        assert set(ring) == {make_handle(4)}
