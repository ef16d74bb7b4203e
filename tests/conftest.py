import pytest

from authring import LocalIdentity, encode_handle
from authring.attributes import MemoryAttributeStore

FIXED_NOW = 1_700_000_000


def make_handle(n: int) -> str:
    return encode_handle(n.to_bytes(8, "big"))


@pytest.fixture
def attribute_store():
    return MemoryAttributeStore()


@pytest.fixture
def own_handle():
    return make_handle(1)


@pytest.fixture
def identity(attribute_store, own_handle):
    return LocalIdentity.create(own_handle, attribute_store)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW
