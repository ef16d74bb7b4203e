import pytest

from authring import AuthringConfig, create_attribute_store
from authring.attributes import MemoryAttributeStore, RedisAttributeStore


def test_defaults():
    config = AuthringConfig()
    assert config.serialize_saves is True
    assert config.sign_long_term_key is True
    assert config.signature_prefix == b"keyauth"


def test_create_attribute_store():
    assert isinstance(create_attribute_store("memory"), MemoryAttributeStore)
    store = create_attribute_store("redis", AuthringConfig(redis_url="redis://example:6379/1", redis_prefix="x:"))
    assert isinstance(store, RedisAttributeStore)
    assert store.url == "redis://example:6379/1"
    assert store.prefix == "x"


def test_unknown_backend():
    with pytest.raises(ValueError, match="Unknown attribute store backend"):
        create_attribute_store("sqlite")
