"""
Attribute store package for authring.

The authentication rings, the local key ring and the published public key
live in an external per-user attribute store. This package defines that
collaborator's interface and ships in-memory and Redis implementations.
"""

from .store import (
    AttributeStore,
    KEYRING_SLOT,
    ED25519_PUBKEY_SLOT,
    LONG_TERM_SIGNATURE_SLOT,
)

from .memory import (
    MemoryAttributeStore,
    create_memory_store,
)

from .redis import RedisAttributeStore

__all__ = [
    "AttributeStore",
    "KEYRING_SLOT",
    "ED25519_PUBKEY_SLOT",
    "LONG_TERM_SIGNATURE_SLOT",
    "MemoryAttributeStore",
    "create_memory_store",
    "RedisAttributeStore",
]
