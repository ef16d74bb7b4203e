"""
Attribute store interface.

The host application owns per-user key/value storage for opaque byte blobs
("user attributes"). authring only reads and writes the slots listed below,
plus one slot per key type for the authentication rings (see
``KeyType.slot_name``).
"""

from abc import ABC, abstractmethod

# Private Ed25519 seed of the local identity.
KEYRING_SLOT = "keyring"
# Published Ed25519 public key of the local identity.
ED25519_PUBKEY_SLOT = "puEd255"
# Attestation of the local long-term (RSA) public key by the signing key.
LONG_TERM_SIGNATURE_SLOT = "sigPubk"


class AttributeStore(ABC):
    """Asynchronous per-user attribute storage."""

    @abstractmethod
    async def get_attribute(self, owner_id: str, slot: str) -> bytes:
        """Fetch an attribute.

        Raises:
            AttributeNotFoundError: If the slot was never written.
            AttributeStoreError: On any other backend failure.
        """

    @abstractmethod
    async def set_attribute(self, owner_id: str, slot: str, value: bytes) -> None:
        """Write (replace) an attribute. Last writer wins."""

    async def close(self) -> None:
        return None


__all__ = [
    "AttributeStore",
    "KEYRING_SLOT",
    "ED25519_PUBKEY_SLOT",
    "LONG_TERM_SIGNATURE_SLOT",
]
