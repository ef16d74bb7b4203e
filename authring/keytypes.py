"""
Key types tracked by the authentication rings.

``KeyType`` is a closed enumeration. Everything that differs per key type
(the attribute slot a ring is persisted under and how key material is shaped
before hashing or signing) lives in the ``_KEY_TYPE_TABLE`` below, so adding a
key type means adding one enum member and one table row.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence, Tuple, Union

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from .errors import InvalidKeyMaterialError, UnsupportedKeyTypeError

# Ed25519: raw 32 byte key. RSA: (modulus, exponent) as big-endian byte strings.
KeyMaterial = Union[bytes, Sequence[bytes], Ed25519PublicKey, RSAPublicKey]

ED25519_KEY_LENGTH = 32


class KeyType(Enum):
    """Cryptographic key family a trust record pertains to."""
    ED25519 = "Ed25519"
    RSA = "RSA"

    @classmethod
    def coerce(cls, value: Union["KeyType", str]) -> "KeyType":
        """Accept a ``KeyType`` or its string name, reject anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedKeyTypeError(f"Unsupported key type: {value!r}") from None

    @property
    def slot_name(self) -> str:
        """Attribute slot the ring for this key type is persisted under."""
        return _KEY_TYPE_TABLE[self].slot_name

    def shape(self, key_material: KeyMaterial) -> bytes:
        """Flatten key material into the byte string that gets hashed or signed."""
        return _KEY_TYPE_TABLE[self].shape(key_material)


def rsa_key_material(public_key: RSAPublicKey) -> Tuple[bytes, bytes]:
    """Return the (modulus, exponent) byte strings of an RSA public key."""
    numbers = public_key.public_numbers()
    return _int_to_bytes(numbers.n), _int_to_bytes(numbers.e)


def _int_to_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8 or 1, "big")


def _shape_ed25519(key_material: KeyMaterial) -> bytes:
    if isinstance(key_material, Ed25519PublicKey):
        return key_material.public_bytes_raw()
    if isinstance(key_material, (bytes, bytearray, memoryview)):
        return bytes(key_material)
    raise InvalidKeyMaterialError(
        f"Ed25519 key material must be bytes, got {type(key_material).__name__}"
    )


def _shape_rsa(key_material: KeyMaterial) -> bytes:
    if isinstance(key_material, RSAPublicKey):
        key_material = rsa_key_material(key_material)
    if not isinstance(key_material, (tuple, list)) or len(key_material) != 2:
        raise InvalidKeyMaterialError("RSA key material must be a (modulus, exponent) pair")
    modulus, exponent = key_material
    return bytes(modulus) + bytes(exponent)


@dataclass(frozen=True)
class _KeyTypeTraits:
    slot_name: str
    shape: Callable[[KeyMaterial], bytes]


_KEY_TYPE_TABLE = {
    KeyType.ED25519: _KeyTypeTraits(slot_name="authring", shape=_shape_ed25519),
    KeyType.RSA: _KeyTypeTraits(slot_name="authRSA", shape=_shape_rsa),
}


__all__ = [
    "KeyType",
    "KeyMaterial",
    "ED25519_KEY_LENGTH",
    "rsa_key_material",
]
