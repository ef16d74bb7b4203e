"""
Public key fingerprints.

A fingerprint is the SHA-256 digest of the shaped key material (see
``KeyType.shape``) truncated to its first 20 bytes.
"""

import hashlib
from enum import Enum
from typing import Optional, Union

from .codec import FINGERPRINT_SIZE, Fingerprint, fingerprint_to_bytes
from .errors import InvalidKeyMaterialError
from .keytypes import ED25519_KEY_LENGTH, KeyMaterial, KeyType


class FingerprintFormat(Enum):
    """Output representation of a fingerprint."""
    BINARY = "binary"  # 20 raw bytes
    HEX = "hex"        # 40 lowercase hex characters


def compute_fingerprint(
    key_material: KeyMaterial,
    key_type: Union[KeyType, str] = KeyType.ED25519,
    output_format: Union[FingerprintFormat, str] = FingerprintFormat.HEX,
) -> Fingerprint:
    """Compute the fingerprint of a public key.

    Args:
        key_material: 32 byte Ed25519 key, or ``(modulus, exponent)`` for RSA.
        key_type: Key family of ``key_material``.
        output_format: ``FingerprintFormat.HEX`` (default) or ``BINARY``.

    Raises:
        UnsupportedKeyTypeError: For key types other than Ed25519 and RSA.
        InvalidKeyMaterialError: If an Ed25519 key is not 32 bytes long.
    """
    key_type = KeyType.coerce(key_type)
    output_format = FingerprintFormat(output_format)
    value = key_type.shape(key_material)
    if key_type is KeyType.ED25519 and len(value) != ED25519_KEY_LENGTH:
        raise InvalidKeyMaterialError(f"Unexpected Ed25519 key length: {len(value)}")

    digest = hashlib.sha256(value).digest()[:FINGERPRINT_SIZE]
    if output_format is FingerprintFormat.BINARY:
        return digest
    return digest.hex()


def equal_fingerprints(fp1: Optional[Fingerprint], fp2: Optional[Fingerprint]) -> Optional[bool]:
    """Compare two fingerprints given in binary or hex form.

    Returns ``None`` if either fingerprint is missing. Callers must treat that
    as "unknown" and never as a mismatch.
    """
    if fp1 is None or fp2 is None:
        return None
    return fingerprint_to_bytes(fp1) == fingerprint_to_bytes(fp2)


__all__ = ["FingerprintFormat", "compute_fingerprint", "equal_fingerprints"]
