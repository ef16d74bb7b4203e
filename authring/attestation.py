"""
Key attestations: timestamped Ed25519 signatures over public keys.

An attestation envelope is ``timestamp (8 bytes, big-endian) || signature``.
The signed message is ``prefix || timestamp || shaped key material`` where
the prefix is the domain separation literal ``b"keyauth"`` and the key
material is shaped per ``KeyType.shape`` (RSA: modulus || exponent).

Verification rejects timestamps ahead of the local clock with
``FutureTimestampError``. That is a sanity bound on the signer's clock, not a
replay protection scheme.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from .errors import FutureTimestampError, IntegerRangeExceededError, MalformedSignatureError
from .fingerprint import compute_fingerprint
from .keytypes import KeyMaterial, KeyType
from .monitoring import get_registry

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = b"keyauth"
TIMESTAMP_SIZE = 8
# Largest integer the envelope timestamp may carry (2**53 - 1).
MAX_SAFE_INTEGER = 9007199254740991

Clock = Callable[[], float]


@dataclass
class KeyPair:
    """Wraps an ed25519 signing key pair."""
    public: Ed25519PublicKey
    private: Ed25519PrivateKey
    key_id: str

    @classmethod
    def from_private_key(cls, private_key: Ed25519PrivateKey) -> "KeyPair":
        public_key = private_key.public_key()
        fingerprint = compute_fingerprint(public_key.public_bytes_raw(), KeyType.ED25519)
        return cls(public=public_key, private=private_key, key_id=f"ed25519-{fingerprint[:16]}")

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeyPair":
        """Rebuild a key pair from its 32 byte private seed."""
        return cls.from_private_key(Ed25519PrivateKey.from_private_bytes(seed))

    @property
    def public_bytes(self) -> bytes:
        return self.public.public_bytes_raw()

    @property
    def seed(self) -> bytes:
        return self.private.private_bytes_raw()


# Metrics counters (thread-safe)
_metrics_lock = threading.Lock()
_metric_signed = 0
_metric_verified = 0
_metric_verify_failures = 0
_metric_future_timestamps = 0


def new_key_pair() -> KeyPair:
    """Generate a new ed25519 key pair."""
    return KeyPair.from_private_key(Ed25519PrivateKey.generate())


def current_timestamp(clock: Clock = time.time) -> int:
    """Whole seconds since the epoch, rounded half up."""
    return int(math.floor(clock() + 0.5))


def long_to_bytes(value: int) -> bytes:
    """Encode an unsigned integer as 8 big-endian bytes."""
    if value < 0 or value > MAX_SAFE_INTEGER:
        raise IntegerRangeExceededError(f"{value} is outside of the exact integer range")
    return value.to_bytes(TIMESTAMP_SIZE, "big")


def bytes_to_long(sequence: bytes) -> int:
    """Decode 8 big-endian bytes into an unsigned integer."""
    if len(sequence) != TIMESTAMP_SIZE:
        raise MalformedSignatureError(f"timestamp must be {TIMESTAMP_SIZE} bytes, got {len(sequence)}")
    value = int.from_bytes(sequence, "big")
    if value > MAX_SAFE_INTEGER:
        raise IntegerRangeExceededError(f"{value} is outside of the exact integer range")
    return value


def signed_message(
    timestamp: bytes,
    key_material: KeyMaterial,
    key_type: KeyType,
    prefix: bytes = SIGNATURE_PREFIX,
) -> bytes:
    return prefix + timestamp + key_type.shape(key_material)


def sign_key(
    key_material: KeyMaterial,
    key_type: Union[KeyType, str],
    key_pair: KeyPair,
    clock: Clock = time.time,
    prefix: bytes = SIGNATURE_PREFIX,
) -> bytes:
    """Sign a public key with our own Ed25519 key.

    Args:
        key_material: Key to attest (32 bytes for Ed25519, (modulus, exponent) for RSA).
        key_type: Key family of ``key_material``.
        key_pair: Local signing key pair.
        clock: Wall clock returning seconds since the epoch.

    Returns:
        The attestation envelope, ``timestamp || signature``.
    """
    global _metric_signed

    if key_pair is None:
        raise ValueError("nil key pair")
    key_type = KeyType.coerce(key_type)
    timestamp = long_to_bytes(current_timestamp(clock))
    signature = key_pair.private.sign(signed_message(timestamp, key_material, key_type, prefix))

    with _metrics_lock:
        _metric_signed += 1
    get_registry().observe_signature(key_type.value)
    logger.debug("Signed %s key with %s", key_type.value, key_pair.key_id)
    return timestamp + signature


def verify_key(
    signature: bytes,
    key_material: KeyMaterial,
    key_type: Union[KeyType, str],
    signer_public_key: Union[Ed25519PublicKey, bytes],
    clock: Clock = time.time,
    prefix: bytes = SIGNATURE_PREFIX,
) -> bool:
    """Verify a key attestation against the signer's Ed25519 public key.

    Returns:
        ``True`` for a good signature, ``False`` for any bad one.

    Raises:
        FutureTimestampError: If the envelope's timestamp is ahead of ``clock``.
        MalformedSignatureError: If the envelope cannot hold a timestamp.
        UnsupportedKeyTypeError: For key types other than Ed25519 and RSA.
    """
    global _metric_verified, _metric_verify_failures, _metric_future_timestamps

    key_type = KeyType.coerce(key_type)
    registry = get_registry()
    timestamp = bytes(signature[:TIMESTAMP_SIZE])
    timestamp_value = bytes_to_long(timestamp)
    if timestamp_value > current_timestamp(clock):
        with _metrics_lock:
            _metric_future_timestamps += 1
        registry.observe_verification(key_type.value, "future_timestamp")
        raise FutureTimestampError(f"Bad timestamp {timestamp_value}: in the future")

    if isinstance(signer_public_key, (bytes, bytearray)):
        signer_public_key = Ed25519PublicKey.from_public_bytes(bytes(signer_public_key))

    try:
        signer_public_key.verify(
            bytes(signature[TIMESTAMP_SIZE:]),
            signed_message(timestamp, key_material, key_type, prefix),
        )
    except InvalidSignature:
        with _metrics_lock:
            _metric_verify_failures += 1
        registry.observe_verification(key_type.value, "invalid")
        logger.debug("Bad %s key signature", key_type.value)
        return False

    with _metrics_lock:
        _metric_verified += 1
    registry.observe_verification(key_type.value, "valid")
    return True


def snapshot_metrics() -> Dict[str, int]:
    """Return current attestation metric counters."""
    with _metrics_lock:
        return {
            "signatures_created_total": _metric_signed,
            "signatures_verified_total": _metric_verified,
            "signature_verify_fail_total": _metric_verify_failures,
            "signature_future_timestamp_total": _metric_future_timestamps,
        }


__all__ = [
    "SIGNATURE_PREFIX",
    "TIMESTAMP_SIZE",
    "MAX_SAFE_INTEGER",
    "KeyPair",
    "new_key_pair",
    "current_timestamp",
    "long_to_bytes",
    "bytes_to_long",
    "signed_message",
    "sign_key",
    "verify_key",
    "snapshot_metrics",
]
