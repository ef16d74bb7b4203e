"""
Exception taxonomy for the authring package.

Data-integrity and programming errors (unsupported key type, uninitialised
store, malformed ring blob, out-of-range integers) always propagate to the
caller. A failed signature check is *not* an error: ``verify_key`` returns
``False`` for it.
"""


class AuthringError(Exception):
    """Base class for all authring errors."""


class UnsupportedKeyTypeError(AuthringError, ValueError):
    """Key type outside of {Ed25519, RSA}."""


class UninitializedStoreError(AuthringError):
    """Trust store used before its ring was loaded."""


class MalformedRecordError(AuthringError, ValueError):
    """Persisted ring length is not a multiple of the record size."""


class FutureTimestampError(AuthringError):
    """Signature timestamp lies ahead of the local clock."""


class IntegerRangeExceededError(AuthringError, OverflowError):
    """Timestamp outside of the exact (53 bit) integer range."""


class InvalidFingerprintError(AuthringError, ValueError):
    """Fingerprint is neither 20 raw bytes nor 40 hex characters."""


class InvalidHandleError(AuthringError, ValueError):
    """Identity handle does not decode to exactly 8 bytes."""


class InvalidKeyMaterialError(AuthringError, ValueError):
    """Key material has the wrong shape for its key type."""


class TrustIndicatorError(AuthringError, ValueError):
    """Authentication method or key confidence does not fit into 4 bits."""


class AttributeStoreError(AuthringError):
    """External attribute store failure."""


class AttributeNotFoundError(AttributeStoreError):
    """Requested attribute slot does not exist."""

    def __init__(self, owner_id: str, slot: str):
        super().__init__(f"attribute {slot!r} not found for {owner_id!r}")
        self.owner_id = owner_id
        self.slot = slot


class MalformedSignatureError(AuthringError, ValueError):
    """Signature envelope too short to hold its timestamp."""


class BootstrapError(AuthringError):
    """Key setup ended in the failed state."""


__all__ = [
    "AuthringError",
    "UnsupportedKeyTypeError",
    "UninitializedStoreError",
    "MalformedRecordError",
    "FutureTimestampError",
    "MalformedSignatureError",
    "IntegerRangeExceededError",
    "InvalidFingerprintError",
    "InvalidHandleError",
    "InvalidKeyMaterialError",
    "TrustIndicatorError",
    "AttributeStoreError",
    "AttributeNotFoundError",
    "BootstrapError",
]
