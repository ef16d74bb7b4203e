"""
authring Python Package

Contact key trust store: authentication rings recording which public key
fingerprint has been authenticated for each contact, by what method and with
what confidence, plus key fingerprinting and timestamped key attestations.
"""

__version__ = "0.1.0"

from .errors import (
    AuthringError,
    UnsupportedKeyTypeError,
    UninitializedStoreError,
    MalformedRecordError,
    MalformedSignatureError,
    FutureTimestampError,
    IntegerRangeExceededError,
    InvalidFingerprintError,
    InvalidHandleError,
    InvalidKeyMaterialError,
    TrustIndicatorError,
    AttributeStoreError,
    AttributeNotFoundError,
    BootstrapError,
)
from .keytypes import KeyType, rsa_key_material
from .codec import (
    AuthenticationMethod,
    KeyConfidence,
    TrustRecord,
    encode_handle,
    decode_handle,
    serialize,
    deserialize,
)
from .fingerprint import FingerprintFormat, compute_fingerprint, equal_fingerprints
from .attestation import KeyPair, new_key_pair, sign_key, verify_key, snapshot_metrics
from .config import AuthringConfig, create_attribute_store
from .truststore import TrustStore
from .identity import LocalIdentity
from .bootstrap import BootstrapController, BootstrapState, InitializationResult

# Import attributes package
from . import attributes

__all__ = [
    "AuthringError",
    "UnsupportedKeyTypeError",
    "UninitializedStoreError",
    "MalformedRecordError",
    "MalformedSignatureError",
    "FutureTimestampError",
    "IntegerRangeExceededError",
    "InvalidFingerprintError",
    "InvalidHandleError",
    "InvalidKeyMaterialError",
    "TrustIndicatorError",
    "AttributeStoreError",
    "AttributeNotFoundError",
    "BootstrapError",
    "KeyType",
    "rsa_key_material",
    "AuthenticationMethod",
    "KeyConfidence",
    "TrustRecord",
    "encode_handle",
    "decode_handle",
    "serialize",
    "deserialize",
    "FingerprintFormat",
    "compute_fingerprint",
    "equal_fingerprints",
    "KeyPair",
    "new_key_pair",
    "sign_key",
    "verify_key",
    "snapshot_metrics",
    "AuthringConfig",
    "create_attribute_store",
    "TrustStore",
    "LocalIdentity",
    "BootstrapController",
    "BootstrapState",
    "InitializationResult",
    "attributes",
]
