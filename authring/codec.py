"""
Binary codec for authentication rings.

A ring is a flat concatenation of fixed width records, no header, no length
prefix and no checksum. Each record is 29 bytes::

    +----------------+----------------------+-----------------+
    | handle (8)     | fingerprint (20)     | indicator (1)   |
    +----------------+----------------------+-----------------+

The indicator byte packs ``(confidence << 4) | method``. An empty byte string
is an empty ring.

Handles travel on the wire as their 8 raw bytes and are exchanged everywhere
else as unpadded base64url text (11 characters); collections are keyed by the
text form.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Tuple, Union

from .errors import (
    InvalidFingerprintError,
    InvalidHandleError,
    MalformedRecordError,
    TrustIndicatorError,
)

HANDLE_SIZE = 8
FINGERPRINT_SIZE = 20
RECORD_SIZE = HANDLE_SIZE + FINGERPRINT_SIZE + 1

Fingerprint = Union[bytes, str]
Handle = Union[str, bytes]


class AuthenticationMethod(IntEnum):
    """How a trust record was established. Values must fit into 4 bits."""
    SEEN = 0x00  # Fingerprint recorded to detect future changes
    FINGERPRINT_COMPARISON = 0x01  # Direct/full fingerprint comparison
    SIGNATURE_VERIFIED = 0x02  # Key signature verified


class KeyConfidence(IntEnum):
    """Confidence in a contact's key. Values must fit into 4 bits."""
    UNSURE = 0x00


@dataclass(frozen=True)
class TrustRecord:
    """Stored belief about a contact's key fingerprint.

    ``method`` and ``confidence`` are enum members for known values and plain
    ints for reserved ones, which are kept as-is so records written by newer
    code survive a load/save cycle.
    """
    fingerprint: bytes
    method: int = AuthenticationMethod.SEEN
    confidence: int = KeyConfidence.UNSURE

    @property
    def fingerprint_hex(self) -> str:
        return self.fingerprint.hex()


TrustCollection = Dict[str, TrustRecord]


def encode_handle(raw: bytes) -> str:
    """Text form (unpadded base64url) of an 8 byte handle."""
    if len(raw) != HANDLE_SIZE:
        raise InvalidHandleError(f"handle must be {HANDLE_SIZE} bytes, got {len(raw)}")
    return base64.urlsafe_b64encode(bytes(raw)).rstrip(b"=").decode("ascii")


def decode_handle(handle: Handle) -> bytes:
    """Raw 8 byte form of a handle given as text or bytes."""
    if isinstance(handle, (bytes, bytearray, memoryview)):
        raw = bytes(handle)
    else:
        try:
            raw = base64.urlsafe_b64decode(handle + "=" * (-len(handle) % 4))
        except (binascii.Error, ValueError) as e:
            raise InvalidHandleError(f"undecodable handle {handle!r}: {e}") from e
    if len(raw) != HANDLE_SIZE:
        raise InvalidHandleError(f"handle must decode to {HANDLE_SIZE} bytes, got {len(raw)}")
    return raw


def fingerprint_to_bytes(fingerprint: Fingerprint) -> bytes:
    """Normalise a fingerprint to its 20 byte binary form.

    Anything that is not already 20 bytes long is taken to be hex.
    """
    if isinstance(fingerprint, (bytes, bytearray, memoryview)):
        if len(fingerprint) == FINGERPRINT_SIZE:
            return bytes(fingerprint)
        try:
            fingerprint = bytes(fingerprint).decode("ascii")
        except UnicodeDecodeError:
            raise InvalidFingerprintError(
                f"fingerprint must be {FINGERPRINT_SIZE} bytes or hex, got {len(fingerprint)} bytes"
            ) from None
    if len(fingerprint) != FINGERPRINT_SIZE * 2:
        raise InvalidFingerprintError(
            f"hex fingerprint must be {FINGERPRINT_SIZE * 2} characters, got {len(fingerprint)}"
        )
    try:
        raw = bytes.fromhex(fingerprint)
    except ValueError as e:
        raise InvalidFingerprintError(f"invalid hex fingerprint: {e}") from e
    if len(raw) != FINGERPRINT_SIZE:
        raise InvalidFingerprintError(f"invalid hex fingerprint: {fingerprint!r}")
    return raw


def pack_trust_indicator(method: int, confidence: int) -> int:
    for name, value in (("method", method), ("confidence", confidence)):
        if not 0 <= int(value) <= 0x0F:
            raise TrustIndicatorError(f"{name} {value} does not fit into 4 bits")
    return (int(confidence) << 4) | int(method)


def unpack_trust_indicator(indicator: int) -> Tuple[int, int]:
    """Return ``(method, confidence)`` from a packed indicator byte."""
    method = indicator & 0x0F
    confidence = (indicator >> 4) & 0x0F
    return _known(AuthenticationMethod, method), _known(KeyConfidence, confidence)


def _known(enum_cls, value: int) -> int:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def serialize_record(handle: Handle, fingerprint: Fingerprint, method: int, confidence: int) -> bytes:
    """Serialise a single authentication record to exactly 29 bytes."""
    return (
        decode_handle(handle)
        + fingerprint_to_bytes(fingerprint)
        + bytes([pack_trust_indicator(method, confidence)])
    )


def serialize(collection: TrustCollection) -> bytes:
    """Serialise a whole ring. Record order carries no meaning."""
    return b"".join(
        serialize_record(handle, record.fingerprint, record.method, record.confidence)
        for handle, record in collection.items()
    )


def deserialize_record(data: bytes) -> Tuple[str, TrustRecord, bytes]:
    """Split one record off the front of ``data``.

    Returns the handle (text form), the decoded record and the remainder.
    """
    if len(data) < RECORD_SIZE:
        raise MalformedRecordError(
            f"truncated record: {len(data)} bytes left, {RECORD_SIZE} needed"
        )
    handle = encode_handle(bytes(data[:HANDLE_SIZE]))
    fingerprint = bytes(data[HANDLE_SIZE:HANDLE_SIZE + FINGERPRINT_SIZE])
    method, confidence = unpack_trust_indicator(data[RECORD_SIZE - 1])
    record = TrustRecord(fingerprint=fingerprint, method=method, confidence=confidence)
    return handle, record, data[RECORD_SIZE:]


def deserialize(data: bytes) -> TrustCollection:
    """Decode a serialised ring into a collection keyed by handle."""
    if len(data) % RECORD_SIZE:
        raise MalformedRecordError(
            f"ring length {len(data)} is not a multiple of {RECORD_SIZE}"
        )
    collection: TrustCollection = {}
    rest = memoryview(bytes(data))
    while len(rest) > 0:
        handle, record, rest = deserialize_record(rest)
        collection[handle] = record
    return collection


__all__ = [
    "HANDLE_SIZE",
    "FINGERPRINT_SIZE",
    "RECORD_SIZE",
    "AuthenticationMethod",
    "KeyConfidence",
    "TrustRecord",
    "TrustCollection",
    "encode_handle",
    "decode_handle",
    "fingerprint_to_bytes",
    "pack_trust_indicator",
    "unpack_trust_indicator",
    "serialize_record",
    "serialize",
    "deserialize_record",
    "deserialize",
]
