"""Privacy-preserving certificate commitments.

A certificate is looked up on the ledger by a commitment over the holder's
data instead of the data itself::

    commitment = keccak256(
        nameFingerprint (bytes32) || emailFingerprint (bytes32) ||
        utf8(course) || enrollmentDate (uint256, big-endian)
    )

with ``nameFingerprint = keccak256(utf8(name))`` and likewise for the e-mail.
The packing follows Solidity's ``abi.encodePacked``: no length prefixes and no
padding around the string. The course is the only variable-length field and is
followed by a fixed 32-byte integer, so distinct tuples never share a packed
form.

Issuers and verifiers must go through :func:`data_commitment` so that both
sides hash exactly the same bytes.
"""
from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Union

from web3 import Web3

from certichain.core.errors import InputValidationError

DIGEST_SIZE = 32
UINT256_MAX = 2**256 - 1
PACKED_TYPES = ["bytes32", "bytes32", "string", "uint256"]

DateInput = Union[int, float, str, date, datetime]


def fingerprint(value: str) -> bytes:
    """Keccak-256 of the UTF-8 bytes of ``value``."""
    if not isinstance(value, str):
        raise InputValidationError("fingerprint input must be a string")
    return bytes(Web3.keccak(text=value))


def enrollment_epoch_seconds(value: DateInput) -> int:
    """Whole seconds since the Unix epoch, sub-second part truncated.

    Date-only values (``date`` objects, ``YYYY-MM-DD`` strings) mean UTC
    midnight. Naive datetimes are read as UTC.
    """
    if isinstance(value, bool):
        raise InputValidationError("enrollment date must be a date, not a boolean", field="enrollment_date")

    if isinstance(value, int):
        seconds = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InputValidationError("enrollment date is not a finite number", field="enrollment_date")
        seconds = math.floor(value)
    elif isinstance(value, datetime):
        seconds = _datetime_seconds(value)
    elif isinstance(value, date):
        seconds = _datetime_seconds(datetime(value.year, value.month, value.day))
    elif isinstance(value, str):
        seconds = _parse_date_string(value)
    else:
        raise InputValidationError("unsupported enrollment date type", field="enrollment_date")

    if seconds < 0:
        raise InputValidationError("enrollment date precedes the Unix epoch", field="enrollment_date")
    if seconds > UINT256_MAX:
        raise InputValidationError("enrollment date does not fit in uint256", field="enrollment_date")
    return seconds


def _datetime_seconds(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return math.floor(value.timestamp())


def _parse_date_string(raw: str) -> int:
    text = raw.strip()
    if not text:
        raise InputValidationError("enrollment date is required", field="enrollment_date")
    try:
        if text.isascii() and text.isdigit():
            return int(text)
        if len(text) == 10:
            return _datetime_seconds(datetime.combine(date.fromisoformat(text), datetime.min.time()))
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        return _datetime_seconds(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        raise InputValidationError(f"invalid enrollment date: {raw!r}", field="enrollment_date") from None


def _digest(value: bytes, field: str) -> bytes:
    if isinstance(value, str):
        try:
            value = bytes(Web3.to_bytes(hexstr=value))
        except ValueError:
            raise InputValidationError(f"{field} is not a hex digest", field=field) from None
    if not isinstance(value, (bytes, bytearray)) or len(value) != DIGEST_SIZE:
        raise InputValidationError(f"{field} must be a {DIGEST_SIZE}-byte digest", field=field)
    return bytes(value)


def commitment(name_digest: bytes, email_digest: bytes, course: str, enrollment_seconds: int) -> bytes:
    """Keccak-256 over the packed (name, email, course, enrollment) tuple."""
    name_digest = _digest(name_digest, "name_digest")
    email_digest = _digest(email_digest, "email_digest")
    if not isinstance(course, str):
        raise InputValidationError("course must be a string", field="course")
    if isinstance(enrollment_seconds, bool) or not isinstance(enrollment_seconds, int):
        raise InputValidationError("enrollment date must be integer seconds", field="enrollment_date")
    if not 0 <= enrollment_seconds <= UINT256_MAX:
        raise InputValidationError("enrollment date out of uint256 range", field="enrollment_date")

    return bytes(
        Web3.solidity_keccak(PACKED_TYPES, [name_digest, email_digest, course, enrollment_seconds])
    )


def packed_encoding(name_digest: bytes, email_digest: bytes, course: str, enrollment_seconds: int) -> bytes:
    """The exact byte string :func:`commitment` hashes. Used for diagnostics and tests."""
    return (
        _digest(name_digest, "name_digest")
        + _digest(email_digest, "email_digest")
        + course.encode("utf-8")
        + enrollment_seconds.to_bytes(32, "big")
    )


def data_commitment(name: str, email: str, course: str, enrollment_date: DateInput) -> bytes:
    return commitment(
        fingerprint(name),
        fingerprint(email),
        course,
        enrollment_epoch_seconds(enrollment_date),
    )


def to_hex(digest: bytes) -> str:
    return "0x" + bytes(digest).hex()
