from datetime import date, datetime, timezone

import pytest
from web3 import Web3

from certichain.core.errors import InputValidationError
from certichain.services.hashing import (
    commitment,
    data_commitment,
    enrollment_epoch_seconds,
    fingerprint,
    packed_encoding,
    to_hex,
)


def test_fingerprint_is_keccak_of_utf8():
    assert fingerprint("Jane Doe") == bytes(Web3.keccak(b"Jane Doe"))
    assert len(fingerprint("")) == 32
    assert fingerprint("José") == bytes(Web3.keccak("José".encode("utf-8")))


def test_fingerprint_is_case_and_whitespace_sensitive():
    assert fingerprint("Jane Doe") != fingerprint("jane doe")
    assert fingerprint("Jane Doe") != fingerprint("Jane Doe ")


def test_fingerprint_rejects_non_string():
    with pytest.raises(InputValidationError):
        fingerprint(b"bytes")


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2020-09-01", 1598918400),
        (date(2020, 9, 1), 1598918400),
        (datetime(2020, 9, 1), 1598918400),
        (datetime(2020, 9, 1, 2, tzinfo=timezone.utc), 1598925600),
        ("2020-09-01T00:00:00Z", 1598918400),
        ("1598918400", 1598918400),
        (1598918400, 1598918400),
        (1598918400.9, 1598918400),
        (0, 0),
    ],
)
def test_enrollment_epoch_seconds(value, expected):
    assert enrollment_epoch_seconds(value) == expected


@pytest.mark.parametrize(
    "value", ["", "not a date", "2020-13-01", "\u00b2", "9" * 5000, -1, True, 2**256, float("nan"), None]
)
def test_enrollment_epoch_seconds_rejects(value):
    with pytest.raises(InputValidationError):
        enrollment_epoch_seconds(value)


def test_packed_encoding_layout():
    n, e = fingerprint("A"), fingerprint("B")
    packed = packed_encoding(n, e, "Math", 1)
    assert packed[:32] == n
    assert packed[32:64] == e
    assert packed[64:68] == b"Math"
    assert packed[68:] == (1).to_bytes(32, "big")
    assert commitment(n, e, "Math", 1) == bytes(Web3.keccak(packed))


def test_commitment_accepts_hex_digests():
    n, e = fingerprint("A"), fingerprint("B")
    assert commitment(to_hex(n), to_hex(e), "Math", 5) == commitment(n, e, "Math", 5)


def test_commitment_rejects_short_digest():
    with pytest.raises(InputValidationError):
        commitment(b"\x00" * 31, fingerprint("B"), "Math", 5)


def test_data_commitment_is_deterministic():
    a = data_commitment("Jane Doe", "jane@example.com", "BSc Computer Science", "2020-09-01")
    b = data_commitment("Jane Doe", "jane@example.com", "BSc Computer Science", 1598918400)
    assert a == b
    assert len(a) == 32


@pytest.mark.parametrize(
    "changed",
    [
        ("Jane Do", "jane@example.com", "BSc Computer Science", "2020-09-01"),
        ("Jane Doe", "jane@example.org", "BSc Computer Science", "2020-09-01"),
        ("Jane Doe", "jane@example.com", "BSc Computer Science ", "2020-09-01"),
        ("Jane Doe", "jane@example.com", "BSc Computer Science", "2020-09-02"),
    ],
)
def test_data_commitment_changes_with_any_field(changed):
    base = data_commitment("Jane Doe", "jane@example.com", "BSc Computer Science", "2020-09-01")
    assert data_commitment(*changed) != base


def test_course_boundary_does_not_collide():
    # the fixed-width integer after the course keeps the packing unambiguous
    n, e = fingerprint("A"), fingerprint("B")
    assert commitment(n, e, "Math1", 0) != commitment(n, e, "Math", 1)
