import asyncio

import pytest

from certichain.core.errors import InputValidationError
from certichain.services.issuance import IssuanceClient
from certichain.services.verification import (
    NO_MATCH_MESSAGE,
    NOT_ON_LEDGER_MESSAGE,
    ResolverState,
    VerdictStatus,
    VerificationResolver,
)

from conftest import INSTITUTION, JANE, STUDENT


def _issue(ledger, settings, **overrides):
    data = dict(JANE, **overrides)
    client = IssuanceClient(ledger, settings)
    return asyncio.run(
        client.issue(STUDENT, data["name"], data["email"], data["course"], data["enrollment_date"])
    )


def test_verify_by_id_valid(ledger, settings):
    receipt = _issue(ledger, settings)
    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_id(receipt.record_id))
    assert result.status is VerdictStatus.VALID
    assert result.state is ResolverState.DONE
    assert result.issuer_active is True
    assert result.is_authentic
    assert result.record.issuer == INSTITUTION


def test_verify_by_data_matches_exact_input(ledger, settings):
    receipt = _issue(ledger, settings)
    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_data(**JANE))
    assert result.status is VerdictStatus.VALID
    assert result.record.record_id == receipt.record_id


@pytest.mark.parametrize(
    "field,value",
    [
        ("name", "jane doe"),
        ("email", "jane@example.org"),
        ("course", "BSc Physics "),
        ("enrollment_date", "2020-09-02"),
    ],
)
def test_data_miss_is_generic(ledger, settings, field, value):
    _issue(ledger, settings)
    query = dict(JANE, **{field: value})
    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_data(**query))
    assert result.status is VerdictStatus.NOT_FOUND
    assert result.state is ResolverState.FAILED
    assert result.message == NO_MATCH_MESSAGE
    assert result.record is None
    assert field not in result.message.lower()


def test_unknown_id_is_not_found(ledger, settings):
    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_id(999))
    assert result.status is VerdictStatus.NOT_FOUND
    assert result.message == NOT_ON_LEDGER_MESSAGE


def test_sentinel_id_is_not_found(ledger, settings):
    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_id(0))
    assert result.status is VerdictStatus.NOT_FOUND


def test_removed_issuer_keeps_certificate_valid(owner_ledger, ledger, settings):
    receipt = _issue(ledger, settings)
    asyncio.run(owner_ledger.remove_institution(INSTITUTION))
    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_id(receipt.record_id))
    assert result.status is VerdictStatus.VALID_ISSUER_INACTIVE
    assert result.issuer_active is False
    assert result.is_authentic


def test_revoked_wins_over_issuer_status(owner_ledger, ledger, settings):
    receipt = _issue(ledger, settings)
    asyncio.run(IssuanceClient(ledger, settings).revoke(receipt.record_id, "Academic misconduct"))
    asyncio.run(owner_ledger.remove_institution(INSTITUTION))

    result = asyncio.run(VerificationResolver(ledger, settings).verify_by_data(**JANE))
    assert result.status is VerdictStatus.REVOKED
    assert result.record.revoke_reason == "Academic misconduct"
    assert result.issuer_active is None
    assert not result.is_authentic


def test_slow_ledger_gives_transient(ledger, settings):
    receipt = _issue(ledger, settings)
    ledger.read_delay = 0.2
    fast_timeout = settings.model_copy(update={"LEDGER_TIMEOUT_SECONDS": 0.05})
    resolver = VerificationResolver(ledger, fast_timeout)

    by_id = asyncio.run(resolver.verify_by_id(receipt.record_id))
    by_data = asyncio.run(resolver.verify_by_data(**JANE))
    assert by_id.status is VerdictStatus.TRANSIENT
    assert by_data.status is VerdictStatus.TRANSIENT
    assert by_data.message != NO_MATCH_MESSAGE


def test_bad_input_fails_before_ledger(ledger, settings):
    resolver = VerificationResolver(ledger, settings)
    with pytest.raises(InputValidationError):
        asyncio.run(resolver.verify_by_data("", "a@b", "c", 0))
    with pytest.raises(InputValidationError):
        asyncio.run(resolver.verify_by_data("a", "a@b", "c", "someday"))
    with pytest.raises(InputValidationError):
        asyncio.run(resolver.verify_by_id(-1))


def test_missing_record_reported_before_issuer_status(owner_ledger, ledger, settings):
    _issue(ledger, settings)
    asyncio.run(owner_ledger.remove_institution(INSTITUTION))
    resolver = VerificationResolver(ledger, settings)

    by_id = asyncio.run(resolver.verify_by_id(12345))
    assert by_id.status is VerdictStatus.NOT_FOUND
    assert by_id.message == NOT_ON_LEDGER_MESSAGE
    assert by_id.issuer_active is None

    by_data = asyncio.run(resolver.verify_by_data(**dict(JANE, email="jane@example.org")))
    assert by_data.status is VerdictStatus.NOT_FOUND
    assert by_data.message == NO_MATCH_MESSAGE
    assert by_data.issuer_active is None
