import asyncio

from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from certichain.core.errors import (
    AlreadyRevokedError,
    DuplicateCommitmentError,
    LedgerRejectedError,
    NotFoundError,
    TransientLedgerError,
    UnauthorizedError,
)
from certichain.services.web3_ledger import translate_error


def test_revert_reasons_map_to_typed_errors():
    cases = [
        ("execution reverted: Auth: Caller is not an authorized institution", UnauthorizedError),
        ("execution reverted: Issue: Certificate with this data hash already exists", DuplicateCommitmentError),
        ("execution reverted: Revoke: Certificate is already revoked", AlreadyRevokedError),
        ("execution reverted: Revoke: Caller must be the issuer of this certificate", UnauthorizedError),
        ("execution reverted: Registry: Institution already active", LedgerRejectedError),
    ]
    for reason, kind in cases:
        err = translate_error(ContractLogicError(reason), "issueCertificate")
        assert isinstance(err, kind), reason
        assert reason in err.detail


def test_transport_failures_are_transient():
    assert isinstance(translate_error(asyncio.TimeoutError(), "call"), TransientLedgerError)
    assert isinstance(translate_error(ConnectionRefusedError(), "call"), TransientLedgerError)
    pending = translate_error(TimeExhausted("no receipt"), "issueCertificate")
    assert isinstance(pending, TransientLedgerError)
    assert "not yet final" in pending.message


def test_other_web3_errors_are_rejections():
    assert isinstance(translate_error(Web3Exception("bad"), "call"), LedgerRejectedError)


def test_public_message_is_truncated():
    err = translate_error(ContractLogicError("execution reverted: " + "x" * 500), "call")
    assert len(err.public_message(40)) <= 40
    assert len(err.detail) > 500


def test_unknown_institution_is_not_found():
    err = translate_error(ContractLogicError("execution reverted: Registry: Institution not registered"), "removeInstitution")
    assert isinstance(err, NotFoundError)
