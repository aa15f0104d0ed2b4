import asyncio

import pytest

from certichain.core.errors import InputValidationError, LedgerRejectedError, NotFoundError, UnauthorizedError
from certichain.services.hashing import data_commitment, fingerprint
from certichain.services.ledger import SENTINEL_RECORD_ID
from certichain.services.memory_ledger import InMemoryLedger
from certichain.services.registry import CommitmentRegistry, InstitutionRegistry

from conftest import INSTITUTION, OTHER_INSTITUTION, OWNER, STUDENT


def test_unknown_commitment_resolves_to_none(ledger, settings):
    registry = CommitmentRegistry(ledger, settings)
    commit = data_commitment("Nobody", "nobody@example.com", "None", 0)
    assert asyncio.run(ledger.get_certificate_by_commitment(commit)) == SENTINEL_RECORD_ID
    assert asyncio.run(registry.resolve_by_commitment(commit)) is None


def test_issued_commitment_resolves_to_record(ledger, settings):
    registry = CommitmentRegistry(ledger, settings)
    commit = data_commitment("Jane Doe", "jane@example.com", "Math", 1)
    issued = asyncio.run(
        ledger.issue_certificate(STUDENT, fingerprint("Jane Doe"), fingerprint("jane@example.com"), "Math", 1, "", commit)
    )
    assert issued.record_id >= 1
    assert asyncio.run(registry.resolve_by_commitment(commit)) == issued.record_id


def test_resolve_rejects_malformed_commitment(ledger, settings):
    registry = CommitmentRegistry(ledger, settings)
    with pytest.raises(InputValidationError):
        asyncio.run(registry.resolve_by_commitment(b"short"))


def test_memory_ledger_refuses_sentinel_as_first_id():
    with pytest.raises(ValueError):
        InMemoryLedger(OWNER, first_record_id=0)


def test_institution_admin_is_owner_only(owner_ledger, settings):
    institutions = InstitutionRegistry(owner_ledger, settings)
    asyncio.run(institutions.register(OTHER_INSTITUTION, "Other College"))
    assert asyncio.run(institutions.is_authorized(OTHER_INSTITUTION)) is True

    as_institution = InstitutionRegistry(owner_ledger.connect(INSTITUTION), settings)
    with pytest.raises(UnauthorizedError):
        asyncio.run(as_institution.remove(OTHER_INSTITUTION))

    asyncio.run(institutions.remove(OTHER_INSTITUTION))
    assert asyncio.run(institutions.is_authorized(OTHER_INSTITUTION)) is False
    listed = {s.address: s.is_active for s in asyncio.run(institutions.list_institutions())}
    assert listed == {INSTITUTION: True, OTHER_INSTITUTION: False}


def test_institution_registry_rejections(owner_ledger, settings):
    institutions = InstitutionRegistry(owner_ledger, settings)
    with pytest.raises(LedgerRejectedError):
        asyncio.run(institutions.register(INSTITUTION))
    with pytest.raises(NotFoundError):
        asyncio.run(institutions.remove(OTHER_INSTITUTION))
    with pytest.raises(InputValidationError):
        asyncio.run(institutions.register("not-an-address"))
    assert asyncio.run(institutions.owner()) == OWNER
