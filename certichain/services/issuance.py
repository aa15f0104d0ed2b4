"""Certificate issuance and revocation.

The commitment is computed here with the same function verifiers use, then
submitted together with the fingerprints. ``issue`` only returns after the
ledger has finalized the transaction; any failure before that point raises and
must not be read as success.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from certichain.core.config import Settings
from certichain.core.errors import CertichainError, InputValidationError
from certichain.core.metrics import LEDGER_WRITES
from certichain.services.hashing import (
    DateInput,
    commitment,
    enrollment_epoch_seconds,
    fingerprint,
    to_hex,
)
from certichain.services.ledger import Ledger, normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuanceReceipt:
    record_id: int
    tx_hash: str
    commitment: bytes

    @property
    def commitment_hex(self) -> str:
        return to_hex(self.commitment)


def _required(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError(f"{field} is required", field=field)
    return value


class IssuanceClient:
    def __init__(self, ledger: Ledger, settings: Settings):
        self.ledger = ledger
        self.settings = settings

    async def issue(
        self,
        subject_address: str,
        subject_name: str,
        subject_email: str,
        course: str,
        enrollment_date: DateInput,
        content_pointer: str = "",
    ) -> IssuanceReceipt:
        subject = normalize_address(subject_address, "subject_address")
        name = _required(subject_name, "subject_name")
        email = _required(subject_email, "subject_email")
        course = _required(course, "course")
        enrollment_seconds = enrollment_epoch_seconds(enrollment_date)
        pointer = (content_pointer or "").strip()

        # fingerprint the values exactly as entered; verifiers hash the same bytes
        name_digest = fingerprint(name)
        email_digest = fingerprint(email)
        commit = commitment(name_digest, email_digest, course, enrollment_seconds)

        try:
            issued = await self.ledger.issue_certificate(
                subject, name_digest, email_digest, course, enrollment_seconds, pointer, commit
            )
        except CertichainError as exc:
            LEDGER_WRITES.labels("issue", exc.code.lower()).inc()
            logger.warning("issuance rejected commitment=%s...: %s", to_hex(commit)[:10], exc.detail)
            raise

        LEDGER_WRITES.labels("issue", "ok").inc()
        logger.info("certificate %s issued tx=%s", issued.record_id, issued.tx_hash)
        return IssuanceReceipt(record_id=issued.record_id, tx_hash=issued.tx_hash, commitment=commit)

    async def revoke(self, record_id: int, reason: str) -> str:
        if isinstance(record_id, bool) or not isinstance(record_id, int) or record_id < 0:
            raise InputValidationError("record id must be a non-negative integer", field="record_id")
        reason = _required(reason, "reason").strip()
        try:
            tx_hash = await self.ledger.revoke_certificate(record_id, reason)
        except CertichainError as exc:
            LEDGER_WRITES.labels("revoke", exc.code.lower()).inc()
            logger.warning("revocation of %s rejected: %s", record_id, exc.detail)
            raise
        LEDGER_WRITES.labels("revoke", "ok").inc()
        logger.info("certificate %s revoked tx=%s", record_id, tx_hash)
        return tx_hash
