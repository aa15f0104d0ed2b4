"""Certificate verification.

Two entry points share one tail::

    IDLE --id--> FETCHING_BY_ID --found--> EVALUATING_TRUST --> DONE
    IDLE --data--> COMPUTING_COMMITMENT --> RESOLVING_ID --found--> FETCHING_BY_ID
                                                         --miss--> FAILED

Existence is settled before the issuer is looked at, and a revoked record is
reported as revoked whatever the issuer's status. Data-path misses always
produce the same generic message so the endpoint cannot be used to probe
which field was wrong.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from certichain.core.config import Settings
from certichain.core.errors import InputValidationError, TransientLedgerError
from certichain.core.metrics import VERDICTS
from certichain.services.hashing import DateInput, data_commitment, to_hex
from certichain.services.ledger import CertificateRecord, Ledger, bounded
from certichain.services.metadata import MetadataStore
from certichain.services.registry import CommitmentRegistry, InstitutionRegistry

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = "No certificate found for the supplied data."
NOT_ON_LEDGER_MESSAGE = "Certificate not found on ledger."
TRANSIENT_MESSAGE = "The ledger could not be reached. Please try again."


class VerdictStatus(str, Enum):
    VALID = "valid"
    VALID_ISSUER_INACTIVE = "valid_issuer_inactive"
    REVOKED = "revoked"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"


class ResolverState(str, Enum):
    IDLE = "idle"
    FETCHING_BY_ID = "fetching_by_id"
    COMPUTING_COMMITMENT = "computing_commitment"
    RESOLVING_ID = "resolving_id"
    EVALUATING_TRUST = "evaluating_trust"
    DONE = "done"
    FAILED = "failed"


_MESSAGES = {
    VerdictStatus.VALID: "Certificate is valid.",
    VerdictStatus.VALID_ISSUER_INACTIVE: "Certificate is valid, but the issuing institution is no longer active.",
    VerdictStatus.REVOKED: "Certificate has been revoked.",
}


@dataclass(frozen=True)
class Verification:
    status: VerdictStatus
    state: ResolverState
    message: str
    record: Optional[CertificateRecord] = None
    issuer_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def is_authentic(self) -> bool:
        return self.status in (VerdictStatus.VALID, VerdictStatus.VALID_ISSUER_INACTIVE)


class VerificationResolver:
    def __init__(self, ledger: Ledger, settings: Settings, metadata: Optional[MetadataStore] = None):
        self.ledger = ledger
        self.settings = settings
        self.metadata = metadata
        self.commitments = CommitmentRegistry(ledger, settings)
        self.institutions = InstitutionRegistry(ledger, settings)

    async def verify_by_id(self, record_id: int) -> Verification:
        if isinstance(record_id, bool) or not isinstance(record_id, int) or record_id < 0:
            raise InputValidationError("certificate id must be a non-negative integer", field="record_id")
        try:
            result = await self._fetch_and_evaluate(record_id, NOT_ON_LEDGER_MESSAGE)
        except TransientLedgerError as exc:
            result = self._transient(exc)
        return self._finish(result, f"id={record_id}")

    async def verify_by_data(self, name: str, email: str, course: str, enrollment_date: DateInput) -> Verification:
        # COMPUTING_COMMITMENT: bad input fails here, before any ledger call
        for field, value in (("name", name), ("email", email), ("course", course)):
            if not isinstance(value, str) or not value.strip():
                raise InputValidationError(f"{field} is required", field=field)
        commit = data_commitment(name, email, course, enrollment_date)
        label = f"commitment={to_hex(commit)[:10]}..."

        try:
            record_id = await self.commitments.resolve_by_commitment(commit)
            if record_id is None:
                result = self._failed(NO_MATCH_MESSAGE)
            else:
                # a dangling index entry reads the same as no match
                result = await self._fetch_and_evaluate(record_id, NO_MATCH_MESSAGE)
        except TransientLedgerError as exc:
            result = self._transient(exc)
        return self._finish(result, label)

    async def _fetch_and_evaluate(self, record_id: int, not_found_message: str) -> Verification:
        record = await bounded(
            self.ledger.get_certificate(record_id),
            self.settings.LEDGER_TIMEOUT_SECONDS,
            "getCertificate",
        )
        if record is None:
            return self._failed(not_found_message)

        # EVALUATING_TRUST
        meta_task = asyncio.ensure_future(self._metadata(record.content_pointer))
        if not record.is_valid:
            return Verification(
                status=VerdictStatus.REVOKED,
                state=ResolverState.DONE,
                message=_MESSAGES[VerdictStatus.REVOKED],
                record=record,
                metadata=await meta_task,
            )
        try:
            issuer_active = await self.institutions.is_authorized(record.issuer)
        except BaseException:
            meta_task.cancel()
            raise
        status = VerdictStatus.VALID if issuer_active else VerdictStatus.VALID_ISSUER_INACTIVE
        return Verification(
            status=status,
            state=ResolverState.DONE,
            message=_MESSAGES[status],
            record=record,
            issuer_active=issuer_active,
            metadata=await meta_task,
        )

    async def _metadata(self, pointer: str) -> Optional[Dict[str, Any]]:
        if self.metadata is None:
            return None
        return await self.metadata.fetch(pointer)

    @staticmethod
    def _failed(message: str) -> Verification:
        return Verification(status=VerdictStatus.NOT_FOUND, state=ResolverState.FAILED, message=message)

    @staticmethod
    def _transient(exc: TransientLedgerError) -> Verification:
        logger.warning("verification interrupted: %s", exc.detail)
        return Verification(status=VerdictStatus.TRANSIENT, state=ResolverState.FAILED, message=TRANSIENT_MESSAGE)

    @staticmethod
    def _finish(result: Verification, label: str) -> Verification:
        VERDICTS.labels(result.status.value).inc()
        logger.info("verification %s -> %s", label, result.status.value)
        return result


class VerificationSession:
    """Latest-wins holder for one caller's successive verifications.

    Submitting a new query cancels the one in flight. A result that belongs to
    a superseded query is dropped (``None`` is returned) and never becomes
    :attr:`current`.
    """

    def __init__(self, resolver: VerificationResolver):
        self.resolver = resolver
        self.current: Optional[Verification] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    async def verify_by_id(self, record_id: int) -> Optional[Verification]:
        return await self._submit(lambda: self.resolver.verify_by_id(record_id))

    async def verify_by_data(self, name: str, email: str, course: str, enrollment_date: DateInput) -> Optional[Verification]:
        return await self._submit(lambda: self.resolver.verify_by_data(name, email, course, enrollment_date))

    async def _submit(self, factory: Callable[[], Awaitable[Verification]]) -> Optional[Verification]:
        self._cancel_in_flight()
        self._generation += 1
        generation = self._generation
        self.current = None
        task = asyncio.ensure_future(factory())
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return None
            raise
        if generation != self._generation:
            return None
        self.current = result
        self._task = None
        return result

    def _cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def close(self) -> None:
        """Drop whatever is in flight; late results are discarded."""
        self._cancel_in_flight()
        self._generation += 1
        self.current = None
