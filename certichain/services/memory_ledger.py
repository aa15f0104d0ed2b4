"""In-process ledger with the registry and certificate contract rules.

Used for local development (``LEDGER_BACKEND=memory``) and as the test
ledger. Record ids start at 1 so that the lookup sentinel 0 never names a
real certificate.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from web3 import Web3

from certichain.core.errors import (
    AlreadyRevokedError,
    DuplicateCommitmentError,
    InputValidationError,
    LedgerRejectedError,
    NotFoundError,
    UnauthorizedError,
)
from certichain.services.hashing import to_hex
from certichain.services.ledger import (
    SENTINEL_RECORD_ID,
    CertificateRecord,
    IssuedCertificate,
    Ledger,
    LedgerEvent,
    LedgerEventKind,
    normalize_address,
)


@dataclass
class _State:
    owner: str
    next_record_id: int
    clock: Callable[[], float]
    institutions: Dict[str, bool] = field(default_factory=dict)
    institution_names: Dict[str, str] = field(default_factory=dict)
    all_institutions: List[str] = field(default_factory=list)
    records: Dict[int, CertificateRecord] = field(default_factory=dict)
    holders: Dict[int, str] = field(default_factory=dict)
    by_commitment: Dict[bytes, int] = field(default_factory=dict)
    events: List[LedgerEvent] = field(default_factory=list)
    block: int = 0


class InMemoryLedger(Ledger):
    def __init__(
        self,
        owner: str,
        *,
        account: Optional[str] = None,
        first_record_id: int = 1,
        clock: Callable[[], float] = time.time,
        read_delay: float = 0.0,
        _state: Optional[_State] = None,
    ):
        if _state is None:
            if first_record_id <= SENTINEL_RECORD_ID:
                raise ValueError("first_record_id must be above the lookup sentinel")
            _state = _State(owner=normalize_address(owner, "owner"), next_record_id=first_record_id, clock=clock)
        self._state = _state
        self._account = normalize_address(account or _state.owner, "account")
        self.read_delay = read_delay

    def connect(self, account: str) -> "InMemoryLedger":
        """A view of the same ledger that sends writes from ``account``."""
        return InMemoryLedger(self._state.owner, account=account, read_delay=self.read_delay, _state=self._state)

    @property
    def account(self) -> str:
        return self._account

    def holder_of(self, record_id: int) -> Optional[str]:
        return self._state.holders.get(record_id)

    async def _read(self) -> None:
        await asyncio.sleep(self.read_delay)

    def _emit(self, kind: LedgerEventKind, **kwargs) -> str:
        st = self._state
        st.block += 1
        tx_hash = to_hex(Web3.keccak(text=f"memory-tx:{st.block}"))
        st.events.append(LedgerEvent(kind=kind, block_number=st.block, tx_hash=tx_hash, log_index=0, **kwargs))
        return tx_hash

    def _require_owner(self) -> None:
        if self._account != self._state.owner:
            raise UnauthorizedError(
                "Only the registry owner can manage institutions.",
                detail=f"OwnableUnauthorizedAccount({self._account})",
            )

    # registry ------------------------------------------------------------

    async def is_authorized_institution(self, address: str) -> bool:
        await self._read()
        return self._state.institutions.get(normalize_address(address), False)

    async def get_owner(self) -> str:
        await self._read()
        return self._state.owner

    async def get_all_institutions(self) -> List[str]:
        await self._read()
        return list(self._state.all_institutions)

    async def register_institution(self, address: str, name: str = "") -> str:
        self._require_owner()
        address = normalize_address(address)
        st = self._state
        if int(address, 16) == 0:
            raise LedgerRejectedError("Invalid institution address.", detail="Registry: Invalid institution address")
        if st.institutions.get(address):
            raise LedgerRejectedError("Institution already active.", detail="Registry: Institution already active")
        st.institutions[address] = True
        st.institution_names[address] = name
        if address not in st.all_institutions:
            st.all_institutions.append(address)
        return self._emit(LedgerEventKind.INSTITUTION_REGISTERED, institution=address)

    async def remove_institution(self, address: str) -> str:
        self._require_owner()
        address = normalize_address(address)
        if not self._state.institutions.get(address):
            raise NotFoundError("Institution not registered.", detail="Registry: Institution not registered")
        self._state.institutions[address] = False
        return self._emit(LedgerEventKind.INSTITUTION_REMOVED, institution=address)

    # certificates --------------------------------------------------------

    async def issue_certificate(
        self,
        subject: str,
        name_digest: bytes,
        email_digest: bytes,
        course: str,
        enrollment_date: int,
        content_pointer: str,
        commitment: bytes,
    ) -> IssuedCertificate:
        st = self._state
        if not st.institutions.get(self._account):
            raise UnauthorizedError(
                "Caller is not an authorized institution.",
                detail="Auth: Caller is not an authorized institution",
            )
        commitment = bytes(commitment)
        if len(commitment) != 32:
            raise InputValidationError("commitment must be 32 bytes", field="commitment")
        if st.by_commitment.get(commitment, SENTINEL_RECORD_ID) != SENTINEL_RECORD_ID:
            raise DuplicateCommitmentError(
                "A certificate with this data has already been issued.",
                detail="Issue: Certificate with this data hash already exists",
            )

        record_id = st.next_record_id
        st.next_record_id += 1
        st.records[record_id] = CertificateRecord(
            record_id=record_id,
            issuer=self._account,
            subject_name_fingerprint=bytes(name_digest),
            subject_email_fingerprint=bytes(email_digest),
            course=course,
            issue_date=int(st.clock()),
            enrollment_date=enrollment_date,
            is_valid=True,
            revoke_reason="",
            content_pointer=content_pointer,
        )
        st.holders[record_id] = normalize_address(subject, "subject")
        st.by_commitment[commitment] = record_id
        tx_hash = self._emit(
            LedgerEventKind.ISSUED,
            record_id=record_id,
            issuer=self._account,
            subject=st.holders[record_id],
            commitment=to_hex(commitment),
        )
        return IssuedCertificate(record_id=record_id, tx_hash=tx_hash)

    async def revoke_certificate(self, record_id: int, reason: str) -> str:
        st = self._state
        record = st.records.get(record_id)
        if record is None or record.issuer != self._account:
            raise UnauthorizedError(
                "Only the issuing institution can revoke this certificate.",
                detail="Revoke: Caller must be the issuer of this certificate",
            )
        if not record.is_valid:
            raise AlreadyRevokedError(
                "Certificate is already revoked.",
                detail="Revoke: Certificate is already revoked",
            )
        st.records[record_id] = replace(record, is_valid=False, revoke_reason=reason)
        return self._emit(LedgerEventKind.REVOKED, record_id=record_id, reason=reason)

    async def get_certificate(self, record_id: int) -> Optional[CertificateRecord]:
        await self._read()
        return self._state.records.get(record_id)

    async def get_certificate_by_commitment(self, commitment: bytes) -> int:
        await self._read()
        return self._state.by_commitment.get(bytes(commitment), SENTINEL_RECORD_ID)

    # events --------------------------------------------------------------

    async def latest_block(self) -> int:
        await self._read()
        return self._state.block

    async def get_events(self, from_block: int, to_block: int) -> List[LedgerEvent]:
        await self._read()
        return [ev for ev in self._state.events if from_block <= ev.block_number <= to_block]
