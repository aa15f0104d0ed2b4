"""Ledger interface consumed by the certificate clients.

The ledger is the pair of deployed contracts (institution registry and the
soul-bound certificate token). :class:`Ledger` describes the operations this
service relies on; ``web3_ledger`` talks to a real chain and
``memory_ledger`` enforces the same rules in-process.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, List, Optional, TypeVar

from web3 import Web3

from certichain.core.errors import InputValidationError, TransientLedgerError

T = TypeVar("T")

# getCertificateByHash returns 0 for "no entry"
SENTINEL_RECORD_ID = 0
ZERO_ADDRESS = "0x" + "0" * 40


def normalize_address(value: str, field: str = "address") -> str:
    if not isinstance(value, str) or not Web3.is_address(value.strip()):
        raise InputValidationError(f"{field} is not a valid address", field=field)
    return Web3.to_checksum_address(value.strip())


async def bounded(awaitable: Awaitable[T], seconds: float, what: str) -> T:
    """Await a ledger call with a bounded wait; timeouts become transient errors."""
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise TransientLedgerError(
            "The ledger did not answer in time.",
            detail=f"{what} timed out after {seconds:g}s",
        ) from None


@dataclass(frozen=True)
class CertificateRecord:
    record_id: int
    issuer: str
    subject_name_fingerprint: bytes
    subject_email_fingerprint: bytes
    course: str
    issue_date: int
    enrollment_date: int
    is_valid: bool
    revoke_reason: str = ""
    content_pointer: str = ""


@dataclass(frozen=True)
class IssuedCertificate:
    record_id: int
    tx_hash: str


class LedgerEventKind(str, Enum):
    ISSUED = "issued"
    REVOKED = "revoked"
    INSTITUTION_REGISTERED = "institution_registered"
    INSTITUTION_REMOVED = "institution_removed"


@dataclass(frozen=True)
class LedgerEvent:
    kind: LedgerEventKind
    block_number: int
    tx_hash: str
    log_index: int
    record_id: Optional[int] = None
    issuer: Optional[str] = None
    subject: Optional[str] = None
    institution: Optional[str] = None
    commitment: Optional[str] = None
    reason: Optional[str] = None


class Ledger(ABC):
    """Read/write operations of the registry and certificate contracts.

    Writes are sent from :attr:`account`. Implementations raise the errors of
    ``certichain.core.errors``: ``UnauthorizedError``,
    ``DuplicateCommitmentError``, ``AlreadyRevokedError``,
    ``TransientLedgerError`` and ``LedgerRejectedError``.
    """

    @property
    @abstractmethod
    def account(self) -> Optional[str]:
        """Address state-changing calls are sent from, if any."""

    # registry
    @abstractmethod
    async def is_authorized_institution(self, address: str) -> bool: ...

    @abstractmethod
    async def get_owner(self) -> str: ...

    @abstractmethod
    async def get_all_institutions(self) -> List[str]: ...

    @abstractmethod
    async def register_institution(self, address: str, name: str = "") -> str: ...

    @abstractmethod
    async def remove_institution(self, address: str) -> str: ...

    # certificates
    @abstractmethod
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
        """Submit the issuance and return once it is final."""

    @abstractmethod
    async def revoke_certificate(self, record_id: int, reason: str) -> str: ...

    @abstractmethod
    async def get_certificate(self, record_id: int) -> Optional[CertificateRecord]:
        """The stored record, or None when no record has that id."""

    @abstractmethod
    async def get_certificate_by_commitment(self, commitment: bytes) -> int:
        """Record id for ``commitment``, or :data:`SENTINEL_RECORD_ID`."""

    # events
    @abstractmethod
    async def latest_block(self) -> int: ...

    @abstractmethod
    async def get_events(self, from_block: int, to_block: int) -> List[LedgerEvent]:
        """Events in ``[from_block, to_block]`` ordered by block and log index."""

    async def aclose(self) -> None:
        return None
