# certichain/services/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from certichain.core.config import Settings
from certichain.core.errors import InputValidationError
from certichain.services.hashing import DIGEST_SIZE, to_hex
from certichain.services.ledger import SENTINEL_RECORD_ID, Ledger, bounded, normalize_address

logger = logging.getLogger(__name__)


class CommitmentRegistry:
    """Read-only commitment index: commitment -> record id."""

    def __init__(self, ledger: Ledger, settings: Settings):
        self.ledger = ledger
        self.settings = settings

    async def resolve_by_commitment(self, commit: bytes) -> Optional[int]:
        """Record id for ``commit``, or None when nothing was issued with it.

        The ledger answers "no entry" with the sentinel id, so the sentinel is
        never returned as a record id.
        """
        if not isinstance(commit, (bytes, bytearray)) or len(commit) != DIGEST_SIZE:
            raise InputValidationError("commitment must be a 32-byte digest", field="commitment")
        record_id = await bounded(
            self.ledger.get_certificate_by_commitment(bytes(commit)),
            self.settings.LEDGER_TIMEOUT_SECONDS,
            "getCertificateByHash",
        )
        if record_id == SENTINEL_RECORD_ID:
            logger.debug("commitment %s... not indexed", to_hex(commit)[:10])
            return None
        return record_id


@dataclass(frozen=True)
class InstitutionStatus:
    address: str
    is_active: bool


class InstitutionRegistry:
    """Institution allow-list: authorization reads plus owner-only administration."""

    def __init__(self, ledger: Ledger, settings: Settings):
        self.ledger = ledger
        self.settings = settings

    def _bounded(self, awaitable, what: str):
        return bounded(awaitable, self.settings.LEDGER_TIMEOUT_SECONDS, what)

    async def is_authorized(self, address: str) -> bool:
        address = normalize_address(address)
        return await self._bounded(self.ledger.is_authorized_institution(address), "isAuthorized")

    async def owner(self) -> str:
        return await self._bounded(self.ledger.get_owner(), "owner")

    async def list_institutions(self) -> List[InstitutionStatus]:
        addresses = await self._bounded(self.ledger.get_all_institutions(), "getAllInstitutions")
        out: List[InstitutionStatus] = []
        for address in addresses:
            out.append(InstitutionStatus(address=address, is_active=await self.is_authorized(address)))
        return out

    async def register(self, address: str, name: str = "") -> str:
        address = normalize_address(address)
        tx_hash = await self.ledger.register_institution(address, name.strip())
        logger.info("institution %s registered tx=%s", address, tx_hash)
        return tx_hash

    async def remove(self, address: str) -> str:
        address = normalize_address(address)
        tx_hash = await self.ledger.remove_institution(address)
        logger.info("institution %s removed tx=%s", address, tx_hash)
        return tx_hash
