"""Ledger backed by the deployed contracts through web3.py's async client."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.logs import DISCARD

from certichain.core.config import Settings
from certichain.core.errors import (
    AlreadyRevokedError,
    CertichainError,
    DuplicateCommitmentError,
    LedgerRejectedError,
    NotFoundError,
    TransientLedgerError,
    UnauthorizedError,
)
from certichain.services.abi import CERTIFICATE_NFT_ABI, INSTITUTION_REGISTRY_ABI
from certichain.services.hashing import to_hex
from certichain.services.ledger import (
    SENTINEL_RECORD_ID,
    ZERO_ADDRESS,
    CertificateRecord,
    IssuedCertificate,
    Ledger,
    LedgerEvent,
    LedgerEventKind,
    normalize_address,
)

logger = logging.getLogger(__name__)

# revert reason fragment -> (error type, user-facing message)
_REVERTS = (
    ("Auth: Caller is not an authorized institution", UnauthorizedError,
     "Caller is not an authorized institution."),
    ("Revoke: Caller must be the issuer", UnauthorizedError,
     "Only the issuing institution can revoke this certificate."),
    ("OwnableUnauthorizedAccount", UnauthorizedError,
     "Only the registry owner can manage institutions."),
    ("Ownable: caller is not the owner", UnauthorizedError,
     "Only the registry owner can manage institutions."),
    ("Issue: Certificate with this data hash already exists", DuplicateCommitmentError,
     "A certificate with this data has already been issued."),
    ("Revoke: Certificate is already revoked", AlreadyRevokedError,
     "Certificate is already revoked."),
    ("Registry: Institution not registered", NotFoundError,
     "Institution not registered."),
)

_LOOKUP_MISS = "Lookup: No certificate found"


def _tx_hex(value: Any) -> str:
    return to_hex(bytes(value))


def translate_error(exc: Exception, operation: str) -> CertichainError:
    """Map a web3/transport exception to the service error taxonomy."""
    if isinstance(exc, CertichainError):
        return exc
    reason = str(exc)
    if isinstance(exc, ContractLogicError):
        for fragment, kind, message in _REVERTS:
            if fragment in reason:
                return kind(message, detail=f"{operation}: {reason}")
        return LedgerRejectedError("The ledger rejected the request.", detail=f"{operation}: {reason}")
    if isinstance(exc, TimeExhausted):
        return TransientLedgerError(
            "Transaction submitted but not yet final; check again before resubmitting.",
            detail=f"{operation}: {reason}",
        )
    if isinstance(exc, (asyncio.TimeoutError, OSError)):
        return TransientLedgerError("The ledger could not be reached.", detail=f"{operation}: {reason}")
    if isinstance(exc, Web3Exception):
        return LedgerRejectedError("The ledger rejected the request.", detail=f"{operation}: {reason}")
    return TransientLedgerError("Unexpected ledger failure.", detail=f"{operation}: {exc!r}")


class Web3Ledger(Ledger):
    def __init__(self, settings: Settings, w3: Optional[AsyncWeb3] = None):
        self.settings = settings
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.RPC_URL))
        self.registry = self.w3.eth.contract(
            address=normalize_address(settings.REGISTRY_ADDRESS, "REGISTRY_ADDRESS"),
            abi=INSTITUTION_REGISTRY_ABI,
        )
        self.certificates = self.w3.eth.contract(
            address=normalize_address(settings.CERTIFICATE_ADDRESS, "CERTIFICATE_ADDRESS"),
            abi=CERTIFICATE_NFT_ABI,
        )
        self._signer = self.w3.eth.account.from_key(settings.ISSUER_PRIVATE_KEY) if settings.ISSUER_PRIVATE_KEY else None
        # one issuer account: serialize nonce allocation
        self._send_lock = asyncio.Lock()

    @property
    def account(self) -> Optional[str]:
        return self._signer.address if self._signer else None

    async def _call(self, fn, operation: str):
        try:
            if self.account:
                return await fn.call({"from": self.account})
            return await fn.call()
        except Exception as exc:
            raise translate_error(exc, operation) from exc

    async def _transact(self, fn, operation: str) -> Dict[str, Any]:
        if self._signer is None:
            raise UnauthorizedError(
                "No signing key configured for ledger writes.",
                detail=f"{operation}: ISSUER_PRIVATE_KEY is empty",
            )
        # dry run first so reverts come back with their reason string
        await self._call(fn, operation)
        try:
            async with self._send_lock:
                nonce = await self.w3.eth.get_transaction_count(self._signer.address, "pending")
                tx = await fn.build_transaction(
                    {"from": self._signer.address, "nonce": nonce, "chainId": self.settings.CHAIN_ID}
                )
                signed = self._signer.sign_transaction(tx)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            logger.info("%s submitted tx=%s", operation, _tx_hex(tx_hash))
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.settings.RECEIPT_TIMEOUT_SECONDS
            )
        except Exception as exc:
            raise translate_error(exc, operation) from exc
        if receipt["status"] != 1:
            raise LedgerRejectedError(
                "The transaction was reverted.",
                detail=f"{operation}: tx {_tx_hex(receipt['transactionHash'])} reverted",
            )
        return receipt

    # registry ------------------------------------------------------------

    async def is_authorized_institution(self, address: str) -> bool:
        fn = self.registry.functions.isAuthorized(normalize_address(address))
        return bool(await self._call(fn, "isAuthorized"))

    async def get_owner(self) -> str:
        return normalize_address(await self._call(self.registry.functions.owner(), "owner"))

    async def get_all_institutions(self) -> List[str]:
        rows = await self._call(self.registry.functions.getAllInstitutions(), "getAllInstitutions")
        return [normalize_address(a) for a in rows]

    async def register_institution(self, address: str, name: str = "") -> str:
        fn = self.registry.functions.registerInstitution(normalize_address(address), name)
        receipt = await self._transact(fn, "registerInstitution")
        return _tx_hex(receipt["transactionHash"])

    async def remove_institution(self, address: str) -> str:
        fn = self.registry.functions.removeInstitution(normalize_address(address))
        receipt = await self._transact(fn, "removeInstitution")
        return _tx_hex(receipt["transactionHash"])

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
        fn = self.certificates.functions.issueCertificate(
            normalize_address(subject, "subject"),
            bytes(name_digest),
            bytes(email_digest),
            course,
            enrollment_date,
            content_pointer,
            bytes(commitment),
        )
        receipt = await self._transact(fn, "issueCertificate")
        logs = self.certificates.events.CertificateIssued().process_receipt(receipt, errors=DISCARD)
        if not logs:
            raise LedgerRejectedError(
                "Issuance was mined without a CertificateIssued event.",
                detail=f"issueCertificate: no event in tx {_tx_hex(receipt['transactionHash'])}",
            )
        return IssuedCertificate(
            record_id=int(logs[0]["args"]["tokenId"]),
            tx_hash=_tx_hex(receipt["transactionHash"]),
        )

    async def revoke_certificate(self, record_id: int, reason: str) -> str:
        fn = self.certificates.functions.revokeCertificate(record_id, reason)
        receipt = await self._transact(fn, "revokeCertificate")
        return _tx_hex(receipt["transactionHash"])

    async def get_certificate(self, record_id: int) -> Optional[CertificateRecord]:
        row = await self._call(self.certificates.functions.getCertificate(record_id), "getCertificate")
        issuer, name_hash, email_hash, course, issue_date, enrollment_date, is_valid, pointer, reason = row
        # unset mapping slots come back zeroed
        if int(issuer, 16) == int(ZERO_ADDRESS, 16):
            return None
        return CertificateRecord(
            record_id=record_id,
            issuer=normalize_address(issuer),
            subject_name_fingerprint=bytes(name_hash),
            subject_email_fingerprint=bytes(email_hash),
            course=course,
            issue_date=int(issue_date),
            enrollment_date=int(enrollment_date),
            is_valid=bool(is_valid),
            revoke_reason=reason,
            content_pointer=pointer,
        )

    async def get_certificate_by_commitment(self, commitment: bytes) -> int:
        fn = self.certificates.functions.getCertificateByHash(bytes(commitment))
        try:
            return int(await self._call(fn, "getCertificateByHash"))
        except LedgerRejectedError as exc:
            if _LOOKUP_MISS in exc.detail:
                return SENTINEL_RECORD_ID
            raise

    # events --------------------------------------------------------------

    async def latest_block(self) -> int:
        try:
            return int(await self.w3.eth.block_number)
        except Exception as exc:
            raise translate_error(exc, "blockNumber") from exc

    async def get_events(self, from_block: int, to_block: int) -> List[LedgerEvent]:
        sources = (
            (self.certificates.events.CertificateIssued, LedgerEventKind.ISSUED),
            (self.certificates.events.CertificateRevoked, LedgerEventKind.REVOKED),
            (self.registry.events.InstitutionRegistered, LedgerEventKind.INSTITUTION_REGISTERED),
            (self.registry.events.InstitutionRemoved, LedgerEventKind.INSTITUTION_REMOVED),
        )
        events: List[LedgerEvent] = []
        for event, kind in sources:
            try:
                logs = await event().get_logs(from_block=from_block, to_block=to_block)
            except Exception as exc:
                raise translate_error(exc, f"get_logs({kind.value})") from exc
            events.extend(self._to_event(kind, log) for log in logs)
        events.sort(key=lambda e: (e.block_number, e.log_index))
        return events

    @staticmethod
    def _to_event(kind: LedgerEventKind, log) -> LedgerEvent:
        args = log["args"]
        common = dict(
            kind=kind,
            block_number=int(log["blockNumber"]),
            tx_hash=_tx_hex(log["transactionHash"]),
            log_index=int(log["logIndex"]),
        )
        if kind is LedgerEventKind.ISSUED:
            return LedgerEvent(
                record_id=int(args["tokenId"]),
                issuer=normalize_address(args["issuer"]),
                subject=normalize_address(args["student"]),
                commitment=to_hex(bytes(args["dataHash"])),
                **common,
            )
        if kind is LedgerEventKind.REVOKED:
            return LedgerEvent(record_id=int(args["tokenId"]), reason=args["reason"], **common)
        return LedgerEvent(institution=normalize_address(args["institution"]), **common)

    async def aclose(self) -> None:
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
