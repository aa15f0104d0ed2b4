# certichain/api/v1/certificates.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path, Request, Response
from sqlalchemy.orm import Session

from certichain.api.deps import get_current_operator, get_db, get_issuance, get_settings
from certichain.core.config import Settings
from certichain.core.errors import CertichainError
from certichain.crud import audit
from certichain.schemas.certificate import IssueIn, IssueOut, MetadataIn, MetadataOut, RevokeIn, RevokeOut
from certichain.services.issuance import IssuanceClient
from certichain.services.metadata import build_metadata_document
from certichain.services.qr import qr_png, verification_url

router = APIRouter()


def _public_base(request: Request, settings: Settings) -> str:
    # PUBLIC_BASE_URL, else request host
    return settings.PUBLIC_BASE_URL or str(request.base_url).rstrip("/")


@router.post("", response_model=IssueOut, status_code=201)
async def issue_certificate(
    body: IssueIn,
    db: Session = Depends(get_db),
    issuance: IssuanceClient = Depends(get_issuance),
    operator: Dict[str, Any] = Depends(get_current_operator),
):
    try:
        receipt = await issuance.issue(
            body.subject_address,
            body.subject_name,
            body.subject_email,
            body.course,
            body.enrollment_date,
            body.content_pointer,
        )
    except CertichainError as exc:
        audit.record(db, actor=operator["sub"], action="issue", entity="certificate",
                     outcome=exc.code, detail={"reason": exc.detail})
        raise
    audit.record(db, actor=operator["sub"], action="issue", entity="certificate",
                 entity_id=receipt.record_id, detail={"tx_hash": receipt.tx_hash})
    return IssueOut(record_id=receipt.record_id, tx_hash=receipt.tx_hash, commitment=receipt.commitment_hex)


@router.post("/{record_id}/revoke", response_model=RevokeOut)
async def revoke_certificate(
    body: RevokeIn,
    record_id: int = Path(..., ge=0),
    db: Session = Depends(get_db),
    issuance: IssuanceClient = Depends(get_issuance),
    operator: Dict[str, Any] = Depends(get_current_operator),
):
    try:
        tx_hash = await issuance.revoke(record_id, body.reason)
    except CertichainError as exc:
        audit.record(db, actor=operator["sub"], action="revoke", entity="certificate",
                     entity_id=record_id, outcome=exc.code, detail={"reason": exc.detail})
        raise
    audit.record(db, actor=operator["sub"], action="revoke", entity="certificate",
                 entity_id=record_id, detail={"tx_hash": tx_hash, "reason": body.reason})
    return RevokeOut(record_id=record_id, tx_hash=tx_hash)


@router.post("/metadata", response_model=MetadataOut)
def metadata_document(body: MetadataIn):
    """Off-ledger metadata to upload before minting; carries only the name fingerprint."""
    return build_metadata_document(body.subject_name, body.course, body.enrollment_date, body.image)


@router.get("/{record_id}/qr", response_class=Response)
def verification_qr(
    request: Request,
    record_id: int = Path(..., ge=0),
    settings: Settings = Depends(get_settings),
):
    png = qr_png(verification_url(_public_base(request, settings), record_id))
    return Response(content=png, media_type="image/png")
