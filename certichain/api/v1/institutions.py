# certichain/api/v1/institutions.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from certichain.api.deps import get_current_operator, get_db, get_institutions
from certichain.core.errors import CertichainError
from certichain.crud import audit
from certichain.schemas.institution import InstitutionIn, InstitutionOut, OwnerOut, TxOut
from certichain.services.ledger import normalize_address
from certichain.services.registry import InstitutionRegistry

router = APIRouter()


@router.get("", response_model=List[InstitutionOut])
async def list_institutions(registry: InstitutionRegistry = Depends(get_institutions)):
    return [InstitutionOut(address=i.address, is_active=i.is_active) for i in await registry.list_institutions()]


@router.get("/owner", response_model=OwnerOut)
async def registry_owner(registry: InstitutionRegistry = Depends(get_institutions)):
    return OwnerOut(owner=await registry.owner())


@router.get("/{address}", response_model=InstitutionOut)
async def institution_status(address: str, registry: InstitutionRegistry = Depends(get_institutions)):
    address = normalize_address(address)
    return InstitutionOut(address=address, is_active=await registry.is_authorized(address))


@router.post("", response_model=TxOut, status_code=201)
async def register_institution(
    body: InstitutionIn,
    db: Session = Depends(get_db),
    registry: InstitutionRegistry = Depends(get_institutions),
    operator: Dict[str, Any] = Depends(get_current_operator),
):
    try:
        tx_hash = await registry.register(body.address, body.name)
    except CertichainError as exc:
        audit.record(db, actor=operator["sub"], action="register", entity="institution",
                     entity_id=body.address, outcome=exc.code, detail={"reason": exc.detail})
        raise
    audit.record(db, actor=operator["sub"], action="register", entity="institution",
                 entity_id=body.address, detail={"tx_hash": tx_hash, "name": body.name})
    return TxOut(tx_hash=tx_hash)


@router.delete("/{address}", response_model=TxOut)
async def remove_institution(
    address: str,
    db: Session = Depends(get_db),
    registry: InstitutionRegistry = Depends(get_institutions),
    operator: Dict[str, Any] = Depends(get_current_operator),
):
    try:
        tx_hash = await registry.remove(address)
    except CertichainError as exc:
        audit.record(db, actor=operator["sub"], action="remove", entity="institution",
                     entity_id=address, outcome=exc.code, detail={"reason": exc.detail})
        raise
    audit.record(db, actor=operator["sub"], action="remove", entity="institution",
                 entity_id=address, detail={"tx_hash": tx_hash})
    return TxOut(tx_hash=tx_hash)
