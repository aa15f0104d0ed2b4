# certichain/api/v1/verify.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from certichain.api.deps import get_resolver
from certichain.schemas.verification import VerificationOut, VerifyByDataIn
from certichain.services.verification import VerificationResolver

router = APIRouter()


@router.post("/by-data", response_model=VerificationOut)
async def verify_by_data(body: VerifyByDataIn, resolver: VerificationResolver = Depends(get_resolver)):
    result = await resolver.verify_by_data(body.name, body.email, body.course, body.enrollment_date)
    return VerificationOut.from_verification(result)


@router.get("/{record_id}", response_model=VerificationOut)
async def verify_by_id(
    record_id: int = Path(..., ge=0),
    resolver: VerificationResolver = Depends(get_resolver),
):
    result = await resolver.verify_by_id(record_id)
    return VerificationOut.from_verification(result)
