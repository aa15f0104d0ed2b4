from typing import Any, Dict, Optional

from pydantic import BaseModel

from certichain.schemas.certificate import CertificateOut, EnrollmentDate
from certichain.services.verification import Verification


class VerifyByDataIn(BaseModel):
    name: str
    email: str
    course: str
    enrollment_date: EnrollmentDate


class VerificationOut(BaseModel):
    status: str
    state: str
    message: str
    authentic: bool
    issuer_active: Optional[bool] = None
    certificate: Optional[CertificateOut] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_verification(cls, v: Verification) -> "VerificationOut":
        return cls(
            status=v.status.value,
            state=v.state.value,
            message=v.message,
            authentic=v.is_authentic,
            issuer_active=v.issuer_active,
            certificate=CertificateOut.from_record(v.record) if v.record else None,
            metadata=v.metadata,
        )
