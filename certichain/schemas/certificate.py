from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field

from certichain.services.hashing import to_hex
from certichain.services.ledger import CertificateRecord

# "2020-09-01", an ISO datetime, or Unix seconds
EnrollmentDate = Union[int, str]


class CertificateOut(BaseModel):
    record_id: int
    issuer: str
    subject_name_fingerprint: str
    subject_email_fingerprint: str
    course: str
    issue_date: int
    enrollment_date: int
    is_valid: bool
    revoke_reason: str
    content_pointer: str

    @classmethod
    def from_record(cls, r: CertificateRecord) -> "CertificateOut":
        return cls(
            record_id=r.record_id,
            issuer=r.issuer,
            subject_name_fingerprint=to_hex(r.subject_name_fingerprint),
            subject_email_fingerprint=to_hex(r.subject_email_fingerprint),
            course=r.course,
            issue_date=r.issue_date,
            enrollment_date=r.enrollment_date,
            is_valid=r.is_valid,
            revoke_reason=r.revoke_reason,
            content_pointer=r.content_pointer,
        )


class IssueIn(BaseModel):
    subject_address: str = Field(..., examples=["0x1a1adAf0d507b1dd5D8edBc6782f953CaB63152B"])
    subject_name: str
    subject_email: str
    course: str
    enrollment_date: EnrollmentDate = Field(..., examples=["2020-09-01"])
    content_pointer: str = ""


class IssueOut(BaseModel):
    record_id: int
    tx_hash: str
    commitment: str


class RevokeIn(BaseModel):
    reason: str


class RevokeOut(BaseModel):
    record_id: int
    tx_hash: str


class MetadataIn(BaseModel):
    subject_name: str
    course: str
    enrollment_date: EnrollmentDate
    image: str = "ipfs://QmPlaceholderImage"


class MetadataOut(BaseModel):
    name: str
    description: str
    image: str
    attributes: List[Dict[str, Any]]
