from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LedgerEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: str
    record_id: Optional[int] = None
    issuer: Optional[str] = None
    subject: Optional[str] = None
    institution: Optional[str] = None
    commitment: Optional[str] = None
    reason: Optional[str] = None
    block_number: int
    tx_hash: str
    log_index: int
    created_at: Optional[datetime] = None


class SyncOut(BaseModel):
    added: int
