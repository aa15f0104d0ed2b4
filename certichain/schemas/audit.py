from typing import Any, Dict, Optional

from pydantic import BaseModel


class AuditLogCreate(BaseModel):
    actor: str
    action: str
    entity: str
    entity_id: Optional[str] = None
    outcome: str = "ok"
    detail_json: Optional[Dict[str, Any]] = None
