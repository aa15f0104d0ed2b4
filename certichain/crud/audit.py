import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from certichain.crud.base import CRUDBase
from certichain.models.audit import AuditLog
from certichain.schemas.audit import AuditLogCreate

logger = logging.getLogger(__name__)

audit_log = CRUDBase[AuditLog, AuditLogCreate](AuditLog)


def record(
    db: Session,
    *,
    actor: str,
    action: str,
    entity: str,
    entity_id: Any = None,
    outcome: str = "ok",
    detail: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Store one audit row; a failed write is logged and never fails the request."""
    entry = AuditLogCreate(
        actor=actor,
        action=action,
        entity=entity,
        entity_id=None if entity_id is None else str(entity_id),
        outcome=outcome,
        detail_json=detail,
    )
    try:
        return audit_log.create(db, entry)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("audit write failed: %s %s %s outcome=%s", action, entity, entry.entity_id, outcome)
        return None
