from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from certichain.models.ledger_event import LedgerEventRow
from certichain.services.ledger import LedgerEvent


def last_block(db: Session) -> Optional[int]:
    return db.execute(select(func.max(LedgerEventRow.block_number))).scalar()


def add_events(db: Session, events: Iterable[LedgerEvent]) -> int:
    added = 0
    for ev in events:
        exists = db.execute(
            select(LedgerEventRow.id).where(
                LedgerEventRow.tx_hash == ev.tx_hash, LedgerEventRow.log_index == ev.log_index
            )
        ).scalar_one_or_none()
        if exists:
            continue
        db.add(
            LedgerEventRow(
                kind=ev.kind.value,
                record_id=ev.record_id,
                issuer=ev.issuer,
                subject=ev.subject,
                institution=ev.institution,
                commitment=ev.commitment,
                reason=ev.reason,
                block_number=ev.block_number,
                tx_hash=ev.tx_hash,
                log_index=ev.log_index,
            )
        )
        added += 1
    db.commit()
    return added


def list_events(
    db: Session,
    *,
    kind: Optional[str] = None,
    record_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[LedgerEventRow]:
    stmt = select(LedgerEventRow)
    if kind:
        stmt = stmt.where(LedgerEventRow.kind == kind)
    if record_id is not None:
        stmt = stmt.where(LedgerEventRow.record_id == record_id)
    stmt = stmt.order_by(LedgerEventRow.block_number.desc(), LedgerEventRow.log_index.desc()).offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all())
