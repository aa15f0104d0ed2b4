# certichain/api/v1/history.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from certichain.api.deps import get_current_operator, get_db, get_ledger, get_settings
from certichain.core.config import Settings
from certichain.crud import ledger_event as crud_events
from certichain.schemas.history import LedgerEventOut, SyncOut
from certichain.services.indexer import sync_events
from certichain.services.ledger import Ledger

router = APIRouter()


@router.get("", response_model=List[LedgerEventOut])
def list_history(
    kind: Optional[str] = Query(None, pattern="^(issued|revoked|institution_registered|institution_removed)$"),
    record_id: Optional[int] = Query(None, ge=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud_events.list_events(db, kind=kind, record_id=record_id, skip=skip, limit=limit)


@router.post("/sync", response_model=SyncOut, dependencies=[Depends(get_current_operator)])
async def sync_history(
    db: Session = Depends(get_db),
    ledger: Ledger = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
):
    added = await sync_events(db, ledger, settings)
    return SyncOut(added=added)
