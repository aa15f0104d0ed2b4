# certichain/services/indexer.py
from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.orm import Session

from certichain.core.config import Settings
from certichain.crud import ledger_event as crud_events
from certichain.db.session import SessionLocal
from certichain.services.events import EventSubscription
from certichain.services.ledger import Ledger

logger = logging.getLogger(__name__)


def subscription_from_index(db: Session, ledger: Ledger, settings: Settings) -> EventSubscription:
    """Subscription starting at the last indexed block.

    That block is read again in case only part of it was stored; rows already
    indexed are skipped by ``add_events``.
    """
    last = crud_events.last_block(db)
    from_block = settings.EVENT_START_BLOCK if last is None else max(settings.EVENT_START_BLOCK, last)
    return EventSubscription(ledger, from_block=from_block, poll_interval=settings.EVENT_POLL_SECONDS)


async def sync_events(db: Session, ledger: Ledger, settings: Settings) -> int:
    """Copy ledger events not yet indexed into ``ledger_events``; returns how many were added."""
    subscription = subscription_from_index(db, ledger, settings)
    added = crud_events.add_events(db, await subscription.poll())
    if added:
        logger.info("indexed %s ledger events up to block %s", added, subscription.position - 1)
    return added


async def follow_events(
    subscription: EventSubscription,
    session_factory: Callable[[], Session] = SessionLocal,
) -> int:
    """Index events as they arrive until ``subscription`` is closed."""
    added = 0
    async for event in subscription:
        with session_factory() as db:
            added += crud_events.add_events(db, [event])
        logger.debug("indexed %s at block %s", event.kind.value, event.block_number)
    return added
