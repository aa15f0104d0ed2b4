"""Push-style stream of ledger events.

An :class:`EventSubscription` polls the ledger from a starting block and
yields typed :class:`LedgerEvent` values until :meth:`close` is called. The
stream is lazy and unbounded. :attr:`position` is the block of the first event
not yet delivered, so a new subscription started from it resumes where the old
one stopped. Delivery is at-least-once: events of a partly delivered block are
read again on resume, and consumers dedupe on ``(tx_hash, log_index)``.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, Deque, Iterable, Optional, Set

from certichain.core.errors import TransientLedgerError
from certichain.services.ledger import Ledger, LedgerEvent, LedgerEventKind

logger = logging.getLogger(__name__)


class EventSubscription:
    def __init__(
        self,
        ledger: Ledger,
        *,
        from_block: int = 0,
        poll_interval: float = 4.0,
        kinds: Optional[Iterable[LedgerEventKind]] = None,
    ):
        self.ledger = ledger
        self.poll_interval = poll_interval
        self.kinds: Optional[Set[LedgerEventKind]] = set(kinds) if kinds else None
        self._next_block = from_block
        self._pending: Deque[LedgerEvent] = deque()
        self._closed = asyncio.Event()

    @property
    def position(self) -> int:
        if self._pending:
            return self._pending[0].block_number
        return self._next_block

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    async def __aenter__(self) -> "EventSubscription":
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()

    def __aiter__(self) -> AsyncIterator[LedgerEvent]:
        return self._stream()

    async def _stream(self) -> AsyncIterator[LedgerEvent]:
        while not self.closed:
            if not self._pending:
                try:
                    self._pending.extend(await self.poll())
                except TransientLedgerError as exc:
                    # position unchanged; retried on the next tick
                    logger.warning("event poll failed at block %s: %s", self.position, exc.detail)
                if not self._pending:
                    await self._sleep()
                continue
            yield self._pending.popleft()

    async def poll(self) -> list[LedgerEvent]:
        """One fetch of everything between the last fetched block and the chain head."""
        head = await self.ledger.latest_block()
        if head < self._next_block:
            return []
        events = await self.ledger.get_events(self._next_block, head)
        self._next_block = head + 1
        if self.kinds is not None:
            events = [e for e in events if e.kind in self.kinds]
        return events

    async def _sleep(self) -> None:
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass
