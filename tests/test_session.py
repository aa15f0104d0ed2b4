import asyncio

from certichain.services.issuance import IssuanceClient
from certichain.services.verification import VerdictStatus, VerificationResolver, VerificationSession

from conftest import JANE, STUDENT


def test_latest_query_wins(ledger, settings):
    client = IssuanceClient(ledger, settings)
    first = asyncio.run(client.issue(STUDENT, "A", "a@x", "C", 0))
    second = asyncio.run(client.issue(STUDENT, "B", "b@x", "C", 0))
    ledger.read_delay = 0.05
    session = VerificationSession(VerificationResolver(ledger, settings))

    async def scenario():
        stale = asyncio.ensure_future(session.verify_by_id(first.record_id))
        await asyncio.sleep(0.01)
        fresh = await session.verify_by_id(second.record_id)
        return await stale, fresh

    stale, fresh = asyncio.run(scenario())
    assert stale is None
    assert fresh.record.record_id == second.record_id
    assert session.current is fresh


def test_close_discards_in_flight(ledger, settings):
    asyncio.run(IssuanceClient(ledger, settings).issue(STUDENT, JANE["name"], JANE["email"], JANE["course"], 0))
    ledger.read_delay = 0.05
    session = VerificationSession(VerificationResolver(ledger, settings))

    async def scenario():
        pending = asyncio.ensure_future(session.verify_by_data(JANE["name"], JANE["email"], JANE["course"], 0))
        await asyncio.sleep(0.01)
        session.close()
        return await pending

    assert asyncio.run(scenario()) is None
    assert session.current is None


def test_sequential_queries_each_complete(ledger, settings):
    session = VerificationSession(VerificationResolver(ledger, settings))
    result = asyncio.run(session.verify_by_id(42))
    assert result.status is VerdictStatus.NOT_FOUND
    assert session.current is result
