# tests/test_store.py

import unittest.mock as mock
from datetime import date, datetime

import pytest

from shared_types import Severity, Ticket, TicketStatus, TicketType
from ticket_store import InMemoryTicketStore, RedisTicketStore, build_store


class FakeRedis:
    """Just the hash commands RedisTicketStore uses, awaitable like redis.asyncio."""

    def __init__(self):
        self.hashes = {}

    async def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value

    async def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    async def hvals(self, key):
        return list(self.hashes.get(key, {}).values())

    async def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    async def hlen(self, key):
        return len(self.hashes.get(key, {}))


def _ticket(ticket_id: str, minute: int = 0) -> Ticket:
    return Ticket(
        id=ticket_id,
        issuer_name="Grace Hall",
        issuer_email="grace.hall@example.com",
        assignee_name="Bob Harris",
        ticket_type=TicketType.INCIDENT,
        severity=Severity.HIGH,
        description="Orders server returns 500 errors",
        deadline=date(2026, 10, 14),
        created_at=datetime(2026, 10, 1, 9, minute),
    )


@pytest.fixture(params=["memory", "redis"])
def store(request):
    if request.param == "memory":
        return InMemoryTicketStore()
    return RedisTicketStore(FakeRedis())


@pytest.mark.asyncio
async def test_add_and_get(store):
    ticket_id = await store.add(_ticket("t-1"))

    assert ticket_id == "t-1"
    assert await store.get("t-1") == _ticket("t-1")
    assert await store.get("missing") is None
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_all_keeps_creation_order(store):
    await store.add(_ticket("t-2", minute=5))
    await store.add(_ticket("t-1", minute=1))

    ids = [t.id for t in await store.all()]
    assert set(ids) == {"t-1", "t-2"}
    if isinstance(store, RedisTicketStore):
        assert ids == ["t-1", "t-2"]


@pytest.mark.asyncio
async def test_save_replaces(store):
    await store.add(_ticket("t-1"))
    updated = await store.get("t-1")
    updated.status = TicketStatus.COMPLETED
    await store.save(updated)

    assert (await store.get("t-1")).status == TicketStatus.COMPLETED
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_delete(store):
    await store.add(_ticket("t-1"))

    assert await store.delete("t-1") is True
    assert await store.delete("t-1") is False
    assert await store.all() == []


def test_ticket_round_trips_through_dict():
    ticket = _ticket("t-1")
    ticket.last_calculated = datetime(2026, 10, 19, 8, 30)
    ticket.total_delay_cost = 633.75

    data = ticket.to_dict()
    assert data["severity"] == "High"
    assert data["deadline"] == "2026-10-14"
    assert Ticket.from_dict(data) == ticket


def test_build_store_backends():
    assert isinstance(build_store("memory"), InMemoryTicketStore)

    with mock.patch("redis.asyncio.from_url") as from_url:
        store = build_store("redis", redis_url="redis://localhost:6379")
    from_url.assert_called_once_with("redis://localhost:6379", decode_responses=True)
    assert isinstance(store, RedisTicketStore)

    with pytest.raises(ValueError):
        build_store("postgres")
