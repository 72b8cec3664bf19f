# ticket_store.py  ──  where forwarded tickets live between cost-of-delay sweeps

import json
from abc import ABC, abstractmethod
from typing import Optional

from config import REDIS_TICKETS_KEY, REDIS_URL, TICKET_STORE_BACKEND
from shared_types import Ticket


class TicketStore(ABC):

    @abstractmethod
    async def save(self, ticket: Ticket) -> None:
        """Insert or replace a ticket by id."""

    @abstractmethod
    async def get(self, ticket_id: str) -> Optional[Ticket]:
        ...

    @abstractmethod
    async def all(self) -> list[Ticket]:
        ...

    @abstractmethod
    async def delete(self, ticket_id: str) -> bool:
        ...

    @abstractmethod
    async def count(self) -> int:
        ...

    async def add(self, ticket: Ticket) -> str:
        await self.save(ticket)
        return ticket.id


class InMemoryTicketStore(TicketStore):

    def __init__(self):
        self._tickets: dict[str, Ticket] = {}

    async def save(self, ticket: Ticket) -> None:
        self._tickets[ticket.id] = ticket

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        return self._tickets.get(ticket_id)

    async def all(self) -> list[Ticket]:
        return list(self._tickets.values())

    async def delete(self, ticket_id: str) -> bool:
        return self._tickets.pop(ticket_id, None) is not None

    async def count(self) -> int:
        return len(self._tickets)


class RedisTicketStore(TicketStore):
    """Tickets as JSON documents in a single Redis hash, shared by the API and the worker."""

    def __init__(self, client, key: str = REDIS_TICKETS_KEY):
        self.client = client    # redis.asyncio.Redis
        self.key = key

    async def save(self, ticket: Ticket) -> None:
        await self.client.hset(self.key, ticket.id, json.dumps(ticket.to_dict()))

    async def get(self, ticket_id: str) -> Optional[Ticket]:
        raw = await self.client.hget(self.key, ticket_id)
        if raw is None:
            return None
        return Ticket.from_dict(json.loads(raw))

    async def all(self) -> list[Ticket]:
        tickets = [Ticket.from_dict(json.loads(raw)) for raw in await self.client.hvals(self.key)]
        return sorted(tickets, key=lambda t: (t.created_at.isoformat() if t.created_at else "", t.id))

    async def delete(self, ticket_id: str) -> bool:
        return bool(await self.client.hdel(self.key, ticket_id))

    async def count(self) -> int:
        return int(await self.client.hlen(self.key))


def build_store(backend: str = TICKET_STORE_BACKEND, redis_url: str = REDIS_URL) -> TicketStore:
    if backend == "redis":
        import redis.asyncio as aioredis
        return RedisTicketStore(aioredis.from_url(redis_url, decode_responses=True))
    if backend == "memory":
        return InMemoryTicketStore()
    raise ValueError(f"Unknown ticket store backend: {backend}")
