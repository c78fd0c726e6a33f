"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models carry no
PostgreSQL-only column types, so the real ``Base.metadata`` is created
directly.  Push delivery goes through ``FakePushGateway``.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from rideshare.domain.enums import DeliveryOutcome, RideStatus
from rideshare.infrastructure import models  # noqa: F401  (registers tables)
from rideshare.infrastructure.database import Base
from rideshare.infrastructure.push_gateway import PushGateway
from rideshare.infrastructure.repositories import (
    NotificationRepository,
    PushSubscriptionRepository,
    RideRepository,
    UserRepository,
)
from rideshare.services.lifecycle import RideLifecycleManager
from rideshare.services.notifications import NotificationDispatcher

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class FakePushGateway(PushGateway):
    """
    Records every send.  Per-endpoint behaviour:

    * ``outcomes[endpoint]`` -- a ``DeliveryOutcome`` or an exception to raise
    * ``delays[endpoint]``   -- seconds to sleep before answering
    """

    def __init__(self):
        self.outcomes: dict[str, object] = {}
        self.delays: dict[str, float] = {}
        self.sent: list[tuple[str, dict]] = []

    async def send(self, subscription, payload):
        endpoint = subscription.get("endpoint")
        self.sent.append((endpoint, payload))
        if endpoint in self.delays:
            await asyncio.sleep(self.delays[endpoint])
        outcome = self.outcomes.get(endpoint, DeliveryOutcome.SUCCESS)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def endpoint_for(device_id: str) -> str:
    return f"https://push.test/{device_id}"


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test; StaticPool keeps one connection."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Seed data ─────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def people(db_session) -> SimpleNamespace:
    """User ids (plain ints, safe to use after any rollback)."""
    repo = UserRepository(db_session)
    ids = {}
    for name, push in (
        ("Alice", True),
        ("Bob", True),
        ("Carol", True),
        ("Dave", False),
    ):
        user = await repo.create(
            name=name, email=f"{name.lower()}@example.com", push_enabled=push
        )
        ids[name.lower()] = user.id
    return SimpleNamespace(**ids)


@pytest_asyncio.fixture
async def make_ride(db_session):
    """Factory: ``await make_ride(requester_id, status=..., accepter_id=...)`` -> id."""
    repo = RideRepository(db_session)

    async def _make(
        requester_id: int,
        *,
        status: RideStatus = RideStatus.PENDING,
        accepter_id: int | None = None,
        from_location: str = "Central Station",
        to_location: str = "Airport",
    ) -> int:
        ride = await repo.create_ride(
            requester_id=requester_id,
            accepter_id=accepter_id,
            from_location=from_location,
            to_location=to_location,
            status=status,
        )
        return ride.id

    return _make


@pytest_asyncio.fixture
async def subscribe(db_session):
    """Factory: ``await subscribe(user_id, device_id)`` -> subscription id."""
    repo = PushSubscriptionRepository(db_session)

    async def _subscribe(user_id: int, device_id: str) -> int:
        sub = await repo.upsert(
            user_id=user_id,
            device_id=device_id,
            device_name=device_id,
            subscription={
                "endpoint": endpoint_for(device_id),
                "keys": {"p256dh": "k", "auth": "a"},
            },
        )
        return sub.id

    return _subscribe


# ── Services ──────────────────────────────────────────────────────────


@pytest.fixture
def gateway() -> FakePushGateway:
    return FakePushGateway()


@pytest.fixture
def dispatcher(db_session, gateway) -> NotificationDispatcher:
    return NotificationDispatcher(
        NotificationRepository(db_session),
        PushSubscriptionRepository(db_session),
        gateway,
        users=UserRepository(db_session),
        push_timeout_seconds=0.5,
    )


@pytest.fixture
def lifecycle(db_session, dispatcher) -> RideLifecycleManager:
    return RideLifecycleManager(
        RideRepository(db_session), dispatcher, users=UserRepository(db_session)
    )
