"""Repository queries and store-error translation."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from rideshare.domain.enums import NotificationType, RideStatus
from rideshare.domain.exceptions import StoreFailure
from rideshare.infrastructure.repositories import (
    NotificationRepository,
    PushSubscriptionRepository,
    RideRepository,
    UserRepository,
)
from tests.conftest import endpoint_for


# ── Notifications ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_notifications_newest_first_and_filtered(db_session, people):
    repo = NotificationRepository(db_session)
    first = await repo.insert(
        user_id=people.alice, type=NotificationType.RIDE_ACCEPTED, title="1", message="m"
    )
    second = await repo.insert(
        user_id=people.alice, type=NotificationType.RIDE_COMPLETED, title="2", message="m"
    )
    await repo.insert(
        user_id=people.bob, type=NotificationType.RIDE_ACCEPTED, title="3", message="m"
    )

    rows = await repo.list_for_user(people.alice)
    assert [n.id for n in rows] == [second.id, first.id]

    accepted = await repo.list_for_user(people.alice, type=NotificationType.RIDE_ACCEPTED)
    assert [n.id for n in accepted] == [first.id]

    assert len(await repo.list_for_user(people.alice, limit=1)) == 1


@pytest.mark.asyncio
async def test_mark_read_only_touches_own_notifications(db_session, people):
    repo = NotificationRepository(db_session)
    mine = await repo.insert(
        user_id=people.alice, type=NotificationType.RIDE_ACCEPTED, title="t", message="m"
    )
    await repo.insert(
        user_id=people.alice, type=NotificationType.RIDE_CANCELLED, title="t", message="m"
    )
    assert await repo.count_unread(people.alice) == 2

    assert await repo.mark_read(people.bob, [mine.id]) == 0
    assert await repo.mark_read(people.alice, [mine.id]) == 1
    assert await repo.mark_read(people.alice, []) == 0

    assert await repo.count_unread(people.alice) == 1
    unread = await repo.list_for_user(people.alice, unread_only=True)
    assert [n.type for n in unread] == [NotificationType.RIDE_CANCELLED]


# ── Push subscriptions ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_upsert_refreshes_device_and_keeps_enabled_flag(db_session, people):
    repo = PushSubscriptionRepository(db_session)
    first = await repo.upsert(
        user_id=people.alice,
        device_id="phone",
        subscription={"endpoint": endpoint_for("phone")},
    )
    await repo.set_enabled(people.alice, "phone", False)

    again = await repo.upsert(
        user_id=people.alice,
        device_id="phone",
        device_name="Pixel",
        subscription={"endpoint": endpoint_for("phone-v2")},
    )

    assert again.id == first.id
    assert again.enabled is False
    assert again.device_name == "Pixel"
    assert again.subscription["endpoint"] == endpoint_for("phone-v2")
    assert await repo.list_enabled_for_user(people.alice) == []


@pytest.mark.asyncio
async def test_delete_many(db_session, people, subscribe):
    keep = await subscribe(people.alice, "keep")
    drop_a = await subscribe(people.alice, "drop-a")
    drop_b = await subscribe(people.bob, "drop-b")
    repo = PushSubscriptionRepository(db_session)

    assert await repo.delete_many([drop_a, drop_b]) == 2
    assert await repo.delete_many([]) == 0

    assert [s.id for s in await repo.list_for_user(people.alice)] == [keep]
    assert await repo.list_for_user(people.bob) == []


# ── Rides and users ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rides_listed_for_both_parties(db_session, people, make_ride):
    ride_id = await make_ride(
        people.alice, status=RideStatus.ACCEPTED, accepter_id=people.bob
    )
    await make_ride(people.carol)
    repo = RideRepository(db_session)

    assert [r.id for r in await repo.list_for_user(people.alice)] == [ride_id]
    assert [r.id for r in await repo.list_for_user(people.bob)] == [ride_id]


@pytest.mark.asyncio
async def test_new_ride_starts_at_version_one(db_session, people, make_ride):
    ride = await RideRepository(db_session).get_by_id(await make_ride(people.alice))
    assert ride.version == 1
    assert ride.is_edited is False
    assert ride.status == RideStatus.PENDING


@pytest.mark.asyncio
async def test_user_lookups(db_session, people):
    repo = UserRepository(db_session)
    assert await repo.get_display_name(people.bob) == "Bob"
    assert await repo.get_display_name(9999) is None
    assert await repo.push_enabled(people.alice) is True
    assert await repo.push_enabled(people.dave) is False
    assert await repo.push_enabled(9999) is False
    assert await repo.list_ids() == [people.alice, people.bob, people.carol, people.dave]


# ── Error translation ─────────────────────────────────────────────────


def _broken_session() -> MagicMock:
    session = MagicMock()
    error = OperationalError("SELECT 1", {}, Exception("connection reset"))
    session.execute = AsyncMock(side_effect=error)
    session.get = AsyncMock(side_effect=error)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda s: RideRepository(s).get_by_id(1),
        lambda s: RideRepository(s).conditional_update(
            1, RideStatus.PENDING, {"status": RideStatus.ACCEPTED}
        ),
        lambda s: NotificationRepository(s).count_unread(1),
        lambda s: PushSubscriptionRepository(s).list_enabled_for_user(1),
        lambda s: PushSubscriptionRepository(s).delete_many([1]),
        lambda s: UserRepository(s).push_enabled(1),
    ],
)
async def test_driver_errors_become_store_failure(call):
    session = _broken_session()

    with pytest.raises(StoreFailure) as excinfo:
        await call(session)

    assert isinstance(excinfo.value.__cause__, OperationalError)
    session.rollback.assert_awaited_once()


# ── Schema constraints ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_accepted_ride_without_accepter_is_rejected(db_session, people):
    with pytest.raises(StoreFailure):
        await RideRepository(db_session).create_ride(
            requester_id=people.alice,
            from_location="A",
            to_location="B",
            status=RideStatus.ACCEPTED,
        )


@pytest.mark.asyncio
async def test_write_that_strands_an_accepter_is_rejected(db_session, people, make_ride):
    ride_id = await make_ride(people.alice)
    repo = RideRepository(db_session)

    with pytest.raises(StoreFailure):
        await repo.conditional_update(
            ride_id, RideStatus.PENDING, {"accepter_id": people.bob}
        )

    ride = await repo.get_by_id(ride_id)
    assert ride.accepter_id is None
    assert ride.version == 1
