"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Driver / connection errors never leak out as
SQLAlchemy exceptions: every public method rolls the session back and
raises ``StoreFailure`` instead.
"""

from __future__ import annotations

import functools
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import func, select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import NotificationModel, PushSubscriptionModel, RideModel, UserModel
from rideshare.domain.enums import NotificationType, RideStatus
from rideshare.domain.exceptions import StoreFailure


def _store_op(method):
    """Translate SQLAlchemy errors into ``StoreFailure`` after a rollback."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StoreFailure(
                f"{type(self).__name__}.{method.__name__} failed: {exc}"
            ) from exc

    return wrapper


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @_store_op
    async def create_ride(
        self,
        *,
        requester_id: int,
        from_location: str,
        to_location: str,
        departure_time: datetime | None = None,
        status: RideStatus = RideStatus.PENDING,
        accepter_id: int | None = None,
        **details: Any,
    ) -> RideModel:
        """Insert a ride.  Real creation happens upstream; used by seeds and tests."""
        ride = RideModel(
            requester_id=requester_id,
            accepter_id=accepter_id,
            from_location=from_location,
            to_location=to_location,
            departure_time=departure_time,
            status=status,
            **details,
        )
        self.session.add(ride)
        await self.session.commit()
        await self.session.refresh(ride)
        return ride

    @_store_op
    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        # populate_existing: always re-read, the identity map may hold a
        # row that another session has since changed
        return await self.session.get(RideModel, ride_id, populate_existing=True)

    @_store_op
    async def conditional_update(
        self,
        ride_id: int,
        expected_status: RideStatus,
        patch: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        """
        ``UPDATE rides SET ... WHERE id = :id AND status = :expected
        [AND version = :version]`` -- the optimistic-concurrency primitive.

        Returns ``True`` and commits when exactly one row changed; returns
        ``False`` (after a rollback) when the guard no longer matches.
        """
        stmt = update(RideModel).where(
            RideModel.id == ride_id,
            RideModel.status == expected_status,
        )
        if expected_version is not None:
            stmt = stmt.where(RideModel.version == expected_version)
        stmt = stmt.values(**patch, version=RideModel.version + 1).execution_options(
            synchronize_session=False
        )

        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            await self.session.rollback()
            return False
        await self.session.commit()
        return True

    @_store_op
    async def list_for_user(self, user_id: int) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(
                (RideModel.requester_id == user_id)
                | (RideModel.accepter_id == user_id)
            )
            .order_by(RideModel.created_at.desc(), RideModel.id.desc())
        )
        return list(result.scalars().all())


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @_store_op
    async def insert(
        self,
        *,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        related_id: int | None = None,
    ) -> NotificationModel:
        notification = NotificationModel(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
        )
        self.session.add(notification)
        await self.session.commit()
        await self.session.refresh(notification)
        return notification

    @_store_op
    async def list_for_user(
        self,
        user_id: int,
        *,
        type: NotificationType | None = None,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[NotificationModel]:
        """Newest first."""
        query = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if type is not None:
            query = query.where(NotificationModel.type == type)
        if unread_only:
            query = query.where(NotificationModel.is_read.is_(False))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        ).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    @_store_op
    async def count_unread(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    @_store_op
    async def mark_read(self, user_id: int, notification_ids: Iterable[int]) -> int:
        ids = list(notification_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.id.in_(ids),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount


class PushSubscriptionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @_store_op
    async def upsert(
        self,
        *,
        user_id: int,
        device_id: str,
        subscription: dict[str, Any],
        device_name: str | None = None,
    ) -> PushSubscriptionModel:
        """Register or refresh a device; an existing row keeps its ``enabled`` flag."""
        result = await self.session.execute(
            select(PushSubscriptionModel).where(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.device_id == device_id,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            existing.subscription = subscription
            existing.device_name = device_name
            existing.last_used = func.now()
            sub = existing
        else:
            sub = PushSubscriptionModel(
                user_id=user_id,
                device_id=device_id,
                device_name=device_name,
                subscription=subscription,
                enabled=True,
                last_used=func.now(),
            )
            self.session.add(sub)
        await self.session.commit()
        await self.session.refresh(sub)
        return sub

    @_store_op
    async def set_enabled(self, user_id: int, device_id: str, enabled: bool) -> int:
        result = await self.session.execute(
            update(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.device_id == device_id,
            )
            .values(enabled=enabled)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount

    @_store_op
    async def list_enabled_for_user(self, user_id: int) -> list[PushSubscriptionModel]:
        result = await self.session.execute(
            select(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.enabled.is_(True),
            )
            .order_by(PushSubscriptionModel.id)
        )
        return list(result.scalars().all())

    @_store_op
    async def list_for_user(self, user_id: int) -> list[PushSubscriptionModel]:
        result = await self.session.execute(
            select(PushSubscriptionModel)
            .where(PushSubscriptionModel.user_id == user_id)
            .order_by(PushSubscriptionModel.id)
        )
        return list(result.scalars().all())

    @_store_op
    async def delete_many(self, subscription_ids: Iterable[int]) -> int:
        ids = list(subscription_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(PushSubscriptionModel)
            .where(PushSubscriptionModel.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount

    @_store_op
    async def touch_last_used(self, subscription_ids: Iterable[int]) -> None:
        ids = list(subscription_ids)
        if not ids:
            return
        await self.session.execute(
            update(PushSubscriptionModel)
            .where(PushSubscriptionModel.id.in_(ids))
            .values(last_used=func.now())
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @_store_op
    async def create(self, *, name: str, email: str, push_enabled: bool = True) -> UserModel:
        user = UserModel(name=name, email=email, push_enabled=push_enabled)
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    @_store_op
    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    @_store_op
    async def list_ids(self) -> list[int]:
        result = await self.session.execute(select(UserModel.id).order_by(UserModel.id))
        return list(result.scalars().all())

    @_store_op
    async def get_display_name(self, user_id: int) -> Optional[str]:
        result = await self.session.execute(
            select(UserModel.name).where(UserModel.id == user_id)
        )
        return result.scalar_one_or_none()

    @_store_op
    async def push_enabled(self, user_id: int) -> bool:
        """Account-level push preference; unknown users get no push."""
        result = await self.session.execute(
            select(UserModel.push_enabled).where(UserModel.id == user_id)
        )
        return bool(result.scalar_one_or_none())
