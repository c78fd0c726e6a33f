"""FastAPI dependency injection helpers."""

import secrets
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.config import settings
from rideshare.domain.exceptions import Forbidden
from rideshare.infrastructure.database import async_session_factory
from rideshare.infrastructure.push_gateway import PushGateway
from rideshare.infrastructure.repositories import (
    NotificationRepository,
    PushSubscriptionRepository,
    RideRepository,
    UserRepository,
)
from rideshare.services.lifecycle import RideLifecycleManager
from rideshare.services.notifications import NotificationDispatcher


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_actor_id(x_user_id: int = Header(..., alias="X-User-Id")) -> int:
    """Caller identity, set by the authentication layer in front of this API."""
    return x_user_id


def require_admin(
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
) -> None:
    """Admin routes need the configured token; with none configured they stay closed."""
    expected = settings.admin_token
    if not expected or not x_admin_token or not secrets.compare_digest(
        x_admin_token, expected
    ):
        raise Forbidden("Admin token missing or invalid")


def get_push_gateway(request: Request) -> PushGateway:
    return request.app.state.push_gateway


def get_dispatcher(
    db: AsyncSession = Depends(get_db),
    gateway: PushGateway = Depends(get_push_gateway),
) -> NotificationDispatcher:
    return NotificationDispatcher(
        NotificationRepository(db),
        PushSubscriptionRepository(db),
        gateway,
        users=UserRepository(db),
        push_timeout_seconds=settings.push_timeout_seconds,
    )


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> RideLifecycleManager:
    return RideLifecycleManager(
        RideRepository(db), dispatcher, users=UserRepository(db)
    )
