"""
Admin / observability endpoints
===============================

GET  /api/v1/admin/health       -- simple health check
POST /api/v1/admin/notify-user  -- admin notification to one user
POST /api/v1/admin/notify-all   -- admin notification to every user

Both notify routes go through the same store-then-push path as ride
notifications and require ``X-Admin-Token``.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_db, get_dispatcher, require_admin
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    AdminBroadcastRequest,
    AdminNotifyUserRequest,
    BroadcastResponse,
    DispatchResponse,
    ErrorResponse,
    HealthResponse,
)
from rideshare.config import settings
from rideshare.domain.enums import NotificationType
from rideshare.domain.exceptions import UserNotFound
from rideshare.infrastructure.repositories import UserRepository
from rideshare.services.notifications import NotificationDispatcher

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.post(
    "/notify-user",
    response_model=DispatchResponse,
    summary="Notify one user",
    dependencies=[Depends(require_admin)],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def notify_user(
    request: Request,
    body: AdminNotifyUserRequest,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    if await UserRepository(db).get_by_id(body.user_id) is None:
        raise UserNotFound(f"User {body.user_id} not found")
    result = await dispatcher.notify(
        body.user_id, body.title, body.body, NotificationType.ADMIN
    )
    return DispatchResponse.from_result(result)


@router.post(
    "/notify-all",
    response_model=BroadcastResponse,
    summary="Notify every user",
    dependencies=[Depends(require_admin)],
    responses={403: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def notify_all(
    request: Request,
    body: AdminBroadcastRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    results = await dispatcher.broadcast(body.title, body.body)
    return BroadcastResponse(
        users=len(results),
        delivered=sum(len(r.delivered) for r in results),
        transient=sum(len(r.transient) for r in results),
        pruned=sum(len(r.pruned) for r in results),
    )
