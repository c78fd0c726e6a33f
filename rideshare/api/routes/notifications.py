"""
Notification endpoints
======================

GET  /api/v1/notifications       -- caller's notifications, newest first
POST /api/v1/notifications/read  -- mark some of them as read
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_actor_id, get_db
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from rideshare.config import settings
from rideshare.domain.enums import NotificationType
from rideshare.infrastructure.repositories import NotificationRepository

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse, summary="List notifications")
@limiter.limit(settings.rate_limit)
async def list_notifications(
    request: Request,
    type: Optional[NotificationType] = None,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    repo = NotificationRepository(db)
    rows = await repo.list_for_user(
        actor_id, type=type, unread_only=unread_only, limit=limit
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in rows],
        unread=await repo.count_unread(actor_id),
    )


@router.post("/read", response_model=MarkReadResponse, summary="Mark as read")
@limiter.limit(settings.rate_limit)
async def mark_read(
    request: Request,
    body: MarkReadRequest,
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationRepository(db).mark_read(
        actor_id, body.notification_ids
    )
    return MarkReadResponse(updated=updated)
