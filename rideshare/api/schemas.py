"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from rideshare.domain.entities import Ride, RideDetails
from rideshare.domain.enums import NotificationType
from rideshare.services.notifications import DispatchResult


# ── Requests ──────────────────────────────────────────────────────────


class RideDetailsPayload(BaseModel):
    from_location: str = Field(..., min_length=1, max_length=255)
    to_location: str = Field(..., min_length=1, max_length=255)
    from_lat: Optional[float] = Field(None, ge=-90, le=90)
    from_lon: Optional[float] = Field(None, ge=-180, le=180)
    to_lat: Optional[float] = Field(None, ge=-90, le=90)
    to_lon: Optional[float] = Field(None, ge=-180, le=180)
    departure_time: Optional[datetime] = None
    seats: int = Field(1, ge=1, le=8)
    rider_name: Optional[str] = Field(None, max_length=120)
    rider_phone: Optional[str] = Field(None, max_length=40)
    note: Optional[str] = None

    def to_domain(self) -> RideDetails:
        return RideDetails(**self.model_dump())


class MarkReadRequest(BaseModel):
    notification_ids: list[int] = Field(..., min_length=1)


class AdminBroadcastRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    body: str = Field(..., min_length=1)


class AdminNotifyUserRequest(AdminBroadcastRequest):
    user_id: int


# ── Responses ─────────────────────────────────────────────────────────


class RideResponse(BaseModel):
    id: int
    requester_id: int
    accepter_id: Optional[int] = None
    status: str
    from_location: str
    to_location: str
    from_lat: Optional[float] = None
    from_lon: Optional[float] = None
    to_lat: Optional[float] = None
    to_lon: Optional[float] = None
    departure_time: Optional[datetime] = None
    seats: int
    rider_name: Optional[str] = None
    rider_phone: Optional[str] = None
    note: Optional[str] = None
    is_edited: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ride: Ride) -> RideResponse:
        return cls(
            id=ride.id,
            requester_id=ride.requester_id,
            accepter_id=ride.accepter_id,
            status=ride.status.value,
            is_edited=ride.is_edited,
            created_at=ride.created_at,
            updated_at=ride.updated_at,
            **ride.details.as_patch(),
        )


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    related_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread: int


class MarkReadResponse(BaseModel):
    updated: int


class DispatchResponse(BaseModel):
    notification_id: int
    delivered: int
    transient: int
    pruned: int

    @classmethod
    def from_result(cls, result: DispatchResult) -> DispatchResponse:
        return cls(
            notification_id=result.notification.id,
            delivered=len(result.delivered),
            transient=len(result.transient),
            pruned=len(result.pruned),
        )


class BroadcastResponse(BaseModel):
    users: int
    delivered: int
    transient: int
    pruned: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: str
