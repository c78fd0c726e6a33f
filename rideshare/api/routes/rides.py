"""
Ride endpoints
==============

GET  /api/v1/rides                          -- rides the caller requested or accepted
GET  /api/v1/rides/{ride_id}                -- current ride snapshot
POST /api/v1/rides/{ride_id}/accept         -- offer to fulfil a pending ride
POST /api/v1/rides/{ride_id}/cancel-offer   -- accepter withdraws their offer
POST /api/v1/rides/{ride_id}/cancel-request -- requester cancels the ride
POST /api/v1/rides/{ride_id}/finish         -- either party marks it completed
PUT  /api/v1/rides/{ride_id}                -- requester edits a pending ride

Lifecycle errors are mapped to HTTP by the handlers in ``rideshare.api.app``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_actor_id, get_db, get_lifecycle
from rideshare.api.middleware import limiter
from rideshare.api.schemas import ErrorResponse, RideDetailsPayload, RideResponse
from rideshare.config import settings
from rideshare.domain.entities import Ride
from rideshare.infrastructure.repositories import RideRepository
from rideshare.services.lifecycle import RideLifecycleManager

router = APIRouter(prefix="/rides", tags=["rides"])

_ERRORS = {
    403: {"model": ErrorResponse, "description": "Actor may not do this"},
    404: {"model": ErrorResponse, "description": "Ride not found"},
    409: {
        "model": ErrorResponse,
        "description": "invalid_state, or conflict (re-read and retry)",
    },
}


@router.get("", response_model=list[RideResponse], summary="List my rides")
@limiter.limit(settings.rate_limit)
async def list_rides(
    request: Request,
    actor_id: int = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    rows = await RideRepository(db).list_for_user(actor_id)
    return [RideResponse.from_entity(Ride.from_record(r)) for r in rows]


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Get ride",
    responses={404: _ERRORS[404]},
)
@limiter.limit(settings.rate_limit)
async def get_ride(
    request: Request,
    ride_id: int,
    lifecycle: RideLifecycleManager = Depends(get_lifecycle),
):
    return RideResponse.from_entity(await lifecycle.get(ride_id))


@router.post(
    "/{ride_id}/accept",
    response_model=RideResponse,
    summary="Accept a pending ride",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def accept_ride(
    request: Request,
    ride_id: int,
    actor_id: int = Depends(get_actor_id),
    lifecycle: RideLifecycleManager = Depends(get_lifecycle),
):
    return RideResponse.from_entity(await lifecycle.accept(ride_id, actor_id))


@router.post(
    "/{ride_id}/cancel-offer",
    response_model=RideResponse,
    summary="Withdraw an accepted offer",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def cancel_offer(
    request: Request,
    ride_id: int,
    actor_id: int = Depends(get_actor_id),
    lifecycle: RideLifecycleManager = Depends(get_lifecycle),
):
    return RideResponse.from_entity(await lifecycle.cancel_offer(ride_id, actor_id))


@router.post(
    "/{ride_id}/cancel-request",
    response_model=RideResponse,
    summary="Cancel a ride request",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def cancel_request(
    request: Request,
    ride_id: int,
    actor_id: int = Depends(get_actor_id),
    lifecycle: RideLifecycleManager = Depends(get_lifecycle),
):
    return RideResponse.from_entity(
        await lifecycle.cancel_request(ride_id, actor_id)
    )


@router.post(
    "/{ride_id}/finish",
    response_model=RideResponse,
    summary="Mark an accepted ride as completed",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def finish_ride(
    request: Request,
    ride_id: int,
    actor_id: int = Depends(get_actor_id),
    lifecycle: RideLifecycleManager = Depends(get_lifecycle),
):
    return RideResponse.from_entity(await lifecycle.finish(ride_id, actor_id))


@router.put(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Edit a pending ride",
    description="Replaces the ride details and flags the ride as edited.",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def edit_ride(
    request: Request,
    ride_id: int,
    body: RideDetailsPayload,
    actor_id: int = Depends(get_actor_id),
    lifecycle: RideLifecycleManager = Depends(get_lifecycle),
):
    return RideResponse.from_entity(
        await lifecycle.edit(ride_id, actor_id, body.to_domain())
    )
