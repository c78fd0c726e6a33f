"""
Ride Lifecycle Manager
======================

Transitions
-----------
* ``accept``          pending  -> accepted   (anyone but the requester)
* ``cancel_offer``    accepted -> pending    (the accepter)
* ``cancel_request``  pending | accepted -> cancelled  (the requester)
* ``finish``          accepted -> completed  (requester or accepter)
* ``edit``            pending, details replaced  (the requester)

Concurrency safety
------------------
No locks.  Every operation reads the ride, checks ``TRANSITION_RULES``
(authorization first, then status) and writes with a conditional
``UPDATE ... WHERE status = :expected AND version = :version``.  If another
operation committed in between, zero rows match and the caller gets
``RideConflict``; the ride is untouched and may be re-read.

The ride write is committed before any notification is dispatched, so
notifications only ever describe committed transitions.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from rideshare.domain.entities import Ride, RideDetails
from rideshare.domain.enums import NotificationType, RideOperation
from rideshare.domain.exceptions import RideConflict, RideNotFound
from rideshare.domain.policies import TRANSITION_RULES, authorize, check_status

logger = logging.getLogger(__name__)

UNKNOWN_USER_NAME = "Someone"


class RideLifecycleManager:
    def __init__(self, rides, dispatcher, users=None):
        self.rides = rides
        self.dispatcher = dispatcher
        self.users = users

    # ── Public API ────────────────────────────────────────────────────

    async def get(self, ride_id: int) -> Ride:
        record = await self.rides.get_by_id(ride_id)
        if record is None:
            raise RideNotFound(f"Ride {ride_id} not found")
        return Ride.from_record(record)

    async def accept(self, ride_id: int, actor_id: int) -> Ride:
        before = await self._checked(RideOperation.ACCEPT, ride_id, actor_id)
        actor_name = await self._display_name(actor_id)
        after = await self._write(
            RideOperation.ACCEPT, before, {"accepter_id": actor_id}
        )
        await self.dispatcher.notify(
            before.requester_id,
            "Ride Accepted",
            f"{actor_name} has accepted your ride request {before.route}",
            NotificationType.RIDE_ACCEPTED,
            related_id=before.id,
        )
        return after

    async def cancel_offer(self, ride_id: int, actor_id: int) -> Ride:
        before = await self._checked(RideOperation.CANCEL_OFFER, ride_id, actor_id)
        actor_name = await self._display_name(actor_id)
        after = await self._write(
            RideOperation.CANCEL_OFFER, before, {"accepter_id": None}
        )
        await self.dispatcher.notify(
            before.requester_id,
            "Ride Offer Cancelled",
            f"{actor_name} has cancelled their offer for your ride {before.route}",
            NotificationType.OFFER_CANCELLED,
            related_id=before.id,
        )
        return after

    async def cancel_request(self, ride_id: int, actor_id: int) -> Ride:
        before = await self._checked(RideOperation.CANCEL_REQUEST, ride_id, actor_id)
        actor_name = await self._display_name(actor_id)
        # A cancelled ride holds no accepter
        after = await self._write(
            RideOperation.CANCEL_REQUEST, before, {"accepter_id": None}
        )
        if before.accepter_id is not None:
            await self.dispatcher.notify(
                before.accepter_id,
                "Ride Cancelled",
                f"{actor_name} has cancelled the ride {before.route} you accepted",
                NotificationType.RIDE_CANCELLED,
                related_id=before.id,
            )
        return after

    async def finish(self, ride_id: int, actor_id: int) -> Ride:
        before = await self._checked(RideOperation.FINISH, ride_id, actor_id)
        actor_name = await self._display_name(actor_id)
        after = await self._write(RideOperation.FINISH, before, {})
        other = before.other_party(actor_id)
        if other is not None:
            await self.dispatcher.notify(
                other,
                "Ride Completed",
                f"{actor_name} has marked the ride {before.route} as completed",
                NotificationType.RIDE_COMPLETED,
                related_id=before.id,
            )
        return after

    async def edit(self, ride_id: int, actor_id: int, details: RideDetails) -> Ride:
        before = await self._checked(RideOperation.EDIT, ride_id, actor_id)
        return await self._write(
            RideOperation.EDIT, before, {**details.as_patch(), "is_edited": True}
        )

    # ── Internals ─────────────────────────────────────────────────────

    async def _checked(
        self, operation: RideOperation, ride_id: int, actor_id: int
    ) -> Ride:
        ride = await self.get(ride_id)
        authorize(operation, ride, actor_id)
        check_status(operation, ride)
        return ride

    async def _write(
        self, operation: RideOperation, before: Ride, patch: dict[str, Any]
    ) -> Ride:
        rule = TRANSITION_RULES[operation]
        if rule.target is not None:
            # Validates the rule table against the state machine as well
            replace(before).transition_to(rule.target)
            patch = {**patch, "status": rule.target}

        applied = await self.rides.conditional_update(
            before.id, before.status, patch, expected_version=before.version
        )
        if not applied:
            logger.info(
                "Ride %s: %s lost a race (expected %s, version %d)",
                before.id,
                operation.value,
                before.status.value,
                before.version,
            )
            raise RideConflict(
                f"Ride {before.id} changed while trying to {operation.value}; "
                "re-read and retry"
            )

        after = await self.get(before.id)
        logger.info(
            "Ride %s: %s %s -> %s",
            before.id,
            operation.value,
            before.status.value,
            after.status.value,
        )
        return after

    async def _display_name(self, user_id: int) -> str:
        if self.users is None:
            return UNKNOWN_USER_NAME
        name: Optional[str] = await self.users.get_display_name(user_id)
        return name or UNKNOWN_USER_NAME
