"""
Transition rules
================

One declarative table answers *who* may run an operation and *from which
status*.  The lifecycle manager consults it uniformly before any write:

1. ``authorize``     -- actor vs. ride relationship, raises ``Forbidden``.
2. ``check_status``  -- current status vs. allowed sources, raises
   ``InvalidRideState``.

Keeping the table separate from the transition code lets the "who may do
what" rules be tested on their own.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .entities import Ride
from .enums import RIDE_TRANSITIONS, RideOperation, RideStatus
from .exceptions import Forbidden, InvalidRideState


class ActorRelation(str, enum.Enum):
    REQUESTER = "requester"
    ACCEPTER = "accepter"
    PARTICIPANT = "participant"  # requester or accepter
    NOT_REQUESTER = "not_requester"  # anyone but the requester


@dataclass(frozen=True)
class TransitionRule:
    sources: frozenset[RideStatus]
    target: Optional[RideStatus]  # None -> no status change
    actor: ActorRelation


TRANSITION_RULES: dict[RideOperation, TransitionRule] = {
    RideOperation.ACCEPT: TransitionRule(
        frozenset({RideStatus.PENDING}),
        RideStatus.ACCEPTED,
        ActorRelation.NOT_REQUESTER,
    ),
    RideOperation.CANCEL_OFFER: TransitionRule(
        frozenset({RideStatus.ACCEPTED}),
        RideStatus.PENDING,
        ActorRelation.ACCEPTER,
    ),
    RideOperation.CANCEL_REQUEST: TransitionRule(
        frozenset({RideStatus.PENDING, RideStatus.ACCEPTED}),
        RideStatus.CANCELLED,
        ActorRelation.REQUESTER,
    ),
    RideOperation.FINISH: TransitionRule(
        frozenset({RideStatus.ACCEPTED}),
        RideStatus.COMPLETED,
        ActorRelation.PARTICIPANT,
    ),
    RideOperation.EDIT: TransitionRule(
        frozenset({RideStatus.PENDING}),
        None,
        ActorRelation.REQUESTER,
    ),
}


def _relation_holds(relation: ActorRelation, ride: Ride, actor_id: int) -> bool:
    if relation is ActorRelation.REQUESTER:
        return actor_id == ride.requester_id
    if relation is ActorRelation.ACCEPTER:
        return ride.accepter_id is not None and actor_id == ride.accepter_id
    if relation is ActorRelation.PARTICIPANT:
        return ride.is_participant(actor_id)
    return actor_id != ride.requester_id


def authorize(operation: RideOperation, ride: Ride, actor_id: int) -> None:
    rule = TRANSITION_RULES[operation]
    if not _relation_holds(rule.actor, ride, actor_id):
        raise Forbidden(
            f"User {actor_id} may not {operation.value} ride {ride.id} "
            f"(requires {rule.actor.value})"
        )


def check_status(operation: RideOperation, ride: Ride) -> None:
    rule = TRANSITION_RULES[operation]
    if ride.status not in rule.sources:
        raise InvalidRideState(
            f"Cannot {operation.value} ride {ride.id} in status {ride.status.value}"
        )


def rules_match_state_machine() -> bool:
    """Every status-changing rule must be an edge of ``RIDE_TRANSITIONS``."""
    for rule in TRANSITION_RULES.values():
        if rule.target is None:
            continue
        for source in rule.sources:
            if rule.target not in RIDE_TRANSITIONS[source]:
                return False
    return True
