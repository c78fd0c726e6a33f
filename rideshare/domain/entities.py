"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Ride``: enforces valid lifecycle transitions
  (pending -> accepted -> completed, pending | accepted -> cancelled,
  accepted -> pending when an offer is withdrawn).
- ``Ride`` is an immutable-ish *snapshot*: repositories hand out ORM rows,
  the lifecycle manager copies them into entities before checking rules so
  nothing downstream touches a live, possibly expired, ORM instance.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Optional

from .enums import RIDE_TRANSITIONS, RideStatus
from .exceptions import InvalidRideState


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class RideDetails:
    """Ride payload the lifecycle rules never look into; ``edit`` replaces it."""

    from_location: str = ""
    to_location: str = ""
    from_lat: Optional[float] = None
    from_lon: Optional[float] = None
    to_lat: Optional[float] = None
    to_lon: Optional[float] = None
    departure_time: Optional[datetime] = None
    seats: int = 1
    rider_name: Optional[str] = None
    rider_phone: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_record(cls, record: Any) -> RideDetails:
        return cls(**{f.name: getattr(record, f.name) for f in fields(cls)})

    def as_patch(self) -> dict[str, Any]:
        return asdict(self)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Ride:
    id: Optional[int] = None
    requester_id: int = 0
    accepter_id: Optional[int] = None
    status: RideStatus = RideStatus.PENDING
    details: RideDetails = field(default_factory=RideDetails)
    is_edited: bool = False
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Any) -> Ride:
        """Snapshot a ``RideModel`` row (or anything shaped like one)."""
        return cls(
            id=record.id,
            requester_id=record.requester_id,
            accepter_id=record.accepter_id,
            status=RideStatus(record.status),
            details=RideDetails.from_record(record),
            is_edited=bool(record.is_edited),
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @property
    def route(self) -> str:
        return f"from {self.details.from_location} to {self.details.to_location}"

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.requester_id, self.accepter_id)

    def other_party(self, user_id: int) -> Optional[int]:
        """The participant on the other side of *user_id*, if any."""
        if user_id == self.requester_id:
            return self.accepter_id
        if user_id == self.accepter_id:
            return self.requester_id
        return None

    def has_consistent_accepter(self) -> bool:
        """``accepter_id`` is set exactly when the ride is accepted or completed."""
        holds_accepter = self.status in (RideStatus.ACCEPTED, RideStatus.COMPLETED)
        return holds_accepter == (self.accepter_id is not None)

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = RIDE_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidRideState(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
