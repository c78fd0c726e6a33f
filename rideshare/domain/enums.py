"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.PENDING: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {
        RideStatus.PENDING,
        RideStatus.COMPLETED,
        RideStatus.CANCELLED,
    },
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}


class RideOperation(str, enum.Enum):
    ACCEPT = "accept"
    CANCEL_OFFER = "cancel_offer"
    CANCEL_REQUEST = "cancel_request"
    FINISH = "finish"
    EDIT = "edit"


class NotificationType(str, enum.Enum):
    RIDE_ACCEPTED = "rideAccepted"
    OFFER_CANCELLED = "offerCancelled"
    RIDE_CANCELLED = "rideCancelled"
    RIDE_COMPLETED = "rideCompleted"
    ADMIN = "admin_notification"


class DeliveryOutcome(str, enum.Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    ENDPOINT_GONE = "endpoint_gone"
