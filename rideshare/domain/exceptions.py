"""Error taxonomy for ride lifecycle operations.

Each error carries a stable ``code`` so callers can tell a lost race
(``conflict``, worth a re-read and retry) from a permanent refusal
(``forbidden`` / ``invalid_state``).
"""


class RideError(Exception):
    """Base class for every error raised by the lifecycle core."""

    code = "ride_error"


class RideNotFound(RideError):
    """Raised when a ride id does not resolve."""

    code = "not_found"


class UserNotFound(RideError):
    code = "not_found"


class InvalidRideState(RideError):
    """Raised when the ride's current status does not allow the operation."""

    code = "invalid_state"


class RideConflict(RideError):
    """Raised when the conditional write lost a race with another operation."""

    code = "conflict"


class Forbidden(RideError):
    """Raised when the acting user may not perform the operation."""

    code = "forbidden"


class StoreFailure(RideError):
    """Raised when the underlying persistence layer is unavailable."""

    code = "store_failure"
