"""Unit tests for ride entity state transitions (State Pattern)."""

import pytest

from rideshare.domain.entities import Ride, RideDetails
from rideshare.domain.enums import RideStatus
from rideshare.domain.exceptions import InvalidRideState


class TestRideStateMachine:
    def test_initial_status_is_pending(self):
        ride = Ride()
        assert ride.status == RideStatus.PENDING

    # ── Valid transitions ─────────────────────────────────────────

    def test_pending_to_accepted(self):
        ride = Ride(status=RideStatus.PENDING)
        ride.transition_to(RideStatus.ACCEPTED)
        assert ride.status == RideStatus.ACCEPTED

    def test_pending_to_cancelled(self):
        ride = Ride(status=RideStatus.PENDING)
        ride.transition_to(RideStatus.CANCELLED)
        assert ride.status == RideStatus.CANCELLED

    def test_accepted_back_to_pending(self):
        """An accepter withdrawing their offer re-opens the ride."""
        ride = Ride(status=RideStatus.ACCEPTED)
        ride.transition_to(RideStatus.PENDING)
        assert ride.status == RideStatus.PENDING

    def test_accepted_to_completed(self):
        ride = Ride(status=RideStatus.ACCEPTED)
        ride.transition_to(RideStatus.COMPLETED)
        assert ride.status == RideStatus.COMPLETED

    def test_accepted_to_cancelled(self):
        ride = Ride(status=RideStatus.ACCEPTED)
        ride.transition_to(RideStatus.CANCELLED)
        assert ride.status == RideStatus.CANCELLED

    # ── Invalid transitions ───────────────────────────────────────

    def test_pending_to_completed_fails(self):
        ride = Ride(status=RideStatus.PENDING)
        with pytest.raises(InvalidRideState):
            ride.transition_to(RideStatus.COMPLETED)

    @pytest.mark.parametrize("terminal", [RideStatus.COMPLETED, RideStatus.CANCELLED])
    @pytest.mark.parametrize("target", list(RideStatus))
    def test_terminal_states_never_move(self, terminal, target):
        ride = Ride(status=terminal)
        with pytest.raises(InvalidRideState):
            ride.transition_to(target)
        assert ride.status == terminal


class TestRideInvariants:
    def test_pending_without_accepter_is_consistent(self):
        assert Ride(status=RideStatus.PENDING).has_consistent_accepter()

    def test_accepted_without_accepter_is_inconsistent(self):
        assert not Ride(status=RideStatus.ACCEPTED).has_consistent_accepter()

    def test_completed_keeps_its_accepter(self):
        ride = Ride(status=RideStatus.COMPLETED, requester_id=1, accepter_id=2)
        assert ride.has_consistent_accepter()

    def test_cancelled_with_accepter_is_inconsistent(self):
        ride = Ride(status=RideStatus.CANCELLED, requester_id=1, accepter_id=2)
        assert not ride.has_consistent_accepter()

    def test_other_party(self):
        ride = Ride(requester_id=1, accepter_id=2, status=RideStatus.ACCEPTED)
        assert ride.other_party(1) == 2
        assert ride.other_party(2) == 1
        assert ride.other_party(3) is None

    def test_route(self):
        ride = Ride(details=RideDetails(from_location="A", to_location="B"))
        assert ride.route == "from A to B"
