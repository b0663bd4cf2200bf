"""Ride request state machine."""

from ridehail.models.ride_request import RideStatus


class RideTransitions:
    """Valid ride request status transitions. Nothing moves backward."""

    TRANSITIONS = {
        RideStatus.PENDING: [
            RideStatus.ASSIGNED,
            RideStatus.ACCEPTED,
            RideStatus.CONFIRMED,
            RideStatus.CANCELLED,
        ],
        RideStatus.CONFIRMED: [
            RideStatus.IN_PROGRESS,
            RideStatus.COMPLETED,
            RideStatus.CANCELLED,
        ],
        RideStatus.ASSIGNED: [
            RideStatus.IN_PROGRESS,
            RideStatus.COMPLETED,
            RideStatus.CANCELLED,
        ],
        RideStatus.ACCEPTED: [
            RideStatus.IN_PROGRESS,
            RideStatus.COMPLETED,
            RideStatus.CANCELLED,
        ],
        RideStatus.IN_PROGRESS: [
            RideStatus.COMPLETED,
            RideStatus.CANCELLED,
        ],
        RideStatus.COMPLETED: [],
        RideStatus.CANCELLED: [],
    }

    @classmethod
    def can_transition(cls, from_state: RideStatus, to_state: RideStatus) -> bool:
        """Check if a state transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])

    @classmethod
    def sources_for(cls, to_state: RideStatus) -> frozenset[RideStatus]:
        """All statuses from which `to_state` can be reached."""
        return frozenset(
            from_state
            for from_state, targets in cls.TRANSITIONS.items()
            if to_state in targets
        )
