"""Ride request dispatch: state machine, assignment engine and pricing."""

from ridehail.dispatch.engine import AssignmentEngine
from ridehail.dispatch.pricing import MeteredPricing, PricingPolicy
from ridehail.dispatch.results import TransitionResult
from ridehail.dispatch.transitions import RideTransitions

__all__ = [
    "AssignmentEngine",
    "MeteredPricing",
    "PricingPolicy",
    "TransitionResult",
    "RideTransitions",
]
