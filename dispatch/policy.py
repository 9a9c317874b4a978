"""
Purpose: Central configuration for order dispatch (single source of truth).
What it does:

Stores all tunable parameters:

CARRIER_NAME = "Fast Feet"  (source of tracking code initials)

TRACKING_DIGITS = 9

DISTANCE_DECIMALS = 2  (kilometers shown in nearby labels)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from orders.models import OrderStatus


@dataclass(frozen=True)
class DispatchPolicy:
    """
    Central configuration for the order dispatcher and the nearby matcher.
    """

    # --- Tracking codes ---
    carrier_name: str = "Fast Feet"
    tracking_digits: int = 9
    carrier_initials_length: int = 2

    # --- Nearby ranking ---
    # Kilometers are rounded to this many places for both sorting and labels.
    distance_decimals: int = 2

    # Orders in these statuses are never offered as nearby work.
    excluded_statuses: FrozenSet[OrderStatus] = field(
        default_factory=lambda: frozenset({OrderStatus.DELIVERED})
    )

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if not self.carrier_name.strip():
            raise ValueError("carrier_name must not be empty")

        if self.tracking_digits <= 0:
            raise ValueError("tracking_digits must be > 0")

        if self.carrier_initials_length <= 0:
            raise ValueError("carrier_initials_length must be > 0")

        if self.distance_decimals < 0:
            raise ValueError("distance_decimals must be >= 0")


def default_dispatch_policy() -> DispatchPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DispatchPolicy()
    p.validate()
    return p
