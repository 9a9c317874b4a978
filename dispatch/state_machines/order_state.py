"""
Purpose: Order status state machine and transition authorization.
What it does:
- Holds the transition table (the only place allowed edges are defined)
- Decides who may move an order to a given status
- Applies an allowed transition to an in-memory Order and stamps its timestamp

Rule: No persistence. The caller saves the returned order.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Optional

from couriers.models import UserRole
from orders.models import Order, OrderStatus, STATUS_TIMESTAMP_FIELDS, utc_now
from dispatch.errors import Forbidden, InvalidTransition, MissingDeliveryProof, NotFound

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.AWAITING_PICKUP}),
    OrderStatus.AWAITING_PICKUP: frozenset({OrderStatus.PICKED_UP}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED}),
    OrderStatus.RETURNED: frozenset({OrderStatus.AWAITING_PICKUP, OrderStatus.PICKED_UP}),
    OrderStatus.DELIVERED: frozenset(),
}

#statuses an admin may force without being the assigned agent
ADMIN_TARGETS: FrozenSet[OrderStatus] = frozenset({OrderStatus.AWAITING_PICKUP, OrderStatus.PICKED_UP})


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in TRANSITIONS.get(current, frozenset())


def is_authorized(order: Order, requested: OrderStatus, acting_user_id: str, acting_role: UserRole) -> bool:
    is_assigned_agent = order.deliveryman_id is not None and order.deliveryman_id == acting_user_id
    is_admin_allowed = acting_role == UserRole.ADMIN and requested in ADMIN_TARGETS
    return is_assigned_agent or is_admin_allowed


def _has_image(image_file) -> bool:
    if image_file is None:
        return False
    try:
        return len(image_file) > 0
    except TypeError:
        #file-like objects and upload handles without a length count as present
        return True


class OrderTransitionAuthority:
    """
    Owns the order state machine.

    order_lookup only needs find_by_id(order_id) -> Optional[Order].
    clock is injectable so timestamps can be pinned in tests.
    """

    def __init__(self, order_lookup=None, clock: Optional[Callable[[], datetime]] = None):
        self.order_lookup = order_lookup
        self.clock = clock or utc_now

    def authorize(self, order: Order, requested: OrderStatus, acting_user_id: str, acting_role: UserRole) -> None:
        if not is_authorized(order, requested, acting_user_id, acting_role):
            raise Forbidden("You do not have permission to update this order")

    def check_transition(self, order: Order, requested: OrderStatus) -> None:
        if not can_transition(order.status, requested):
            raise InvalidTransition(order.status, requested)

    def apply(self, order: Order, requested: OrderStatus, acting_user_id: str, acting_role: UserRole) -> Order:
        """
        Authorization runs before the table check, so a forbidden caller never
        learns whether the transition itself would have been valid.
        """
        self.authorize(order, requested, acting_user_id, acting_role)
        self.check_transition(order, requested)

        previous = order.status
        order.status = requested

        timestamp_field = STATUS_TIMESTAMP_FIELDS[requested]
        #set-once: re-entering a status keeps the first timestamp
        if getattr(order, timestamp_field) is None:
            setattr(order, timestamp_field, self.clock())

        logger.info("Order %s moved %s -> %s by %s (%s)",
                    order.id, previous.value, requested.value, acting_user_id, acting_role.value)
        return order

    def apply_transition(self, order_id: str, requested: OrderStatus, acting_user_id: str,
                         acting_role: UserRole) -> Order:
        if self.order_lookup is None:
            raise ValueError("OrderTransitionAuthority needs an order_lookup to load orders by id")

        order = self.order_lookup.find_by_id(order_id)
        if order is None:
            raise NotFound("Order", order_id)
        return self.apply(order, requested, acting_user_id, acting_role)

    def validate_for_delivery(self, order: Order, acting_user_id: str, image_file) -> Order:
        """
        Precondition for completing a delivery.
        Must pass before the status moves to DELIVERED and before any photo upload.
        """
        if order.deliveryman_id is None or order.deliveryman_id != acting_user_id:
            raise Forbidden("Only the assigned delivery person can mark the order as delivered")

        if not _has_image(image_file):
            raise MissingDeliveryProof("A delivery photo is required to mark as delivered")

        return order
