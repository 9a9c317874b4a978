"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, tracking code, status, per-status timestamps, recipient, deliveryman, delivery photo)
- Recipient (postal address + optional stored coordinates)

Defines enums/constants:
- OrderStatus = PENDING | AWAITING_PICKUP | PICKED_UP | DELIVERED | RETURNED
- STATUS_TIMESTAMP_FIELDS: which Order attribute records entry into each status

Rule: No HTTP calls, no transition rules. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple
from datetime import datetime, timezone
import uuid

from couriers.models import User

LatLon = Tuple[float, float]


class OrderStatus(str, Enum):
    PENDING = "pending"
    AWAITING_PICKUP = "awaiting_pickup"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    RETURNED = "returned"


#attribute on Order stamped the first time the order enters each status
STATUS_TIMESTAMP_FIELDS: Dict[OrderStatus, str] = {
    OrderStatus.PENDING: "created_at",
    OrderStatus.AWAITING_PICKUP: "awaiting_pickup_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.RETURNED: "returned_at",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_status(value) -> Optional[OrderStatus]:
    """
    Returns the OrderStatus whose value matches exactly, or None.
    Used to turn a raw query-string filter into a status.
    """
    if isinstance(value, OrderStatus):
        return value
    if not isinstance(value, str):
        return None
    for status in OrderStatus:
        if status.value == value:
            return status
    return None


@dataclass
class Recipient:
    """
    The person an order is delivered to.
    latitude/longitude are optional: geocoding may have failed or never run.
    """
    id: str
    first_name: str
    last_name: str
    street: str
    number: int
    neighborhood: str
    city: str
    state: str
    zip_code: str
    complement: Optional[str] = None
    email: Optional[str] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinates(self) -> Optional[LatLon]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def full_address(self) -> str:
        return f"{self.street}, {self.city}, {self.state}"


@dataclass
class Order:
    """
    A package on its way to a recipient.

    Timestamps are filled in transition order and never cleared.
    """

    id: str
    recipient: Recipient
    tracking_code: str = ""
    deliveryman: Optional[User] = None

    status: OrderStatus = OrderStatus.PENDING

    created_at: Optional[datetime] = None
    awaiting_pickup_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None

    #URL of the proof-of-delivery photo, set only when entering DELIVERED
    delivery_photo: Optional[str] = None

    @property
    def deliveryman_id(self) -> Optional[str]:
        return self.deliveryman.id if self.deliveryman is not None else None

    @staticmethod # Factory method for a fresh PENDING order
    def new(recipient: Recipient, tracking_code: str, deliveryman: Optional[User] = None,
            created_at: Optional[datetime] = None) -> Order:
        return Order(
            id=str(uuid.uuid4()),
            recipient=recipient,
            tracking_code=tracking_code,
            deliveryman=deliveryman,
            status=OrderStatus.PENDING,
            created_at=created_at or utc_now(),
        )
