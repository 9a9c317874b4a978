"""
Purpose: In-memory order and recipient storage.
What it does:
- Owns the per-process dictionaries of orders and recipients
- Implements the order store contract the dispatch layer depends on:
   - find_by_id(order_id)
   - find_by_deliveryman(deliveryman_id)
   - find(status, deliveryman_id)
   - save(order) / remove(order_id)
   - find_recipient(recipient_id) / save_recipient(recipient)

Insertion order is preserved, so find_by_deliveryman returns orders in the
order they were first saved.

Rule: Store owns data, not rules. No status checks here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import Order, OrderStatus, Recipient


@dataclass
class InMemoryOrderStore:
    _orders: Dict[str, Order] = field(default_factory=dict)  # all orders by id
    _recipients: Dict[str, Recipient] = field(default_factory=dict)  # all recipients by id

    # --- Orders ---

    def save(self, order: Order) -> Order:
        self._orders[order.id] = order
        #keep the recipient reachable on its own as well
        self._recipients.setdefault(order.recipient.id, order.recipient)
        return order

    def find_by_id(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def find_by_deliveryman(self, deliveryman_id: str) -> List[Order]:
        return [order for order in self._orders.values() if order.deliveryman_id == deliveryman_id]

    def find(self, status: Optional[OrderStatus] = None, deliveryman_id: Optional[str] = None) -> List[Order]:
        orders = list(self._orders.values())
        if status is not None:
            orders = [order for order in orders if order.status == status]
        if deliveryman_id is not None:
            orders = [order for order in orders if order.deliveryman_id == deliveryman_id]
        return orders

    def remove(self, order_id: str) -> None:
        self._orders.pop(order_id, None)

    # --- Recipients ---

    def save_recipient(self, recipient: Recipient) -> Recipient:
        self._recipients[recipient.id] = recipient
        return recipient

    def find_recipient(self, recipient_id: str) -> Optional[Recipient]:
        return self._recipients.get(recipient_id)

    def __len__(self) -> int:
        return len(self._orders)
