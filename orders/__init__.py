"""
Orders domain package.

Public API:
- Domain models: Order, Recipient, OrderStatus, parse_status
- In-memory store: InMemoryOrderStore
- Helpers: generate_tracking_code, status_message
"""
from .models import Order, Recipient, OrderStatus, STATUS_TIMESTAMP_FIELDS, parse_status
from .store import InMemoryOrderStore
from .tracking import generate_tracking_code
from .notifications import status_message

__all__ = ["Order",
           "Recipient",
             "OrderStatus",
               "STATUS_TIMESTAMP_FIELDS",
               "parse_status",
               "InMemoryOrderStore",
               "generate_tracking_code",
               "status_message",
               ]
