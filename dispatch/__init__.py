#Expose the high-level pipeline pieces:
#State machine / authorization
#Nearby ranking
#Dispatcher orchestrator (the "one call" entry point for every order operation)

from .errors import (
    DeliveryError,
    NotFound,
    Forbidden,
    InvalidTransition,
    MissingDeliveryProof,
    MissingZipCode,
    NoDeliveriesFound,
    UnresolvableOrigin,
    NoNearbyDeliveries,
    NotificationFailed,
)
from .state_machines.order_state import OrderTransitionAuthority
from .nearby import NearbyDelivery, NearbyDeliveryMatcher
from .policy import DispatchPolicy, default_dispatch_policy
from .dispatcher import OrderDispatcher

__all__ = [
    "DeliveryError",
    "NotFound",
    "Forbidden",
    "InvalidTransition",
    "MissingDeliveryProof",
    "MissingZipCode",
    "NoDeliveriesFound",
    "UnresolvableOrigin",
    "NoNearbyDeliveries",
    "NotificationFailed",
    "OrderTransitionAuthority",
    "NearbyDelivery",
    "NearbyDeliveryMatcher",
    "DispatchPolicy",
    "default_dispatch_policy",
    "OrderDispatcher",
]
