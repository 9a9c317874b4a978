"""
Purpose: Typed failures raised by the dispatch layer.

Every failure is a distinct class so the HTTP layer can pick a status code
without reading message text. None of these are fatal to the process.
"""

from typing import Optional


class DeliveryError(Exception):
    """Base class for every expected, caller-recoverable dispatch failure."""
    pass


class NotFound(DeliveryError):
    """Referenced order, recipient or agent does not exist."""

    def __init__(self, kind: str, identifier: Optional[str]):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class Forbidden(DeliveryError):
    """Caller lacks authority for the requested operation."""
    pass


class InvalidTransition(DeliveryError):
    """Requested status is not reachable from the current status."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid status transition from {_value(current)} to {_value(requested)}")


class MissingDeliveryProof(DeliveryError):
    """Delivery completion attempted without a photo."""
    pass


class MissingZipCode(DeliveryError):
    pass


class NoDeliveriesFound(DeliveryError):
    """The agent has no assigned orders at all."""
    pass


class UnresolvableOrigin(DeliveryError):
    """The postal code could not be turned into coordinates by any path."""
    pass


class NoNearbyDeliveries(DeliveryError):
    """Candidates existed but none had usable recipient coordinates."""
    pass


class NotificationFailed(DeliveryError):
    pass


def _value(status) -> str:
    return getattr(status, "value", str(status))
