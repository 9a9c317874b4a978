"""
Purpose: Rank a delivery agent's open orders by straight-line distance from a postal code.
What it does:
- Resolves the postal code to an origin coordinate (postal lookup, then geocoder fallback)
- Drops terminal orders and orders whose recipient has no stored coordinates
- Computes distance origin -> recipient for the rest and sorts closest first

Output: a list of NearbyDelivery (order + numeric km + "<km> km" label).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from orders.models import Order
from routing.address_client import AddressResolutionError
from routing.geodesy import format_km, haversine_m, meters_to_km
from .errors import MissingZipCode, NoDeliveriesFound, NoNearbyDeliveries, UnresolvableOrigin
from .policy import DispatchPolicy, default_dispatch_policy

logger = logging.getLogger(__name__)

LatLon = Tuple[float, float]


@dataclass(frozen=True)
class NearbyDelivery:
    """
    One ranked candidate.
    distance_km drives the ordering; distance_label is presentation only.
    """
    order: Order
    distance_km: float
    distance_label: str


class NearbyDeliveryMatcher:
    """
    order_store needs find_by_deliveryman(deliveryman_id) -> List[Order].
    address_resolver needs resolve_postal_code(code) and geocode_address(text).
    distance_fn takes two (lat, lon) points and returns meters.
    """

    def __init__(
        self,
        order_store,
        address_resolver,
        distance_fn: Callable[[LatLon, LatLon], float] = haversine_m,
        policy: Optional[DispatchPolicy] = None,
    ):
        self.order_store = order_store
        self.address_resolver = address_resolver
        self.distance_fn = distance_fn
        self.policy = policy or default_dispatch_policy()

    def resolve_origin(self, zip_code: str) -> LatLon:
        """
        Postal lookup first; if it carries no coordinates, geocode the street address it returned.
        """
        try:
            address = self.address_resolver.resolve_postal_code(zip_code)
            latitude, longitude = address.latitude, address.longitude

            if latitude is None or longitude is None:
                latitude, longitude = self.address_resolver.geocode_address(address.full_address())
        except AddressResolutionError as exc:
            raise UnresolvableOrigin(f"Could not resolve postal code {zip_code}") from exc

        if latitude is None or longitude is None:
            raise UnresolvableOrigin("Invalid zip code or address information not available")

        return (latitude, longitude)

    def find_nearby(self, deliveryman_id: str, zip_code: str) -> List[NearbyDelivery]:
        if zip_code is None or not str(zip_code).strip():
            raise MissingZipCode("Zip code not provided")

        deliveries = self.order_store.find_by_deliveryman(deliveryman_id)
        if not deliveries:
            raise NoDeliveriesFound("No deliveries found")

        candidates = [order for order in deliveries if order.status not in self.policy.excluded_statuses]

        origin = self.resolve_origin(zip_code)

        decimals = self.policy.distance_decimals
        ranked: List[NearbyDelivery] = []
        for order in candidates:
            destination = order.recipient.coordinates

            #data-quality gap, not a request failure: skip and keep going
            if destination is None:
                logger.warning(
                    "Skipping order %s in nearby ranking: recipient %s has no coordinates",
                    order.id, order.recipient.id,
                )
                continue

            distance_km = meters_to_km(self.distance_fn(origin, destination), decimals)
            ranked.append(
                NearbyDelivery(
                    order=order,
                    distance_km=distance_km,
                    distance_label=format_km(distance_km, decimals),
                )
            )

        if not ranked:
            raise NoNearbyDeliveries("No nearby deliveries found")

        #stable: equal distances keep the order they were fetched in
        ranked.sort(key=lambda candidate: candidate.distance_km)
        return ranked
