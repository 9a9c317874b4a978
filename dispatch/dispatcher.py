"""
Purpose: Orchestrator / application service (the "glue").
What it does:
Accepts order requests from the outer layer, validates the referenced recipient and agent,
asks the OrderTransitionAuthority or the NearbyDeliveryMatcher for a decision,
then persists through the order store, uploads delivery photos and notifies recipients.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from couriers.models import User, UserRole
from orders.models import Order, OrderStatus, Recipient, parse_status
from orders.notifications import status_message
from orders.tracking import generate_tracking_code
from routing.address_client import AddressResolutionError
from .errors import Forbidden, NotFound, NotificationFailed
from .nearby import NearbyDelivery, NearbyDeliveryMatcher
from .policy import DispatchPolicy, default_dispatch_policy
from .state_machines.order_state import OrderTransitionAuthority

logger = logging.getLogger(__name__)


class OrderDispatcher:
    """
    Coordinates every workflow operation on an Order.

    Collaborators:
    - order_store: find_by_id / find_by_deliveryman / find / save / remove / find_recipient
    - user_store: find_by_id
    - photo_uploader: upload(image_file) -> url
    - notifier (optional): send_status_update(email, name, message, tracking_code)
    """
    def __init__(
        self,
        order_store,
        user_store,
        address_resolver=None,
        photo_uploader=None,
        notifier=None,
        authority: Optional[OrderTransitionAuthority] = None,
        matcher: Optional[NearbyDeliveryMatcher] = None,
        policy: Optional[DispatchPolicy] = None,
        tracking_code_factory: Optional[Callable[[str, str], str]] = None,
    ):
        self.order_store = order_store
        self.user_store = user_store
        self.address_resolver = address_resolver
        self.photo_uploader = photo_uploader
        self.notifier = notifier
        self.policy = policy or default_dispatch_policy()

        self.authority = authority or OrderTransitionAuthority(order_lookup=order_store)
        if matcher is None and address_resolver is not None:
            matcher = NearbyDeliveryMatcher(order_store, address_resolver, policy=self.policy)
        self.matcher = matcher
        self.tracking_code_factory = tracking_code_factory or self._default_tracking_code

    #----------------
    # Validation helpers
    #----------------
    def _default_tracking_code(self, carrier_name: str, recipient_state: str) -> str:
        return generate_tracking_code(
            carrier_name,
            recipient_state,
            digits=self.policy.tracking_digits,
            initials_length=self.policy.carrier_initials_length,
        )

    def validate_recipient(self, recipient_id: str) -> Recipient:
        recipient = self.order_store.find_recipient(recipient_id)
        if recipient is None:
            raise NotFound("Recipient", recipient_id)
        return recipient

    def validate_deliveryman(self, deliveryman_id: str) -> User:
        deliveryman = self.user_store.find_by_id(deliveryman_id)
        if deliveryman is None:
            raise NotFound("Deliveryman", deliveryman_id)
        if not deliveryman.is_deliveryman:
            raise Forbidden("User is not a deliveryman")
        return deliveryman

    def get_order(self, order_id: str) -> Order:
        order = self.order_store.find_by_id(order_id)
        if order is None:
            raise NotFound("Order", order_id)
        return order

    def _notify_status_change(self, order: Order) -> None:
        if self.notifier is None or not order.recipient.email:
            return

        try:
            self.notifier.send_status_update(
                order.recipient.email,
                order.recipient.first_name,
                status_message(order.status),
                order.tracking_code,
            )
        except Exception as exc:
            logger.exception("Failed to send status notification for order %s", order.id)
            raise NotificationFailed(f"Failed to notify recipient of order {order.id}") from exc

    #----------------
    # Administrative operations
    #----------------
    def register_recipient(self, recipient: Recipient) -> Recipient:
        """
        Completes the recipient address from its postal code and stores coordinates.

        Postal-service fields win over what the caller typed. Coordinates come from the
        postal lookup when embedded, otherwise from geocoding the completed street address.
        A resolution failure is logged and the recipient is stored without coordinates,
        so it is simply skipped by nearby ranking later.
        """
        if self.address_resolver is None:
            return self.order_store.save_recipient(recipient)

        try:
            address = self.address_resolver.resolve_postal_code(recipient.zip_code)
            recipient = replace(
                recipient,
                street=address.street or recipient.street,
                neighborhood=address.neighborhood or recipient.neighborhood,
                city=address.city or recipient.city,
                state=address.region or recipient.state,
            )

            latitude, longitude = address.latitude, address.longitude
            if latitude is None or longitude is None:
                latitude, longitude = self.address_resolver.geocode_address(recipient.full_address())
        except AddressResolutionError as exc:
            logger.warning("Could not geocode recipient %s (zip %s): %s", recipient.id, recipient.zip_code, exc)
            latitude, longitude = None, None

        recipient = replace(recipient, latitude=latitude, longitude=longitude)
        return self.order_store.save_recipient(recipient)

    def create_order(self, recipient_id: str, deliveryman_id: Optional[str] = None) -> Order:
        recipient = self.validate_recipient(recipient_id)
        deliveryman = self.validate_deliveryman(deliveryman_id) if deliveryman_id else None

        order = Order.new(
            recipient=recipient,
            tracking_code=self.tracking_code_factory(self.policy.carrier_name, recipient.state),
            deliveryman=deliveryman,
            created_at=self.authority.clock(),
        )
        saved = self.order_store.save(order)
        logger.info("Created order %s (%s) for recipient %s", saved.id, saved.tracking_code, recipient.id)

        self._notify_status_change(saved)
        return saved

    def update_order(
        self,
        order_id: str,
        recipient_id: Optional[str] = None,
        deliveryman_id: Optional[str] = None,
    ) -> Order:
        order = self.get_order(order_id)

        if recipient_id:
            order.recipient = self.validate_recipient(recipient_id)
        if deliveryman_id:
            order.deliveryman = self.validate_deliveryman(deliveryman_id)

        return self.order_store.save(order)

    def delete_order(self, order_id: str) -> None:
        self.get_order(order_id)
        self.order_store.remove(order_id)

    def list_orders(self, status=None, deliveryman_id: Optional[str] = None) -> List[Order]:
        """
        status may be an OrderStatus or its raw value; an unrecognized value means no status filter.
        """
        parsed = parse_status(status) if status is not None else None
        if status is not None and parsed is None:
            logger.warning("Ignoring unknown status filter %r", status)
        return self.order_store.find(status=parsed, deliveryman_id=deliveryman_id)

    #----------------
    # Workflow transitions
    #----------------
    def _transition(self, order_id: str, requested: OrderStatus, acting_user_id: str,
                    acting_role: UserRole) -> Order:
        order = self.authority.apply_transition(order_id, requested, acting_user_id, acting_role)
        saved = self.order_store.save(order)
        self._notify_status_change(saved)
        return saved

    def mark_awaiting_pickup(self, order_id: str, acting_user_id: str, acting_role: UserRole) -> Order:
        return self._transition(order_id, OrderStatus.AWAITING_PICKUP, acting_user_id, acting_role)

    def pickup_order(self, order_id: str, acting_user_id: str, acting_role: UserRole) -> Order:
        return self._transition(order_id, OrderStatus.PICKED_UP, acting_user_id, acting_role)

    def return_order(self, order_id: str, acting_user_id: str, acting_role: UserRole) -> Order:
        return self._transition(order_id, OrderStatus.RETURNED, acting_user_id, acting_role)

    def mark_delivered(self, order_id: str, acting_user_id: str, image_file,
                       acting_role: UserRole = UserRole.DELIVERYMAN) -> Order:
        """
        Proof of delivery is checked, and the state machine consulted,
        before the photo goes anywhere.
        """
        order = self.get_order(order_id)

        self.authority.validate_for_delivery(order, acting_user_id, image_file)
        self.authority.check_transition(order, OrderStatus.DELIVERED)

        if self.photo_uploader is None:
            raise ValueError("OrderDispatcher needs a photo_uploader to complete deliveries")

        photo_url = self.photo_uploader.upload(image_file)
        self.authority.apply(order, OrderStatus.DELIVERED, acting_user_id, acting_role)
        order.delivery_photo = photo_url

        saved = self.order_store.save(order)
        self._notify_status_change(saved)
        return saved

    #----------------
    # Agent queries
    #----------------
    def find_deliveries(self, deliveryman_id: str) -> List[Order]:
        return self.order_store.find_by_deliveryman(deliveryman_id)

    def find_nearby_deliveries(self, deliveryman_id: str, zip_code: str) -> List[NearbyDelivery]:
        if self.matcher is None:
            raise ValueError("OrderDispatcher needs an address_resolver or matcher for nearby lookups")

        self.validate_deliveryman(deliveryman_id)
        return self.matcher.find_nearby(deliveryman_id, zip_code)
