"""
Purpose: Recipient-facing wording for each order status.
The dispatcher hands these sentences to whatever notifier is configured
(e-mail, SMS, push). Delivery of the message itself lives outside this package.
"""

import logging

from .models import OrderStatus, parse_status

logger = logging.getLogger(__name__)

UNKNOWN_STATUS_MESSAGE = "Unknown status."

STATUS_MESSAGES = {
    OrderStatus.PENDING: "Your package was received by the carrier and is being processed.",
    OrderStatus.AWAITING_PICKUP: "Your package is ready to be collected by the delivery agent.",
    OrderStatus.PICKED_UP: "Your package is out for delivery.",
    OrderStatus.DELIVERED: "Your package was delivered.",
    OrderStatus.RETURNED: "We could not deliver your package and it was returned to the carrier.",
}


def status_message(status) -> str:
    parsed = parse_status(status)
    if parsed is None:
        logger.warning("No recipient message for status %r", status)
        return UNKNOWN_STATUS_MESSAGE
    return STATUS_MESSAGES[parsed]
