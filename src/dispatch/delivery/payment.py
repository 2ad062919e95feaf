"""Payment write-back from the payment flow onto a delivery."""

import structlog

from dispatch.delivery.delivery import Delivery
from dispatch.delivery.persistence import update_delivery
from dispatch.notification.relay import publish

logger = structlog.get_logger(__name__)


def record_payment(delivery_id: str, payment_status: str, payment_method: str | None = None) -> Delivery:
    """Set the payment status; the first move to ``paid`` stamps ``paid_at``."""
    raised = []

    def _apply(delivery: Delivery) -> None:
        delivery.record_payment(payment_status, payment_method)
        raised.extend(delivery._events)

    delivery = update_delivery(delivery_id, _apply)
    logger.info(
        "Payment recorded",
        delivery_id=str(delivery_id),
        payment_status=delivery.payment_status,
        payment_method=delivery.payment_method,
    )
    publish(raised, delivery)
    return delivery
