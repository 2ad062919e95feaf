"""Delivery creation: command, handler and the service the API calls."""

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from dispatch.delivery.delivery import Delivery, DeliveryType, created_event
from dispatch.delivery.persistence import load_delivery
from dispatch.delivery.pricing import resolve_price
from dispatch.domain import dispatch
from dispatch.notification.relay import publish
from dispatch.settings.platform import load_settings

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Delivery")
class CreateDelivery:
    """Request a delivery. The price comes from the current platform pricing."""

    customer_name = String(required=True, max_length=150)
    contact = String(required=True, max_length=50)
    user_email = String(max_length=254)
    item_description = Text(required=True)
    pickup_point = String(required=True, max_length=500)
    dropoff_point = String(required=True, max_length=500)
    delivery_type = String(required=True, max_length=20, choices=DeliveryType)
    notes = Text()


@dispatch.command_handler(part_of=Delivery)
class CreateDeliveryHandler:
    @handle(CreateDelivery)
    def create_delivery(self, command):
        quote = resolve_price(command.delivery_type, load_settings())
        delivery = Delivery.create(
            customer_name=command.customer_name,
            contact=command.contact,
            item_description=command.item_description,
            pickup_point=command.pickup_point,
            dropoff_point=command.dropoff_point,
            delivery_type=command.delivery_type,
            quote=quote,
            user_email=command.user_email,
            notes=command.notes,
        )
        current_domain.repository_for(Delivery).add(delivery)
        logger.info(
            "Delivery created",
            delivery_id=str(delivery.id),
            delivery_type=delivery.delivery_type,
            price=delivery.price,
        )
        return str(delivery.id)


def create_delivery(**fields) -> Delivery:
    """Create a delivery and notify about it once it is stored."""
    delivery_id = current_domain.process(CreateDelivery(**fields), asynchronous=False)
    delivery = load_delivery(delivery_id)
    publish([created_event(delivery)], delivery)
    return delivery
