"""Delivery domain events: one per committed lifecycle step.

Past tense, versioned, and complete enough for the notification relay to render
a message without reading the delivery back.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from dispatch.domain import dispatch


@dispatch.event(part_of="Delivery")
class DeliveryCreated:
    """A customer requested a delivery; it is priced and waiting for authorization."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    customer_name = String(required=True)
    contact = String(required=True)
    user_email = String()
    delivery_type = String(required=True)
    pickup_point = Text(required=True)
    dropoff_point = Text(required=True)
    price = Float(required=True)
    created_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryAuthorized:
    __version__ = 1

    delivery_id = Identifier(required=True)
    authorized_by = String(required=True)
    authorized_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryAssigned:
    """A rider was attached to an authorized delivery."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    rider_id = Identifier(required=True)
    rider_name = String(required=True)
    assigned_by = String()
    assigned_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryReleased:
    """The rider was taken off the delivery so it can be assigned to someone else."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    rider_id = Identifier(required=True)
    released_by = String()
    released_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryStarted:
    __version__ = 1

    delivery_id = Identifier(required=True)
    rider_id = Identifier(required=True)
    started_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryDelivered:
    __version__ = 1

    delivery_id = Identifier(required=True)
    rider_id = Identifier()
    delivered_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryCancelled:
    __version__ = 1

    delivery_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_by = String()
    cancelled_at = DateTime(required=True)


@dispatch.event(part_of="Delivery")
class DeliveryPaymentRecorded:
    """The payment flow wrote back a payment status."""

    __version__ = 1

    delivery_id = Identifier(required=True)
    previous_status = String(required=True)
    payment_status = String(required=True)
    payment_method = String()
    paid_at = DateTime()
    recorded_at = DateTime(required=True)
