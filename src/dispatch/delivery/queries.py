"""Read-side lookups over stored deliveries."""

from dispatch.delivery.delivery import Delivery, DeliveryStatus, normalize_email
from dispatch.delivery.lifecycle import parse_status
from dispatch.delivery.persistence import find_deliveries
from dispatch.utils.clock import as_utc


def newest_first(deliveries: list[Delivery]) -> list[Delivery]:
    def key(delivery):
        created = as_utc(delivery.created_at)
        return created.timestamp() if created else 0.0

    return sorted(deliveries, key=key, reverse=True)


def list_deliveries(status: str | None = None, delivery_type: str | None = None) -> list[Delivery]:
    filters = {}
    if status:
        filters["status"] = parse_status(status).value
    if delivery_type:
        filters["delivery_type"] = delivery_type
    return newest_first(find_deliveries(**filters))


def deliveries_for_customer(email: str) -> list[Delivery]:
    """A customer's delivery history, matched on their lowercased account e-mail."""
    email = normalize_email(email)
    if not email:
        return []
    return newest_first(find_deliveries(user_email=email))


# Statuses a rider sees on their own delivery list
RIDER_VISIBLE_STATUSES = (
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.IN_PROGRESS,
    DeliveryStatus.DELIVERED,
    DeliveryStatus.CANCELLED,
)


def deliveries_for_rider(rider_id: str) -> list[Delivery]:
    deliveries = [
        delivery
        for delivery in find_deliveries(assigned_rider_id=str(rider_id))
        if parse_status(delivery.status) in RIDER_VISIBLE_STATUSES
    ]
    return newest_first(deliveries)


def open_deliveries() -> list[Delivery]:
    return [d for d in find_deliveries() if not d.is_terminal]
