"""Rider self-service: a rider, identified by rider code, reports progress.

Each update goes through the lifecycle like an admin change would. Updates for
deliveries that are not assigned to the rider fail on their own without
affecting the rest.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from dispatch.bulk.coordinator import BulkFailure, BulkResult
from dispatch.delivery import transitions
from dispatch.delivery.delivery import Delivery, DeliveryStatus
from dispatch.delivery.lifecycle import parse_status
from dispatch.delivery.persistence import load_delivery
from dispatch.delivery.queries import deliveries_for_rider
from dispatch.errors import error_kind_of, error_message_of
from dispatch.rider.directory import find_rider_by_code

logger = structlog.get_logger(__name__)

# Statuses a rider may report; cancelling covers a failed delivery attempt
RIDER_REPORTABLE_STATUSES = frozenset(
    {DeliveryStatus.IN_PROGRESS, DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}
)


@dataclass(frozen=True)
class RiderUpdate:
    delivery_id: str
    status: str
    notes: str | None = None


def rider_deliveries(rider_code: str) -> tuple:
    """Return ``(rider, deliveries)`` for the rider with ``rider_code``."""
    rider = find_rider_by_code(rider_code)
    return rider, deliveries_for_rider(rider.id)


def _apply_one(rider, update: RiderUpdate) -> Delivery:
    target = parse_status(update.status)
    if target not in RIDER_REPORTABLE_STATUSES:
        raise ValidationError({"status": [f"Riders cannot set a delivery to {target.value}"]})

    delivery = load_delivery(update.delivery_id)
    if str(delivery.assigned_rider_id or "") != str(rider.id):
        raise ValidationError({"delivery_id": ["Delivery is not assigned to this rider"]})

    actor = f"rider:{rider.rider_code}"
    reason = update.notes if target == DeliveryStatus.CANCELLED else None
    return transitions.transition(update.delivery_id, target, actor=actor, reason=reason, rider_note=update.notes)


def apply_rider_updates(rider_code: str, updates: list[RiderUpdate]) -> BulkResult:
    rider = find_rider_by_code(rider_code)
    if not updates:
        raise ValidationError({"updates": ["At least one update is required"]})

    result = BulkResult(operation="rider-update")
    for update in updates:
        try:
            _apply_one(rider, update)
        except Exception as exc:
            logger.warning(
                "Rider update rejected",
                rider_code=rider.rider_code,
                delivery_id=update.delivery_id,
                error=error_kind_of(exc).value,
            )
            result.failed.append(BulkFailure(update.delivery_id, error_kind_of(exc), error_message_of(exc)))
        else:
            result.succeeded.append(update.delivery_id)

    logger.info(
        "Rider updates processed",
        rider_code=rider.rider_code,
        succeeded=result.succeeded_count,
        failed=result.failed_count,
    )
    return result
