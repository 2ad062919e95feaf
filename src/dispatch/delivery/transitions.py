"""Delivery transition service: the single-item entry point for status changes.

Each attempt reads the delivery, resolves a rider when the step is an
assignment, computes the transition and commits it with a compare-and-set on
status. Losing the race re-reads and tries again, up to
``DISPATCH_CAS_MAX_ATTEMPTS`` times. Notifications go out after the commit.
"""

from dataclasses import replace

import structlog

from dispatch.assignment.policy import strategy_for
from dispatch.assignment.workload import WorkloadTally
from dispatch.config import cas_max_attempts
from dispatch.delivery.delivery import Delivery, DeliveryStatus
from dispatch.delivery.lifecycle import apply_transition, parse_status
from dispatch.delivery.persistence import commit_transition, load_delivery
from dispatch.errors import ConcurrentModificationError, InvalidTransitionError, RiderAtCapacityError
from dispatch.notification.relay import publish
from dispatch.rider.directory import list_riders, load_rider
from dispatch.settings.platform import load_settings

logger = structlog.get_logger(__name__)


def transition(
    delivery_id: str,
    requested_status,
    actor: str | None = None,
    rider_id: str | None = None,
    strategy: str | None = None,
    reason: str | None = None,
    settings=None,
    tally: WorkloadTally | None = None,
    allowed_from=None,
    rider_note: str | None = None,
) -> Delivery:
    """Move a delivery to ``requested_status`` and return the stored result.

    ``allowed_from`` narrows the statuses the step may start from (``authorize``
    must not turn into a rider release). ``settings`` and ``tally`` let a bulk
    run share one snapshot and one workload count across its items. A
    ``rider_note`` is appended in the same commit, and only when the status moves.
    """
    target = parse_status(requested_status)
    attempts = cas_max_attempts()
    last_conflict = None

    for attempt in range(1, attempts + 1):
        delivery = load_delivery(delivery_id)
        current = parse_status(delivery.status)
        if allowed_from is not None and current != target and current not in allowed_from:
            raise InvalidTransitionError(current.value, target.value)

        assignment = None
        rider = None
        try:
            if target == DeliveryStatus.ASSIGNED:
                if current == DeliveryStatus.AUTHORIZED:
                    snapshot = settings if settings is not None else load_settings()
                    assignment = strategy_for(snapshot.auto_assignment, rider_id=rider_id, strategy=strategy, tally=tally)
                    rider = assignment.select_rider(list_riders(), delivery)
                elif current == DeliveryStatus.ASSIGNED and rider_id:
                    rider = load_rider(rider_id)

            outcome = apply_transition(delivery, target, actor=actor, rider=rider, reason=reason)
            if outcome.changed:
                outcome = replace(
                    outcome,
                    workload_cap=assignment.workload_cap if assignment is not None else None,
                    rider_note=rider_note,
                )
            stored = commit_transition(outcome)
        except ConcurrentModificationError as exc:
            if isinstance(exc, RiderAtCapacityError) and assignment is not None:
                assignment.overtaken(rider, exc.workload)
            elif assignment is not None:
                assignment.release(rider)
            last_conflict = exc
            logger.warning(
                "Transition lost a race, retrying",
                delivery_id=str(delivery_id),
                requested=target.value,
                attempt=attempt,
                max_attempts=attempts,
            )
            continue
        except Exception:
            if assignment is not None:
                assignment.release(rider)
            raise

        if outcome.changed:
            logger.info(
                "Delivery status changed",
                delivery_id=str(delivery_id),
                from_status=outcome.from_status,
                to_status=outcome.to_status,
                actor=actor,
                rider_id=str(rider.id) if rider is not None else None,
            )
            publish(outcome.events, stored)
        return stored

    raise ConcurrentModificationError(
        str(delivery_id),
        expected=(last_conflict.expected if last_conflict else None) or target.value,
        actual=last_conflict.actual if last_conflict else None,
        attempts=attempts,
    )


# ---------------------------------------------------------------------------
# Named steps
# ---------------------------------------------------------------------------
def authorize(delivery_id: str, actor: str, **kwargs) -> Delivery:
    return transition(
        delivery_id,
        DeliveryStatus.AUTHORIZED,
        actor=actor,
        allowed_from={DeliveryStatus.PENDING},
        **kwargs,
    )


def assign(delivery_id: str, actor: str | None = None, rider_id: str | None = None, strategy: str | None = None, **kwargs) -> Delivery:
    return transition(delivery_id, DeliveryStatus.ASSIGNED, actor=actor, rider_id=rider_id, strategy=strategy, **kwargs)


def release(delivery_id: str, actor: str | None = None, **kwargs) -> Delivery:
    """Take the rider off an assigned delivery so it can be assigned again."""
    return transition(
        delivery_id,
        DeliveryStatus.AUTHORIZED,
        actor=actor,
        allowed_from={DeliveryStatus.ASSIGNED},
        **kwargs,
    )


def start(delivery_id: str, actor: str | None = None, **kwargs) -> Delivery:
    return transition(delivery_id, DeliveryStatus.IN_PROGRESS, actor=actor, **kwargs)


def deliver(delivery_id: str, actor: str | None = None, **kwargs) -> Delivery:
    return transition(delivery_id, DeliveryStatus.DELIVERED, actor=actor, **kwargs)


def cancel(delivery_id: str, actor: str | None = None, reason: str | None = None, **kwargs) -> Delivery:
    return transition(delivery_id, DeliveryStatus.CANCELLED, actor=actor, reason=reason, **kwargs)
