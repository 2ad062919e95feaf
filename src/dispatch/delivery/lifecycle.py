"""Delivery lifecycle: transition guards and the changes each step makes.

    pending → authorized → assigned → in-progress → delivered
    assigned → authorized                 (release the rider for re-assignment)
    {pending, authorized, assigned} → cancelled

``apply_transition`` never touches the record it is given. It returns a
``Transition``: the record as it would look afterwards, the field changes and
the single event describing the step. Committing that result is the job of
``dispatch.delivery.persistence.commit_transition``.
"""

from dataclasses import dataclass, field
from datetime import datetime

from protean.exceptions import ValidationError
from protean.utils.reflection import declared_fields

from dispatch.delivery.delivery import Delivery, DeliveryStatus
from dispatch.delivery.events import (
    DeliveryAssigned,
    DeliveryAuthorized,
    DeliveryCancelled,
    DeliveryDelivered,
    DeliveryReleased,
    DeliveryStarted,
)
from dispatch.errors import InvalidTransitionError
from dispatch.utils.clock import as_utc, utc_now

_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.AUTHORIZED, DeliveryStatus.CANCELLED},
    DeliveryStatus.AUTHORIZED: {DeliveryStatus.ASSIGNED, DeliveryStatus.CANCELLED},
    DeliveryStatus.ASSIGNED: {
        DeliveryStatus.IN_PROGRESS,
        DeliveryStatus.AUTHORIZED,  # release
        DeliveryStatus.CANCELLED,
    },
    DeliveryStatus.IN_PROGRESS: {DeliveryStatus.DELIVERED},
    DeliveryStatus.DELIVERED: set(),  # terminal
    DeliveryStatus.CANCELLED: set(),  # terminal
}

CANCELLABLE_STATUSES = frozenset(
    {DeliveryStatus.PENDING, DeliveryStatus.AUTHORIZED, DeliveryStatus.ASSIGNED}
)

# Stage timestamps in lifecycle order; each must not precede the one before it
_STAGE_TIMESTAMPS = ("created_at", "authorized_at", "assigned_at", "started_at", "delivered_at")


@dataclass(frozen=True)
class Transition:
    """Outcome of asking a delivery to move to ``to_status``."""

    source: Delivery
    delivery: Delivery
    from_status: str
    to_status: str
    changes: dict = field(default_factory=dict)
    events: tuple = ()
    # Set by the caller before commit: a cap re-checked against stored workload,
    # and a rider note written together with the status change
    workload_cap: int | None = None
    rider_note: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.changes)

    @property
    def delivery_id(self) -> str:
        return str(self.source.id)


def parse_status(value) -> DeliveryStatus:
    if isinstance(value, DeliveryStatus):
        return value
    try:
        return DeliveryStatus(value)
    except ValueError:
        raise ValidationError({"status": [f"Unknown delivery status: {value}"]}) from None


def allowed_targets(status) -> set[DeliveryStatus]:
    return set(_VALID_TRANSITIONS[parse_status(status)])


def can_transition(from_status, to_status) -> bool:
    return parse_status(to_status) in _VALID_TRANSITIONS[parse_status(from_status)]


def apply_transition(
    delivery: Delivery,
    requested_status,
    actor: str | None = None,
    rider=None,
    reason: str | None = None,
    at: datetime | None = None,
) -> Transition:
    """Compute the result of moving ``delivery`` to ``requested_status``.

    ``rider`` is the already-resolved ``Rider`` for an assignment. Asking for the
    status the delivery already has is a no-op with no events, except that an
    assigned delivery cannot be "re-assigned" to a different rider in place.
    """
    current = parse_status(delivery.status)
    target = parse_status(requested_status)

    if target == current:
        if current == DeliveryStatus.ASSIGNED and rider is not None and str(rider.id) != str(delivery.assigned_rider_id):
            raise InvalidTransitionError(
                current.value,
                target.value,
                reason=f"already assigned to {delivery.assigned_rider_name}; release it first",
            )
        return Transition(
            source=delivery,
            delivery=delivery,
            from_status=current.value,
            to_status=target.value,
        )

    if target not in _VALID_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)

    now = _not_before_last_stage(delivery, at or utc_now())
    changes, event = _EDGE_EFFECTS[(current, target)](delivery, actor=actor, rider=rider, reason=reason, now=now)
    changes["status"] = target.value
    changes["updated_at"] = now

    return Transition(
        source=delivery,
        delivery=_derive(delivery, changes),
        from_status=current.value,
        to_status=target.value,
        changes=changes,
        events=(event,),
    )


# ---------------------------------------------------------------------------
# Per-edge effects: (changes, event)
# ---------------------------------------------------------------------------
def _authorize(delivery, actor, now, **_):
    if not actor or not str(actor).strip():
        raise ValidationError({"actor": ["Authorizing a delivery requires the acting admin"]})
    changes = {"authorized_by": str(actor).strip(), "authorized_at": now}
    event = DeliveryAuthorized(delivery_id=str(delivery.id), authorized_by=changes["authorized_by"], authorized_at=now)
    return changes, event


def _assign(delivery, actor, rider, now, **_):
    if rider is None:
        raise ValidationError({"rider_id": ["Assigning a delivery requires a rider"]})
    changes = {
        "assigned_rider_id": str(rider.id),
        "assigned_rider_name": rider.name,
        "assigned_at": now,
    }
    event = DeliveryAssigned(
        delivery_id=str(delivery.id),
        rider_id=str(rider.id),
        rider_name=rider.name,
        assigned_by=actor,
        assigned_at=now,
    )
    return changes, event


def _release(delivery, actor, now, **_):
    changes = {"assigned_rider_id": None, "assigned_rider_name": None, "assigned_at": None}
    event = DeliveryReleased(
        delivery_id=str(delivery.id),
        rider_id=str(delivery.assigned_rider_id),
        released_by=actor,
        released_at=now,
    )
    return changes, event


def _start(delivery, now, **_):
    if not delivery.assigned_rider_id:
        raise InvalidTransitionError(
            DeliveryStatus.ASSIGNED.value,
            DeliveryStatus.IN_PROGRESS.value,
            reason="no rider assigned",
        )
    event = DeliveryStarted(delivery_id=str(delivery.id), rider_id=str(delivery.assigned_rider_id), started_at=now)
    return {"started_at": now}, event


def _deliver(delivery, now, **_):
    event = DeliveryDelivered(
        delivery_id=str(delivery.id),
        rider_id=str(delivery.assigned_rider_id) if delivery.assigned_rider_id else None,
        delivered_at=now,
    )
    return {"delivered_at": now}, event


def _cancel(delivery, actor, reason, now, **_):
    changes = {"cancelled_at": now, "cancellation_reason": reason}
    event = DeliveryCancelled(
        delivery_id=str(delivery.id),
        previous_status=delivery.status,
        reason=reason,
        cancelled_by=actor,
        cancelled_at=now,
    )
    return changes, event


_EDGE_EFFECTS = {
    (DeliveryStatus.PENDING, DeliveryStatus.AUTHORIZED): _authorize,
    (DeliveryStatus.AUTHORIZED, DeliveryStatus.ASSIGNED): _assign,
    (DeliveryStatus.ASSIGNED, DeliveryStatus.AUTHORIZED): _release,
    (DeliveryStatus.ASSIGNED, DeliveryStatus.IN_PROGRESS): _start,
    (DeliveryStatus.IN_PROGRESS, DeliveryStatus.DELIVERED): _deliver,
    **{(status, DeliveryStatus.CANCELLED): _cancel for status in CANCELLABLE_STATUSES},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _not_before_last_stage(delivery: Delivery, now: datetime) -> datetime:
    """Clamp ``now`` so stage timestamps stay non-decreasing under clock skew."""
    now = as_utc(now)
    stamps = [as_utc(getattr(delivery, name)) for name in _STAGE_TIMESTAMPS]
    latest = max((stamp for stamp in stamps if stamp is not None), default=None)
    return max(now, latest) if latest is not None else now


def _derive(delivery: Delivery, changes: dict) -> Delivery:
    """A detached copy of ``delivery`` with ``changes`` applied."""
    values = {name: getattr(delivery, name) for name in declared_fields(delivery) if not name.startswith("_")}
    values.update(changes)
    return Delivery(**values)
