"""Delivery persistence: loads, queries and the compare-and-set commit.

Every write that changes a stored delivery goes through ``_commit_lock``: the
stored status is re-read and compared inside the lock, so two writers that
computed a transition from the same status cannot both commit. Assignments
under a workload cap also re-count the rider's stored deliveries there.
"""

import threading
from collections.abc import Callable

import structlog
from protean import atomic_change
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from dispatch.delivery.delivery import WORKLOAD_STATUSES, Delivery
from dispatch.delivery.lifecycle import Transition
from dispatch.errors import ConcurrentModificationError, NotFoundError, RiderAtCapacityError
from dispatch.utils.query import fetch_all

logger = structlog.get_logger(__name__)

_commit_lock = threading.RLock()


def load_delivery(delivery_id: str) -> Delivery:
    try:
        return current_domain.repository_for(Delivery).get(str(delivery_id))
    except ObjectNotFoundError:
        raise NotFoundError("Delivery", delivery_id) from None


def find_deliveries(**filters) -> list[Delivery]:
    """Stored deliveries matching the exact-match ``filters`` (all when none given)."""
    query = current_domain.repository_for(Delivery)._dao.query
    if filters:
        query = query.filter(**filters)
    return fetch_all(query)


def commit_transition(transition: Transition) -> Delivery:
    """Persist ``transition`` if the stored status is still the one it was computed from.

    Returns the stored delivery. Raises ``ConcurrentModificationError`` when
    another writer moved the delivery first, and its ``RiderAtCapacityError``
    subclass when a capped assignment finds the rider already full.
    """
    if not transition.changed:
        return transition.source

    repo = current_domain.repository_for(Delivery)
    with _commit_lock:
        stored = load_delivery(transition.delivery_id)
        if stored.status != transition.from_status:
            logger.warning(
                "Status changed underneath transition",
                delivery_id=transition.delivery_id,
                expected=transition.from_status,
                actual=stored.status,
                requested=transition.to_status,
            )
            raise ConcurrentModificationError(
                transition.delivery_id,
                expected=transition.from_status,
                actual=stored.status,
            )
        if transition.workload_cap is not None:
            _check_workload(transition)

        with atomic_change(stored):
            for field_name, value in transition.changes.items():
                setattr(stored, field_name, value)
            if transition.rider_note:
                stored.append_rider_note(transition.rider_note)
        for event in transition.events:
            stored.raise_(event)
        repo.add(stored)

    return stored


def rider_workload(rider_id: str) -> int:
    """Stored assigned and in-progress deliveries held by ``rider_id``."""
    return sum(1 for d in find_deliveries(assigned_rider_id=str(rider_id)) if d.status in WORKLOAD_STATUSES)


def _check_workload(transition: Transition) -> None:
    rider_id = transition.changes.get("assigned_rider_id")
    if not rider_id:
        return
    workload = rider_workload(rider_id)
    if workload >= transition.workload_cap:
        logger.warning(
            "Rider filled up before assignment committed",
            delivery_id=transition.delivery_id,
            rider_id=rider_id,
            workload=workload,
            max_deliveries_per_rider=transition.workload_cap,
        )
        raise RiderAtCapacityError(transition.delivery_id, rider_id, workload, transition.workload_cap)


def update_delivery(delivery_id: str, mutate: Callable[[Delivery], None]) -> Delivery:
    """Apply a non-lifecycle change (payment write-back) under the commit lock."""
    repo = current_domain.repository_for(Delivery)
    with _commit_lock:
        stored = load_delivery(delivery_id)
        mutate(stored)
        repo.add(stored)
    return stored
