"""Rider assignment strategies.

Each strategy picks one rider out of a pool for a delivery. Which strategy runs
is decided elsewhere (``dispatch.assignment.policy``); a strategy only executes.

A strategy may hold a ``WorkloadTally``. ``select_rider`` records the pick in the
tally and ``release`` undoes it when the assignment does not get committed.
"""

from abc import ABC, abstractmethod

import structlog

from dispatch.assignment.workload import WorkloadTally
from dispatch.errors import (
    NoAvailableRiderError,
    NoDefaultRiderConfiguredError,
    NotFoundError,
    RiderUnavailableError,
)
from dispatch.rider.directory import seniority

logger = structlog.get_logger(__name__)


class AssignmentStrategy(ABC):
    name: str = ""
    # Cap re-checked against stored workload when the assignment commits
    workload_cap: int | None = None

    def __init__(self, tally: WorkloadTally | None = None):
        self.tally = tally

    @abstractmethod
    def select_rider(self, pool: list, delivery):
        """Return the rider to assign ``delivery`` to, or raise an assignment error."""
        ...

    def release(self, rider) -> None:
        if self.tally is not None and rider is not None:
            self.tally.release(rider.id)

    def overtaken(self, rider, workload: int) -> None:
        """Undo the pick and bring the tally up to the stored ``workload`` of ``rider``."""
        self.release(rider)
        if self.tally is not None and rider is not None:
            self.tally.observe(rider.id, workload)

    def _record(self, rider):
        if self.tally is not None:
            self.tally.add(rider.id)
        return rider


class ManualAssignment(AssignmentStrategy):
    """The caller names the rider."""

    name = "manual"

    def __init__(self, rider_id: str, tally: WorkloadTally | None = None):
        super().__init__(tally)
        self.rider_id = str(rider_id)

    def select_rider(self, pool, delivery):
        rider = next((r for r in pool if str(r.id) == self.rider_id), None)
        if rider is None:
            raise NotFoundError("Rider", self.rider_id)
        if not rider.is_available:
            raise RiderUnavailableError(rider.id, rider.name, rider.status)
        return self._record(rider)


class DefaultRiderAssignment(AssignmentStrategy):
    """The rider flagged as default delivery rider takes it."""

    name = "default"

    def select_rider(self, pool, delivery):
        flagged = sorted((r for r in pool if r.is_default_delivery_rider), key=seniority)
        if not flagged:
            raise NoDefaultRiderConfiguredError()
        rider = flagged[0]
        if len(flagged) > 1:
            logger.warning(
                "More than one rider flagged as default",
                rider_ids=[str(r.id) for r in flagged],
                chosen=str(rider.id),
            )
        if not rider.is_available:
            raise RiderUnavailableError(rider.id, rider.name, rider.status)
        return self._record(rider)


class LeastBusyAssignment(AssignmentStrategy):
    """The active rider with the fewest open deliveries, oldest rider on ties.

    Riders at ``max_per_rider`` are skipped. Picks sharing a tally reserve in it,
    and the commit re-counts stored workload for picks that do not.
    """

    name = "least-busy"

    def __init__(self, tally: WorkloadTally, max_per_rider: int):
        super().__init__(tally)
        self.max_per_rider = max_per_rider
        self.workload_cap = max_per_rider

    def select_rider(self, pool, delivery):
        candidates = [r for r in pool if r.is_available]
        ordered = sorted(candidates, key=lambda r: (self.tally.count(r.id), seniority(r)))
        for rider in ordered:
            if self.tally.try_reserve(rider.id, self.max_per_rider):
                return rider
        raise NoAvailableRiderError(
            f"All {len(candidates)} active riders are at the limit of {self.max_per_rider} deliveries",
            active_riders=len(candidates),
            max_deliveries_per_rider=self.max_per_rider,
        )
