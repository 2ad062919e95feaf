"""In-memory rider workload counts for one assignment run.

Seeded once from stored deliveries and then updated as the run assigns, so a
batch never re-reads stale counts from storage. Each rider has its own lock;
``try_reserve`` checks the cap and increments under it.
"""

import threading
from collections import Counter

from dispatch.delivery.delivery import WORKLOAD_STATUSES
from dispatch.delivery.persistence import find_deliveries


class WorkloadTally:
    def __init__(self, counts: dict | None = None):
        self._counts = Counter({str(rider_id): count for rider_id, count in (counts or {}).items()})
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @classmethod
    def from_store(cls) -> "WorkloadTally":
        """Count assigned and in-progress deliveries per rider."""
        counts = Counter()
        for status in WORKLOAD_STATUSES:
            for delivery in find_deliveries(status=status):
                if delivery.assigned_rider_id:
                    counts[str(delivery.assigned_rider_id)] += 1
        return cls(counts)

    def _lock_for(self, rider_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(rider_id)
            if lock is None:
                lock = self._locks[rider_id] = threading.Lock()
            return lock

    def count(self, rider_id) -> int:
        rider_id = str(rider_id)
        with self._lock_for(rider_id):
            return self._counts[rider_id]

    def try_reserve(self, rider_id, cap: int | None) -> bool:
        """Take one more delivery for ``rider_id`` unless that would exceed ``cap``."""
        rider_id = str(rider_id)
        with self._lock_for(rider_id):
            if cap is not None and self._counts[rider_id] >= cap:
                return False
            self._counts[rider_id] += 1
            return True

    def add(self, rider_id) -> None:
        """Record an assignment that is not subject to the cap (manual, default rider)."""
        self.try_reserve(rider_id, None)

    def observe(self, rider_id, workload: int) -> None:
        """Raise the count for ``rider_id`` to at least ``workload`` seen in storage."""
        rider_id = str(rider_id)
        with self._lock_for(rider_id):
            self._counts[rider_id] = max(self._counts[rider_id], workload)

    def release(self, rider_id) -> None:
        rider_id = str(rider_id)
        with self._lock_for(rider_id):
            if self._counts[rider_id] > 0:
                self._counts[rider_id] -= 1

    def snapshot(self) -> dict[str, int]:
        with self._guard:
            rider_ids = list(self._counts)
        return {rider_id: self.count(rider_id) for rider_id in rider_ids}
