"""Bulk operations: one admin action applied to many deliveries.

Each id is handled as if it were a single-item call. A failing item is
recorded in the result and never stops the others; nothing is rolled back.
Items run on a bounded worker pool. An assignment batch shares one settings
snapshot and one ``WorkloadTally``, so least-busy picks made earlier in the
batch are counted for later ones.

Re-running the same request is safe: ids already in the target status are
no-ops and land in ``succeeded`` again.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from dispatch.assignment.policy import StrategyName, choose_strategy
from dispatch.assignment.workload import WorkloadTally
from dispatch.config import bulk_max_workers
from dispatch.delivery import transitions
from dispatch.delivery.delivery import DeliveryStatus
from dispatch.delivery.lifecycle import parse_status
from dispatch.domain import dispatch
from dispatch.errors import ErrorKind, error_kind_of, error_message_of
from dispatch.rider.directory import load_rider
from dispatch.settings.platform import load_settings

logger = structlog.get_logger(__name__)


class BulkOperation(Enum):
    AUTHORIZE = "authorize"
    ASSIGN = "assign"
    SET_STATUS = "set-status"
    CANCEL = "cancel"


_PAST_TENSE = {
    BulkOperation.AUTHORIZE: "Authorized",
    BulkOperation.ASSIGN: "Assigned",
    BulkOperation.SET_STATUS: "Updated",
    BulkOperation.CANCEL: "Cancelled",
}


@dataclass(frozen=True)
class BulkFailure:
    delivery_id: str
    kind: ErrorKind
    message: str

    def to_dict(self) -> dict:
        return {"id": self.delivery_id, "error": self.kind.value, "message": self.message}


@dataclass
class BulkResult:
    operation: str
    succeeded: list[str] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)
    detail: str = ""

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed

    def failed_ids(self) -> list[str]:
        return [failure.delivery_id for failure in self.failed]

    def summary(self) -> str:
        verb = _PAST_TENSE.get(_operation_or_none(self.operation), "Processed")
        message = f"{verb} {self.succeeded_count} deliveries"
        if self.detail:
            message = f"{message} {self.detail}"
        if self.failed:
            message = f"{message}, {self.failed_count} failed"
        return message


def _operation_or_none(value):
    try:
        return BulkOperation(value)
    except ValueError:
        return None


def unique_ids(ids) -> list[str]:
    """Ids as strings, duplicates dropped, first occurrence order kept."""
    return list(dict.fromkeys(str(delivery_id).strip() for delivery_id in ids if str(delivery_id).strip()))


class BulkCoordinator:
    def __init__(self, max_workers: int | None = None, settings=None):
        self.max_workers = max_workers or bulk_max_workers()
        self.settings = settings

    def apply(
        self,
        ids,
        operation,
        actor: str | None = None,
        rider_id: str | None = None,
        strategy: str | None = None,
        status: str | None = None,
        reason: str | None = None,
    ) -> BulkResult:
        """Run ``operation`` over ``ids``; request-level problems raise, item-level ones are collected."""
        delivery_ids = unique_ids(ids or [])
        if not delivery_ids:
            raise ValidationError({"delivery_ids": ["At least one delivery id is required"]})
        try:
            operation = BulkOperation(operation)
        except ValueError:
            raise ValidationError({"operation": [f"Unknown bulk operation: {operation}"]}) from None

        step, detail = self._prepare(operation, actor, rider_id, strategy, status, reason)
        outcomes = self._run(delivery_ids, step)

        result = BulkResult(operation=operation.value, detail=detail)
        for delivery_id in delivery_ids:
            error = outcomes[delivery_id]
            if error is None:
                result.succeeded.append(delivery_id)
            else:
                result.failed.append(BulkFailure(delivery_id, error_kind_of(error), error_message_of(error)))

        logger.info(
            "Bulk operation finished",
            operation=operation.value,
            total=result.total,
            succeeded=result.succeeded_count,
            failed=result.failed_count,
            actor=actor,
        )
        return result

    # -------------------------------------------------------------------
    # Request validation and the per-item step
    # -------------------------------------------------------------------
    def _prepare(self, operation, actor, rider_id, strategy, status, reason):
        if operation == BulkOperation.AUTHORIZE:
            if not actor:
                raise ValidationError({"actor": ["Authorizing deliveries requires the acting admin"]})
            return (lambda delivery_id: transitions.authorize(delivery_id, actor)), ""

        if operation == BulkOperation.CANCEL:
            return (lambda delivery_id: transitions.cancel(delivery_id, actor=actor, reason=reason)), ""

        if operation == BulkOperation.SET_STATUS:
            if not status:
                raise ValidationError({"status": ["A target status is required"]})
            target = parse_status(status)
            if target == DeliveryStatus.ASSIGNED:
                raise ValidationError({"status": ["Use the assign operation to assign riders"]})

            def _set_status(delivery_id):
                return transitions.transition(delivery_id, target, actor=actor, reason=reason)

            return _set_status, f"to {target.value}"

        # ASSIGN: choose the strategy once so a bad request fails before any item runs
        settings = self.settings if self.settings is not None else load_settings()
        name = choose_strategy(settings.auto_assignment, rider_id=rider_id, strategy=strategy)
        tally = WorkloadTally.from_store()
        detail = ""
        if name == StrategyName.MANUAL:
            detail = f"to {load_rider(rider_id).name}"

        def _assign(delivery_id):
            return transitions.assign(
                delivery_id,
                actor=actor,
                rider_id=rider_id,
                strategy=name.value,
                settings=settings,
                tally=tally,
            )

        return _assign, detail

    def _run(self, delivery_ids: list[str], step) -> dict:
        outcomes = {}
        if self.max_workers <= 1 or len(delivery_ids) == 1:
            for delivery_id in delivery_ids:
                outcomes[delivery_id] = self._attempt(delivery_id, step)
            return outcomes

        def _in_context(delivery_id):
            with dispatch.domain_context():
                return self._attempt(delivery_id, step)

        workers = min(self.max_workers, len(delivery_ids))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dispatch-bulk") as pool:
            for delivery_id, error in zip(delivery_ids, pool.map(_in_context, delivery_ids)):
                outcomes[delivery_id] = error
        return outcomes

    @staticmethod
    def _attempt(delivery_id: str, step):
        """Run one item; return the exception it failed with, or None."""
        try:
            step(delivery_id)
        except Exception as exc:
            kind = error_kind_of(exc)
            if kind == ErrorKind.INTERNAL:
                logger.exception("Bulk item failed unexpectedly", delivery_id=delivery_id)
            else:
                logger.warning("Bulk item failed", delivery_id=delivery_id, error=kind.value, message=error_message_of(exc))
            return exc
        return None


def bulk_apply(ids, operation, **params) -> BulkResult:
    return BulkCoordinator().apply(ids, operation, **params)
