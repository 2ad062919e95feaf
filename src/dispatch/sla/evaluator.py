"""SLA evaluation: elapsed time per lifecycle stage against configured limits.

Read-only: ``evaluate`` looks at a delivery's stage timestamps and a settings
snapshot and reports, for every stage the delivery has entered, how long it took
(or has been running) and whether that is over the limit. The delivery is never
modified.
"""

from dataclasses import asdict, dataclass
from datetime import datetime

from dispatch.delivery.delivery import DeliveryStatus
from dispatch.delivery.persistence import load_delivery
from dispatch.delivery.queries import open_deliveries
from dispatch.settings.platform import load_settings
from dispatch.utils.clock import as_utc, minutes_between, utc_now

OVERALL_STAGE = "overall"

# (stage, entered at, left at, status while the stage is open)
STAGES = (
    ("pending_to_authorized", "created_at", "authorized_at", DeliveryStatus.PENDING),
    ("authorized_to_assigned", "authorized_at", "assigned_at", DeliveryStatus.AUTHORIZED),
    ("assigned_to_in_progress", "assigned_at", "started_at", DeliveryStatus.ASSIGNED),
    ("in_progress_to_delivered", "started_at", "delivered_at", DeliveryStatus.IN_PROGRESS),
)


@dataclass(frozen=True)
class StageSla:
    stage: str
    elapsed_minutes: float
    threshold_minutes: int | None
    breached: bool
    open: bool


@dataclass(frozen=True)
class SlaReport:
    delivery_id: str
    delivery_type: str
    status: str
    evaluated_at: datetime
    stages: tuple[StageSla, ...]
    overall: StageSla

    @property
    def breached(self) -> bool:
        return self.overall.breached or any(stage.breached for stage in self.stages)

    @property
    def breaches(self) -> list[StageSla]:
        return [s for s in (*self.stages, self.overall) if s.breached]

    def to_dict(self) -> dict:
        return {
            "delivery_id": self.delivery_id,
            "delivery_type": self.delivery_type,
            "status": self.status,
            "evaluated_at": self.evaluated_at.isoformat(),
            "breached": self.breached,
            "stages": [asdict(stage) for stage in self.stages],
            "overall": asdict(self.overall),
        }


def _measure(stage: str, start: datetime, end: datetime, threshold: int | None, is_open: bool) -> StageSla:
    elapsed = max(minutes_between(start, end), 0.0)
    return StageSla(
        stage=stage,
        elapsed_minutes=elapsed,
        threshold_minutes=threshold,
        breached=threshold is not None and elapsed > threshold,
        open=is_open,
    )


def evaluate(delivery, sla, now: datetime | None = None) -> SlaReport:
    """Evaluate ``delivery`` against ``sla`` (a ``SlaThresholds`` snapshot)."""
    now = as_utc(now) if now is not None else utc_now()
    status = DeliveryStatus(delivery.status)

    stages = []
    for stage, entered_attr, left_attr, open_status in STAGES:
        entered = getattr(delivery, entered_attr)
        left = getattr(delivery, left_attr)
        threshold = sla.stage_threshold(stage) if sla is not None else None
        if entered is None:
            continue
        if left is not None:
            stages.append(_measure(stage, entered, left, threshold, is_open=False))
        elif status == open_status:
            stages.append(_measure(stage, entered, now, threshold, is_open=True))

    if status == DeliveryStatus.DELIVERED and delivery.delivered_at is not None:
        overall_end, overall_open = delivery.delivered_at, False
    elif status == DeliveryStatus.CANCELLED and delivery.cancelled_at is not None:
        overall_end, overall_open = delivery.cancelled_at, False
    else:
        overall_end, overall_open = now, True
    overall_threshold = sla.overall_for(delivery.delivery_type) if sla is not None else None

    return SlaReport(
        delivery_id=str(delivery.id),
        delivery_type=delivery.delivery_type,
        status=status.value,
        evaluated_at=now,
        stages=tuple(stages),
        overall=_measure(OVERALL_STAGE, delivery.created_at, overall_end, overall_threshold, is_open=overall_open),
    )


def evaluate_sla(delivery_id: str, now: datetime | None = None) -> SlaReport:
    return evaluate(load_delivery(delivery_id), load_settings().sla, now=now)


def breached_deliveries(now: datetime | None = None) -> list[SlaReport]:
    """SLA reports for open deliveries that are over at least one limit."""
    sla = load_settings().sla
    reports = [evaluate(delivery, sla, now=now) for delivery in open_deliveries()]
    return [report for report in reports if report.breached]
