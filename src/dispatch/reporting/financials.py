"""Financial reporting: revenue, commission and payment views over deliveries.

Everything here is derived from the stored price, rider_commission and
platform_revenue of each delivery, so the totals obey the same split as the
records: commissions plus platform revenue always equal total revenue.
Sums run in Decimal and are rounded to the minor unit once, at the end.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal

from protean.exceptions import ValidationError

from dispatch.delivery.delivery import DeliveryStatus, DeliveryType, PaymentStatus
from dispatch.delivery.persistence import find_deliveries
from dispatch.delivery.pricing import to_money
from dispatch.utils.clock import as_utc, utc_now

PERIODS = ("today", "week", "month", "year", "all")

_ZERO = Decimal("0")


def period_start(period: str, now: datetime | None = None) -> datetime | None:
    """Start of the reporting window; ``None`` for all time. Unknown periods mean today."""
    now = as_utc(now) if now is not None else utc_now()
    if period == "all":
        return None
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now - timedelta(days=30)
    if period == "year":
        return now - timedelta(days=365)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def deliveries_since(start: datetime | None) -> list:
    deliveries = find_deliveries()
    if start is None:
        return deliveries
    return [d for d in deliveries if d.created_at is not None and as_utc(d.created_at) >= start]


def _sum(deliveries, attribute: str = "price") -> Decimal:
    return sum((to_money(getattr(d, attribute) or 0) for d in deliveries), _ZERO)


def _money(value: Decimal) -> float:
    return float(to_money(value))


def _percent(part: Decimal | int, whole: Decimal | int) -> float:
    if not whole:
        return 0.0
    return round(float(Decimal(part) / Decimal(whole) * 100), 2)


def _average(total: Decimal, count: int) -> float:
    return _money(total / count) if count else 0.0


# ---------------------------------------------------------------------------
# Pure summaries over a list of deliveries
# ---------------------------------------------------------------------------
def summarize_overview(deliveries: list, period: str = "today") -> dict:
    total_revenue = _sum(deliveries)
    platform_revenue = _sum(deliveries, "platform_revenue")
    by_payment = {
        status.value: _sum([d for d in deliveries if d.payment_status == status.value]) for status in PaymentStatus
    }

    return {
        "period": period,
        "total_revenue": _money(total_revenue),
        "paid_revenue": _money(by_payment[PaymentStatus.PAID.value]),
        "unpaid_revenue": _money(by_payment[PaymentStatus.UNPAID.value]),
        "total_commissions": _money(_sum(deliveries, "rider_commission")),
        "platform_revenue": _money(platform_revenue),
        "profit_margin": _percent(platform_revenue, total_revenue),
        "delivery_stats": {
            "total": len(deliveries),
            "delivered": sum(1 for d in deliveries if d.status == DeliveryStatus.DELIVERED.value),
            "pending": sum(1 for d in deliveries if d.status == DeliveryStatus.PENDING.value),
            "in_progress": sum(
                1 for d in deliveries if d.status in (DeliveryStatus.ASSIGNED.value, DeliveryStatus.IN_PROGRESS.value)
            ),
            "cancelled": sum(1 for d in deliveries if d.status == DeliveryStatus.CANCELLED.value),
        },
        "revenue_by_type": {
            delivery_type.value: _money(_sum([d for d in deliveries if d.delivery_type == delivery_type.value]))
            for delivery_type in DeliveryType
        },
        "revenue_by_payment_status": {status: _money(amount) for status, amount in by_payment.items()},
        "average_order_value": _average(total_revenue, len(deliveries)),
    }


def summarize_riders(deliveries: list) -> list[dict]:
    """Per-rider totals over deliveries that have a rider, highest revenue first."""
    grouped = defaultdict(list)
    for delivery in deliveries:
        if delivery.assigned_rider_id:
            grouped[str(delivery.assigned_rider_id)].append(delivery)

    rows = []
    for rider_id, rider_deliveries in grouped.items():
        revenue = _sum(rider_deliveries)
        delivered = sum(1 for d in rider_deliveries if d.status == DeliveryStatus.DELIVERED.value)
        rows.append(
            {
                "rider_id": rider_id,
                "rider_name": next(
                    (d.assigned_rider_name for d in rider_deliveries if d.assigned_rider_name), "Unknown Rider"
                ),
                "total_deliveries": len(rider_deliveries),
                "delivered_count": delivered,
                "total_revenue": _money(revenue),
                "total_commission": _money(_sum(rider_deliveries, "rider_commission")),
                "paid_revenue": _money(
                    _sum([d for d in rider_deliveries if d.payment_status == PaymentStatus.PAID.value])
                ),
                "unpaid_revenue": _money(
                    _sum([d for d in rider_deliveries if d.payment_status == PaymentStatus.UNPAID.value])
                ),
                "average_order_value": _average(revenue, len(rider_deliveries)),
                "completion_rate": _percent(delivered, len(rider_deliveries)),
            }
        )
    return sorted(rows, key=lambda row: (-row["total_revenue"], row["rider_name"]))


def summarize_trends(deliveries: list) -> list[dict]:
    """One row per creation day (UTC), oldest day first."""
    by_day = defaultdict(list)
    for delivery in deliveries:
        if delivery.created_at is not None:
            by_day[as_utc(delivery.created_at).date().isoformat()].append(delivery)

    trends = []
    for day in sorted(by_day):
        day_deliveries = by_day[day]
        revenue = _sum(day_deliveries)
        trends.append(
            {
                "date": day,
                "total_revenue": _money(revenue),
                "total_commissions": _money(_sum(day_deliveries, "rider_commission")),
                "platform_revenue": _money(_sum(day_deliveries, "platform_revenue")),
                "delivery_count": len(day_deliveries),
                "paid_count": sum(1 for d in day_deliveries if d.payment_status == PaymentStatus.PAID.value),
                "average_order_value": _average(revenue, len(day_deliveries)),
            }
        )
    return trends


# ---------------------------------------------------------------------------
# Views over stored deliveries
# ---------------------------------------------------------------------------
def financial_overview(period: str = "today", now: datetime | None = None) -> dict:
    return summarize_overview(deliveries_since(period_start(period, now)), period=period)


def rider_financials(period: str = "month", now: datetime | None = None) -> dict:
    if period not in ("today", "week", "month"):
        period = "month"
    return {"period": period, "riders": summarize_riders(deliveries_since(period_start(period, now)))}


def revenue_trends(days: int = 7, now: datetime | None = None) -> dict:
    if days < 1:
        raise ValidationError({"days": ["Trend window must be at least one day"]})
    now = as_utc(now) if now is not None else utc_now()
    start = (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)
    return {"days": days, "trends": summarize_trends(deliveries_since(start))}
