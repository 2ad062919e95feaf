"""Delivery aggregate (CQRS): the core record of the dispatch domain.

A delivery is created ``pending`` with its price and commission split fixed,
then moves through the lifecycle in ``dispatch.delivery.lifecycle``. Status
fields are never assigned directly by callers: a transition is computed as a
new record plus events and committed by ``dispatch.delivery.persistence``.

State Machine:
    PENDING → AUTHORIZED → ASSIGNED → IN_PROGRESS → DELIVERED
    ASSIGNED → AUTHORIZED (rider released for re-assignment)
    {PENDING, AUTHORIZED, ASSIGNED} → CANCELLED
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from dispatch.delivery.events import DeliveryCreated, DeliveryPaymentRecorded
from dispatch.domain import dispatch
from dispatch.utils.clock import utc_now

# Rounding slack when checking that commission and revenue add up to the price
_SPLIT_TOLERANCE = 1e-6


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DeliveryType(Enum):
    INSTANT = "instant"
    NEXT_DAY = "next-day"
    WEEKLY_STATION = "weekly-station"


class DeliveryStatus(Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CASH = "cash"
    MOBILE_MONEY = "mobile-money"
    CARD = "card"
    OTHER = "other"


# Statuses in which a delivery must name its rider
RIDER_BOUND_STATUSES = frozenset(
    {
        DeliveryStatus.ASSIGNED.value,
        DeliveryStatus.IN_PROGRESS.value,
        DeliveryStatus.DELIVERED.value,
    }
)

# Statuses that count towards a rider's current workload
WORKLOAD_STATUSES = frozenset({DeliveryStatus.ASSIGNED.value, DeliveryStatus.IN_PROGRESS.value})

TERMINAL_STATUSES = frozenset({DeliveryStatus.DELIVERED.value, DeliveryStatus.CANCELLED.value})


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@dispatch.aggregate
class Delivery:
    customer_name = String(required=True, max_length=150)
    contact = String(required=True, max_length=50)
    user_email = String(max_length=254)
    item_description = Text(required=True)
    pickup_point = String(required=True, max_length=500)
    dropoff_point = String(required=True, max_length=500)
    notes = Text()
    delivery_type = String(required=True, max_length=20, choices=DeliveryType)
    status = String(
        max_length=20,
        choices=DeliveryStatus,
        default=DeliveryStatus.PENDING.value,
    )

    authorized_by = String(max_length=100)
    authorized_at = DateTime()
    assigned_rider_id = Identifier()
    assigned_rider_name = String(max_length=100)
    assigned_at = DateTime()
    started_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)

    price = Float(required=True, min_value=0.0)
    rider_commission = Float(required=True, min_value=0.0)
    platform_revenue = Float(required=True, min_value=0.0)
    payment_status = String(
        max_length=20,
        choices=PaymentStatus,
        default=PaymentStatus.UNPAID.value,
    )
    payment_method = String(max_length=20, choices=PaymentMethod)
    paid_at = DateTime()

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def commission_split_adds_up_to_price(self):
        if self.price is None:
            return
        total = (self.rider_commission or 0.0) + (self.platform_revenue or 0.0)
        if abs(total - self.price) > _SPLIT_TOLERANCE:
            raise ValidationError(
                {"price": ["Rider commission and platform revenue must add up to the price"]}
            )

    @invariant.post
    def rider_present_once_assigned(self):
        if self.status in RIDER_BOUND_STATUSES and not self.assigned_rider_id:
            raise ValidationError({"assigned_rider_id": [f"A {self.status} delivery must have a rider"]})

    @invariant.post
    def paid_deliveries_have_a_payment_time(self):
        if self.payment_status == PaymentStatus.PAID.value and self.paid_at is None:
            raise ValidationError({"paid_at": ["A paid delivery must record when it was paid"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_name: str,
        contact: str,
        item_description: str,
        pickup_point: str,
        dropoff_point: str,
        delivery_type: str,
        quote,
        user_email: str | None = None,
        notes: str | None = None,
    ):
        """Create a pending delivery priced from ``quote`` (a ``pricing.Quote``)."""
        now = utc_now()
        delivery = cls(
            customer_name=customer_name,
            contact=contact,
            user_email=normalize_email(user_email),
            item_description=item_description,
            pickup_point=pickup_point,
            dropoff_point=dropoff_point,
            notes=notes,
            delivery_type=delivery_type,
            status=DeliveryStatus.PENDING.value,
            price=quote.price,
            rider_commission=quote.rider_commission,
            platform_revenue=quote.platform_revenue,
            payment_status=PaymentStatus.UNPAID.value,
            created_at=now,
            updated_at=now,
        )
        delivery.raise_(created_event(delivery))
        return delivery

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def has_rider(self) -> bool:
        return bool(self.assigned_rider_id)

    # -------------------------------------------------------------------
    # Payment write-back and rider notes
    # -------------------------------------------------------------------
    def record_payment(self, payment_status: str, payment_method: str | None = None) -> None:
        """Apply a payment status from the payment flow. ``paid_at`` is stamped once."""
        try:
            new_status = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {payment_status}"]}) from None

        now = utc_now()
        previous = self.payment_status
        # paid_at first, so the paid-needs-timestamp invariant holds after each assignment
        if new_status == PaymentStatus.PAID and self.paid_at is None:
            self.paid_at = now
        self.payment_status = new_status.value
        if payment_method:
            self.payment_method = payment_method
        self.updated_at = now
        self.raise_(
            DeliveryPaymentRecorded(
                delivery_id=str(self.id),
                previous_status=previous,
                payment_status=new_status.value,
                payment_method=self.payment_method,
                paid_at=self.paid_at,
                recorded_at=now,
            )
        )

    def append_rider_note(self, note: str) -> None:
        note = (note or "").strip()
        if not note:
            return
        self.notes = f"{self.notes}\n\nRider Note: {note}" if self.notes else f"Rider Note: {note}"
        self.updated_at = utc_now()


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def created_event(delivery: Delivery) -> DeliveryCreated:
    return DeliveryCreated(
        delivery_id=str(delivery.id),
        customer_name=delivery.customer_name,
        contact=delivery.contact,
        user_email=delivery.user_email,
        delivery_type=delivery.delivery_type,
        pickup_point=delivery.pickup_point,
        dropoff_point=delivery.dropoff_point,
        price=delivery.price,
        created_at=delivery.created_at,
    )
