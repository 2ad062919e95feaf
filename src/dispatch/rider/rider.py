"""Rider aggregate: a member of the delivery pool.

Only ``active`` riders take new deliveries. Workload is never stored on the
rider; it is counted from the deliveries assigned to them.
"""

from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from dispatch.domain import dispatch
from dispatch.rider.events import (
    DefaultRiderCleared,
    DefaultRiderDesignated,
    RiderRegistered,
    RiderStatusChanged,
)
from dispatch.utils.clock import utc_now


class RiderStatus(Enum):
    ACTIVE = "active"
    BUSY = "busy"
    OFFLINE = "offline"
    SUSPENDED = "suspended"


def generate_rider_code() -> str:
    return f"R{uuid4().hex[:6].upper()}"


@dispatch.aggregate
class Rider:
    name: String(required=True, max_length=100)
    phone: String(required=True, max_length=30)
    whatsapp: String(max_length=30)
    rider_code: String(required=True, max_length=20)
    status: String(choices=RiderStatus, default=RiderStatus.ACTIVE.value)
    is_default_delivery_rider: Boolean(default=False)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(cls, name, phone, rider_code=None, whatsapp=None):
        now = utc_now()
        rider = cls(
            name=name,
            phone=phone,
            whatsapp=whatsapp or phone,
            rider_code=(rider_code or generate_rider_code()).strip().upper(),
            status=RiderStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        rider.raise_(
            RiderRegistered(
                rider_id=str(rider.id),
                name=rider.name,
                phone=rider.phone,
                rider_code=rider.rider_code,
                registered_at=now,
            )
        )
        return rider

    @property
    def is_available(self) -> bool:
        return self.status == RiderStatus.ACTIVE.value

    def change_status(self, status: str) -> None:
        try:
            new_status = RiderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown rider status: {status}"]}) from None
        previous = self.status
        if new_status.value == previous:
            return
        now = utc_now()
        self.status = new_status.value
        self.updated_at = now
        self.raise_(
            RiderStatusChanged(
                rider_id=str(self.id),
                previous_status=previous,
                new_status=new_status.value,
                changed_at=now,
            )
        )

    def designate_default(self) -> None:
        if self.is_default_delivery_rider:
            return
        now = utc_now()
        self.is_default_delivery_rider = True
        self.updated_at = now
        self.raise_(DefaultRiderDesignated(rider_id=str(self.id), designated_at=now))

    def clear_default(self) -> None:
        if not self.is_default_delivery_rider:
            return
        now = utc_now()
        self.is_default_delivery_rider = False
        self.updated_at = now
        self.raise_(DefaultRiderCleared(rider_id=str(self.id), cleared_at=now))
