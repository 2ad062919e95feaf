"""PlatformSettings aggregate: the singleton holding pricing, auto-assignment and SLA rules.

Pricing, assignment policy and SLA evaluation receive a settings snapshot as an
argument; none of them load it on their own. ``load_settings`` is the one place
that reads the stored singleton, creating it with the platform defaults the
first time it is asked for.
"""

import json

import structlog
from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, ValueObject
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.settings.events import PlatformSettingsUpdated
from dispatch.utils.clock import utc_now

logger = structlog.get_logger(__name__)

SETTINGS_ID = "platform-settings"

DEFAULT_PRICING = {"instant": 10.0, "next_day": 7.0, "weekly_station": 5.0}
DEFAULT_AUTO_ASSIGNMENT = {
    "enabled": False,
    "assign_to_default_rider": True,
    "balance_workload": False,
    "consider_location": False,
    "max_deliveries_per_rider": 10,
}
DEFAULT_SLA = {
    "pending_to_authorized": 60,
    "authorized_to_assigned": 30,
    "assigned_to_in_progress": 30,
    "in_progress_to_delivered": 120,
    "instant_delivery_max": 60,
    "next_day_delivery_max": 1440,
    "weekly_station_delivery_max": 10080,
}

# delivery type (wire value) -> attribute on Pricing
_PRICING_ATTRIBUTE = {
    "instant": "instant",
    "next-day": "next_day",
    "weekly-station": "weekly_station",
}

# delivery type (wire value) -> attribute on SlaThresholds
_OVERALL_SLA_ATTRIBUTE = {
    "instant": "instant_delivery_max",
    "next-day": "next_day_delivery_max",
    "weekly-station": "weekly_station_delivery_max",
}


@dispatch.value_object(part_of="PlatformSettings")
class Pricing:
    """Price charged per delivery type. A missing entry means the type is not priced."""

    instant: Float(min_value=0.0)
    next_day: Float(min_value=0.0)
    weekly_station: Float(min_value=0.0)

    def price_for(self, delivery_type: str) -> float | None:
        attribute = _PRICING_ATTRIBUTE.get(delivery_type)
        return getattr(self, attribute) if attribute else None


@dispatch.value_object(part_of="PlatformSettings")
class AutoAssignment:
    """Rules deciding which assignment strategy runs when no rider is named."""

    enabled: Boolean(default=False)
    assign_to_default_rider: Boolean(default=True)
    balance_workload: Boolean(default=False)
    consider_location: Boolean(default=False)
    max_deliveries_per_rider: Integer(min_value=1, default=10)


@dispatch.value_object(part_of="PlatformSettings")
class SlaThresholds:
    """Maximum minutes allowed per lifecycle stage and per delivery overall."""

    pending_to_authorized: Integer(min_value=1)
    authorized_to_assigned: Integer(min_value=1)
    assigned_to_in_progress: Integer(min_value=1)
    in_progress_to_delivered: Integer(min_value=1)
    instant_delivery_max: Integer(min_value=1)
    next_day_delivery_max: Integer(min_value=1)
    weekly_station_delivery_max: Integer(min_value=1)

    def stage_threshold(self, stage: str) -> int | None:
        return getattr(self, stage, None)

    def overall_for(self, delivery_type: str) -> int | None:
        attribute = _OVERALL_SLA_ATTRIBUTE.get(delivery_type)
        return getattr(self, attribute) if attribute else None


@dispatch.aggregate
class PlatformSettings:
    pricing: ValueObject(Pricing)
    auto_assignment: ValueObject(AutoAssignment)
    sla: ValueObject(SlaThresholds)
    currency: String(max_length=10, default="GH₵")
    updated_by: String(max_length=100)
    updated_at: DateTime()

    @invariant.post
    def least_busy_needs_a_cap(self):
        rules = self.auto_assignment
        if rules and rules.balance_workload and not rules.max_deliveries_per_rider:
            raise ValidationError(
                {"max_deliveries_per_rider": ["Balancing workload requires a per-rider delivery limit"]}
            )

    @classmethod
    def defaults(cls):
        return cls(
            id=SETTINGS_ID,
            pricing=Pricing(**DEFAULT_PRICING),
            auto_assignment=AutoAssignment(**DEFAULT_AUTO_ASSIGNMENT),
            sla=SlaThresholds(**DEFAULT_SLA),
            updated_at=utc_now(),
        )

    def _record_update(self, section: str, values: dict, updated_by: str | None) -> None:
        now = utc_now()
        self.updated_by = updated_by
        self.updated_at = now
        self.raise_(
            PlatformSettingsUpdated(
                settings_id=str(self.id),
                section=section,
                values=json.dumps(values),
                updated_by=updated_by,
                updated_at=now,
            )
        )

    def update_pricing(self, updated_by: str | None = None, **prices) -> None:
        """Replace the given prices; omitted delivery types keep their current price."""
        values = _merge(self.pricing, DEFAULT_PRICING, prices)
        with atomic_change(self):
            self.pricing = Pricing(**values)
            self._record_update("pricing", values, updated_by)

    def update_auto_assignment(self, updated_by: str | None = None, **rules) -> None:
        values = _merge(self.auto_assignment, DEFAULT_AUTO_ASSIGNMENT, rules)
        with atomic_change(self):
            self.auto_assignment = AutoAssignment(**values)
            self._record_update("auto_assignment", values, updated_by)

    def update_sla(self, updated_by: str | None = None, **thresholds) -> None:
        values = _merge(self.sla, DEFAULT_SLA, thresholds)
        with atomic_change(self):
            self.sla = SlaThresholds(**values)
            self._record_update("sla", values, updated_by)


def _merge(current, defaults: dict, overrides: dict) -> dict:
    unknown = set(overrides) - set(defaults)
    if unknown:
        raise ValidationError({name: ["Unknown setting"] for name in sorted(unknown)})
    values = {name: (getattr(current, name) if current else default) for name, default in defaults.items()}
    values.update({name: value for name, value in overrides.items() if value is not None})
    return values


def load_settings() -> PlatformSettings:
    """Return the stored settings singleton, creating it with defaults when absent."""
    repo = current_domain.repository_for(PlatformSettings)
    try:
        return repo.get(SETTINGS_ID)
    except ObjectNotFoundError:
        settings = PlatformSettings.defaults()
        repo.add(settings)
        logger.info("Platform settings initialised with defaults", settings_id=SETTINGS_ID)
        return settings
