"""Settings administration: commands and handler for each settings section."""

import structlog
from protean import handle
from protean.fields import Boolean, Float, Integer, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.settings.platform import PlatformSettings, load_settings

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="PlatformSettings")
class UpdatePricing:
    instant = Float(min_value=0.0)
    next_day = Float(min_value=0.0)
    weekly_station = Float(min_value=0.0)
    updated_by = String(max_length=100)


@dispatch.command(part_of="PlatformSettings")
class UpdateAutoAssignment:
    enabled = Boolean()
    assign_to_default_rider = Boolean()
    balance_workload = Boolean()
    consider_location = Boolean()
    max_deliveries_per_rider = Integer(min_value=1)
    updated_by = String(max_length=100)


@dispatch.command(part_of="PlatformSettings")
class UpdateSlaThresholds:
    pending_to_authorized = Integer(min_value=1)
    authorized_to_assigned = Integer(min_value=1)
    assigned_to_in_progress = Integer(min_value=1)
    in_progress_to_delivered = Integer(min_value=1)
    instant_delivery_max = Integer(min_value=1)
    next_day_delivery_max = Integer(min_value=1)
    weekly_station_delivery_max = Integer(min_value=1)
    updated_by = String(max_length=100)


def _changes(command, *names) -> dict:
    return {name: getattr(command, name) for name in names if getattr(command, name) is not None}


@dispatch.command_handler(part_of=PlatformSettings)
class PlatformSettingsHandler:
    @handle(UpdatePricing)
    def update_pricing(self, command):
        settings = load_settings()
        settings.update_pricing(
            updated_by=command.updated_by,
            **_changes(command, "instant", "next_day", "weekly_station"),
        )
        current_domain.repository_for(PlatformSettings).add(settings)
        logger.info("Pricing updated", updated_by=command.updated_by)

    @handle(UpdateAutoAssignment)
    def update_auto_assignment(self, command):
        settings = load_settings()
        settings.update_auto_assignment(
            updated_by=command.updated_by,
            **_changes(
                command,
                "enabled",
                "assign_to_default_rider",
                "balance_workload",
                "consider_location",
                "max_deliveries_per_rider",
            ),
        )
        current_domain.repository_for(PlatformSettings).add(settings)
        logger.info("Auto-assignment rules updated", updated_by=command.updated_by)

    @handle(UpdateSlaThresholds)
    def update_sla(self, command):
        settings = load_settings()
        settings.update_sla(
            updated_by=command.updated_by,
            **_changes(
                command,
                "pending_to_authorized",
                "authorized_to_assigned",
                "assigned_to_in_progress",
                "in_progress_to_delivered",
                "instant_delivery_max",
                "next_day_delivery_max",
                "weekly_station_delivery_max",
            ),
        )
        current_domain.repository_for(PlatformSettings).add(settings)
        logger.info("SLA thresholds updated", updated_by=command.updated_by)
