"""Platform settings events."""

from protean.fields import DateTime, Identifier, String, Text

from dispatch.domain import dispatch


@dispatch.event(part_of="PlatformSettings")
class PlatformSettingsUpdated:
    """One section of the platform settings (pricing, auto_assignment, sla) changed."""

    __version__ = 1

    settings_id = Identifier(required=True)
    section = String(required=True, max_length=50)
    values = Text(required=True)  # JSON snapshot of the new section
    updated_by = String(max_length=100)
    updated_at = DateTime(required=True)
