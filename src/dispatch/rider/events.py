"""Rider domain events."""

from protean.fields import DateTime, Identifier, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Rider")
class RiderRegistered:
    """A new rider joined the delivery pool."""

    __version__ = 1

    rider_id = Identifier(required=True)
    name = String(required=True)
    phone = String(required=True)
    rider_code = String(required=True)
    registered_at = DateTime(required=True)


@dispatch.event(part_of="Rider")
class RiderStatusChanged:
    __version__ = 1

    rider_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@dispatch.event(part_of="Rider")
class DefaultRiderDesignated:
    """The rider became the one used for quick "assign default" actions."""

    __version__ = 1

    rider_id = Identifier(required=True)
    designated_at = DateTime(required=True)


@dispatch.event(part_of="Rider")
class DefaultRiderCleared:
    __version__ = 1

    rider_id = Identifier(required=True)
    cleared_at = DateTime(required=True)
