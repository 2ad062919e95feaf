"""Rider availability: status changes and default-rider designation."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.rider.directory import list_riders, load_rider
from dispatch.rider.rider import Rider

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Rider")
class ChangeRiderStatus:
    rider_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@dispatch.command(part_of="Rider")
class DesignateDefaultRider:
    """Make one rider the default; every other rider loses the flag."""

    rider_id = Identifier(required=True)


@dispatch.command_handler(part_of=Rider)
class RiderAvailabilityHandler:
    @handle(ChangeRiderStatus)
    def change_status(self, command):
        repo = current_domain.repository_for(Rider)
        rider = load_rider(command.rider_id)
        rider.change_status(command.status)
        repo.add(rider)
        logger.info("Rider status changed", rider_id=str(rider.id), status=rider.status)

    @handle(DesignateDefaultRider)
    def designate_default(self, command):
        repo = current_domain.repository_for(Rider)
        rider = load_rider(command.rider_id)

        for other in list_riders(is_default_delivery_rider=True):
            if str(other.id) != str(rider.id):
                other.clear_default()
                repo.add(other)

        rider.designate_default()
        repo.add(rider)
        logger.info("Default rider designated", rider_id=str(rider.id))
