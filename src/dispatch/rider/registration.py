"""Rider registration: command and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.rider.directory import list_riders
from dispatch.rider.rider import Rider

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Rider")
class RegisterRider:
    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=30)
    whatsapp = String(max_length=30)
    rider_code = String(max_length=20)


@dispatch.command_handler(part_of=Rider)
class RegisterRiderHandler:
    @handle(RegisterRider)
    def register_rider(self, command):
        rider = Rider.register(
            name=command.name,
            phone=command.phone,
            rider_code=command.rider_code,
            whatsapp=command.whatsapp,
        )
        if list_riders(rider_code=rider.rider_code):
            raise ValidationError({"rider_code": [f"Rider code {rider.rider_code} is already taken"]})

        current_domain.repository_for(Rider).add(rider)
        logger.info("Rider registered", rider_id=str(rider.id), rider_code=rider.rider_code)
        return str(rider.id)
