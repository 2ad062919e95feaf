"""Error kinds raised by the dispatch core.

Every failure the core reports deliberately is a ``DispatchError`` carrying an
``ErrorKind`` and the HTTP status the API answers with. Field-level input
problems stay Protean ``ValidationError``s so they flow through Protean's own
exception handling unchanged.
"""

from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError


class ErrorKind(Enum):
    VALIDATION = "ValidationError"
    NOT_FOUND = "NotFoundError"
    INVALID_TRANSITION = "InvalidTransitionError"
    RIDER_UNAVAILABLE = "RiderUnavailableError"
    NO_AVAILABLE_RIDER = "NoAvailableRiderError"
    NO_DEFAULT_RIDER = "NoDefaultRiderConfiguredError"
    CONCURRENT_MODIFICATION = "ConcurrentModificationError"
    CONFIGURATION = "ConfigurationError"
    INTERNAL = "InternalError"


class DispatchError(Exception):
    kind = ErrorKind.INTERNAL
    status_code = 500

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        body = {"error": self.kind.value, "message": self.message}
        body.update({key: value for key, value in self.context.items() if value is not None})
        return body


class NotFoundError(DispatchError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} {identifier} not found", entity=entity, id=str(identifier))
        self.entity = entity
        self.identifier = str(identifier)


class InvalidTransitionError(DispatchError):
    kind = ErrorKind.INVALID_TRANSITION
    status_code = 409

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        message = f"Cannot transition from {from_status} to {to_status}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, **{"from": from_status, "to": to_status})
        self.from_status = from_status
        self.to_status = to_status


class AssignmentError(DispatchError):
    """Base for the three ways rider selection can come up empty."""

    status_code = 409


class RiderUnavailableError(AssignmentError):
    kind = ErrorKind.RIDER_UNAVAILABLE

    def __init__(self, rider_id: str, rider_name: str | None = None, rider_status: str | None = None):
        label = rider_name or rider_id
        message = f"Rider {label} is not available for assignment"
        if rider_status:
            message = f"{message} (status: {rider_status})"
        super().__init__(message, rider_id=str(rider_id), rider_status=rider_status)
        self.rider_id = str(rider_id)
        self.rider_status = rider_status


class NoAvailableRiderError(AssignmentError):
    kind = ErrorKind.NO_AVAILABLE_RIDER

    def __init__(self, message: str = "No active rider has capacity for another delivery", **context):
        super().__init__(message, **context)


class NoDefaultRiderConfiguredError(AssignmentError):
    kind = ErrorKind.NO_DEFAULT_RIDER
    status_code = 404

    def __init__(self):
        super().__init__("No default delivery rider configured")


class ConcurrentModificationError(DispatchError):
    kind = ErrorKind.CONCURRENT_MODIFICATION
    status_code = 409

    def __init__(self, delivery_id: str, expected: str, actual: str | None = None, attempts: int | None = None):
        message = f"Delivery {delivery_id} was modified concurrently (expected status {expected}"
        message += f", found {actual})" if actual else ")"
        super().__init__(
            message,
            delivery_id=str(delivery_id),
            expected_status=expected,
            actual_status=actual,
            attempts=attempts,
        )
        self.delivery_id = str(delivery_id)
        self.expected = expected
        self.actual = actual


class RiderAtCapacityError(ConcurrentModificationError):
    """A least-busy pick was overtaken: the rider filled up before the commit."""

    def __init__(self, delivery_id: str, rider_id: str, workload: int, cap: int):
        DispatchError.__init__(
            self,
            f"Rider {rider_id} reached the limit of {cap} deliveries before delivery {delivery_id} was assigned",
            delivery_id=str(delivery_id),
            rider_id=str(rider_id),
            workload=workload,
            max_deliveries_per_rider=cap,
        )
        self.delivery_id = str(delivery_id)
        self.expected = None
        self.actual = None
        self.rider_id = str(rider_id)
        self.workload = workload


class ConfigurationError(DispatchError):
    kind = ErrorKind.CONFIGURATION
    status_code = 500


def error_kind_of(exc: BaseException) -> ErrorKind:
    """Classify any exception raised while handling one delivery."""
    if isinstance(exc, DispatchError):
        return exc.kind
    if isinstance(exc, ValidationError):
        return ErrorKind.VALIDATION
    if isinstance(exc, ObjectNotFoundError):
        return ErrorKind.NOT_FOUND
    return ErrorKind.INTERNAL


def error_message_of(exc: BaseException) -> str:
    if isinstance(exc, DispatchError):
        return exc.message
    if isinstance(exc, ValidationError):
        messages = getattr(exc, "messages", None) or {}
        parts = []
        for field, errs in messages.items():
            errs = errs if isinstance(errs, (list, tuple)) else [errs]
            parts.append(f"{field}: {'; '.join(str(m) for m in errs)}")
        return ", ".join(parts) or str(exc)
    return str(exc) or exc.__class__.__name__
