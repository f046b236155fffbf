"""
Domain errors raised by the services and rendered by the API layer.

Each error carries the machine-readable ``code`` sent to clients, a human
``message`` and the HTTP ``status_code`` it maps to.
"""

from sqlalchemy.exc import IntegrityError


class CargoError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRoute(CargoError):
    code = "INVALID_ROUTE"
    status_code = 400
    default_message = "Origin and destination cannot be the same"


class InvalidSequence(CargoError):
    code = "INVALID_SEQUENCE"
    status_code = 400
    default_message = "Invalid flight sequence"


class RouteBreak(InvalidSequence):
    code = "ROUTE_BREAK"


class InsufficientConnection(InvalidSequence):
    code = "INSUFFICIENT_CONNECTION"
    default_message = "Insufficient connection time between flights"


class ConnectionTooLong(InvalidSequence):
    code = "CONNECTION_TOO_LONG"
    default_message = "Connection time too long between flights"


class InvalidFlights(CargoError):
    code = "INVALID_FLIGHTS"
    status_code = 400
    default_message = "No valid flights found"


class RouteMismatch(CargoError):
    code = "ROUTE_MISMATCH"
    status_code = 400
    default_message = "Selected flights do not match the specified origin and destination"


class NotFound(CargoError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "No booking found with the provided reference ID"


class InvalidTransition(CargoError):
    code = "INVALID_TRANSITION"
    status_code = 400
    default_message = "Booking not found or in an invalid state for this transition"


class ReferenceGenerationFailure(CargoError):
    code = "REFERENCE_GENERATION_FAILED"
    status_code = 500
    default_message = "Failed to generate reference ID"


class StoreConstraintError(CargoError):
    """A store constraint violation translated to a user-facing category."""


class DuplicateResource(StoreConstraintError):
    code = "DUPLICATE_RESOURCE"
    status_code = 409
    default_message = "Resource already exists"


class InvalidReference(StoreConstraintError):
    code = "INVALID_REFERENCE"
    status_code = 400
    default_message = "Referenced resource not found"


class MissingRequiredField(StoreConstraintError):
    code = "MISSING_REQUIRED_FIELD"
    status_code = 400
    default_message = "Required field missing"


def map_integrity_error(exc: IntegrityError):
    """Translate a driver constraint message into a CargoError, or None if unknown."""
    text = str(exc.orig).lower()
    if "unique" in text or "duplicate" in text:
        return DuplicateResource()
    if "foreign key" in text:
        return InvalidReference()
    if "not null" in text or "cannot be null" in text:
        return MissingRequiredField()
    return None
