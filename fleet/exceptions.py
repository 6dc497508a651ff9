"""
Error taxonomy shared by the fleet services.

Services raise these internally and turn them into a failed
``ActionResult`` at their boundary, so callers only ever see results.
"""


class FleetError(Exception):
    """Base class; ``error`` is the code reported to API clients."""

    error = "FleetError"
    default_message = "Unexpected error"

    def __init__(self, message: str = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(FleetError):
    """No caller identity could be resolved."""

    error = "NotAuthenticated"
    default_message = "User not authenticated"


class ValidationError(FleetError):
    """Missing or malformed input."""

    error = "ValidationError"
    default_message = "Missing required fields"


class VehicleUnavailable(FleetError):
    """An active rental already covers part of the requested period."""

    error = "VehicleUnavailable"
    default_message = (
        "This vehicle is already rented during the selected period. "
        "Please choose another vehicle or different dates."
    )


class NotFound(FleetError):
    """Record is missing or belongs to another owner (never distinguished)."""

    error = "NotFound"
    default_message = "Record not found"


class StoreError(FleetError):
    """The database call failed."""

    error = "StoreError"
    default_message = "Database error"
