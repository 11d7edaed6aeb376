# glossapp/exceptions.py
"""
Domain exceptions for the wash record and pricing engine.

Every error carries a stable machine-readable ``kind`` plus the HTTP status
the transport layer maps it to. ``field`` names the failing input and
``code`` refines the kind (e.g. TYPE_IN_USE) where callers need it.
Clients must branch on ``kind``/``code``, never on message text.

    GlossAppError
    +-- InvalidInputError      InvalidInput     400
    +-- NotFoundError          NotFound         404
    +-- ConflictError          Conflict         409
    +-- ForbiddenError         Forbidden        403
    +-- PricingNotFoundError   PricingNotFound  404
"""


class GlossAppError(Exception):
    """Base exception for all engine errors."""

    kind = "Error"
    status_code = 500
    default_message = "Unexpected error."

    def __init__(self, message=None, field=None, code=None):
        self.message = message or self.default_message
        self.field = field
        self.code = code
        super().__init__(self.message)

    def to_dict(self):
        body = {"error": self.kind, "message": self.message}
        if self.field:
            body["field"] = self.field
        if self.code:
            body["code"] = self.code
        return body


class InvalidInputError(GlossAppError):
    """Missing or malformed field, bad enum value, out-of-range number."""
    kind = "InvalidInput"
    status_code = 400
    default_message = "Invalid input."


class NotFoundError(GlossAppError):
    """Referenced record, vehicle, washer, discount or type does not exist."""
    kind = "NotFound"
    status_code = 404
    default_message = "Not found."


class ConflictError(GlossAppError):
    """Uniqueness violation or a delete blocked by existing references."""
    kind = "Conflict"
    status_code = 409
    default_message = "Conflict with existing data."


class ForbiddenError(GlossAppError):
    """Role check or master PIN check failed."""
    kind = "Forbidden"
    status_code = 403
    default_message = "You do not have permission to perform this action."


class PricingNotFoundError(GlossAppError):
    """No pricing matrix entry and no explicit price for a category/wash pair."""
    kind = "PricingNotFound"
    status_code = 404
    default_message = "Pricing not found for selected car category and wash type."

    def __init__(self, car_category=None, wash_type=None, message=None):
        self.car_category = car_category
        self.wash_type = wash_type
        if message is None and car_category and wash_type:
            message = f"No price configured for {car_category} × {wash_type}"
        super().__init__(message, field="price")
