class BackOfficeError(Exception):
    """Base class for errors raised by services and converted at the request boundary."""

    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Bad request"


class ValidationError(BackOfficeError):
    """Missing or malformed required input."""

    @classmethod
    def default_message(cls) -> str:
        return "Validation failed"


class NotFoundError(BackOfficeError):
    status_code = 404
    code = "not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Resource not found"


class ConflictError(BackOfficeError):
    status_code = 409
    code = "conflict"

    @classmethod
    def default_message(cls) -> str:
        return "Conflict"


class BusinessRuleViolation(BackOfficeError):
    @classmethod
    def default_message(cls) -> str:
        return "Business rule violation"


class InsufficientStockError(BusinessRuleViolation):
    @classmethod
    def default_message(cls) -> str:
        return "Insufficient stock for this movement"


class InvalidMovementTypeError(BusinessRuleViolation):
    @classmethod
    def default_message(cls) -> str:
        return "Invalid movement type"


class NoInventoryRecordError(BusinessRuleViolation):
    @classmethod
    def default_message(cls) -> str:
        return "Cannot remove stock from non-existent inventory"


class DuplicateCodeError(BusinessRuleViolation):
    @classmethod
    def default_message(cls) -> str:
        return "Code already exists"
