class ApiError(Exception):
    """
    Base class for errors that map to a JSON error response.

    Rendered as ``{"error": code, "message": message, **extra}`` with
    ``status_code`` by the handlers registered in ``factory_floor.api``.
    """
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "The request could not be processed"

    def __init__(self, message: str | None = None, code: str | None = None, **extra):
        self.message = message or self.default_message
        if code:
            self.code = code
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.code, "message": self.message}
        body.update(self.extra)
        return body


class InvalidId(ApiError):
    code = "INVALID_ID"
    default_message = "Invalid ID provided"


class RequestValidationError(ApiError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid request data"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "The requested resource was not found"


class WorkerNotFound(NotFoundError):
    code = "WORKER_NOT_FOUND"
    default_message = "Worker not found"


class ProductionLineNotFound(NotFoundError):
    code = "PRODUCTION_LINE_NOT_FOUND"
    default_message = "Production line not found"


class AssignmentNotFound(NotFoundError):
    code = "ASSIGNMENT_NOT_FOUND"
    default_message = "Assignment not found"


class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found"


class PerformanceRecordNotFound(NotFoundError):
    code = "PERFORMANCE_RECORD_NOT_FOUND"
    default_message = "Performance record not found"


class ProductionLineInactive(ApiError):
    code = "PRODUCTION_LINE_INACTIVE"
    default_message = "Cannot assign to inactive production line"


class ProductInactive(ApiError):
    code = "PRODUCT_INACTIVE"
    default_message = "Cannot record performance for an inactive product"


class ConflictError(ApiError):
    status_code = 409
    code = "CONFLICT"
    default_message = "The request conflicts with existing data"


class AssignmentConflict(ConflictError):
    code = "ASSIGNMENT_CONFLICT"
    default_message = "Worker is already assigned for this date and shift"


class DuplicateValue(ConflictError):
    code = "DUPLICATE_VALUE"
    default_message = "This value is already in use"


def parse_id(raw, label: str = "resource") -> int:
    """Parse a path identifier, raising ``InvalidId`` when it is not a positive integer."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidId(f"Invalid {label} ID provided") from None
    if value <= 0:
        raise InvalidId(f"Invalid {label} ID provided")
    return value
