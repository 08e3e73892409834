import logging

from django.db import DatabaseError, IntegrityError
from django.db.models import ProtectedError
from django.http import HttpRequest
from ninja import NinjaAPI, Swagger
from ninja.errors import ValidationError

from assignments.api import router as assignments_router
from catalog.api import router as products_router
from performance.api import router as performance_router
from roster.api import lines_router, workers_router

from .exceptions import ApiError

logger = logging.getLogger(__name__)

api = NinjaAPI(
    title="Factory Workforce API",
    docs=Swagger(settings={"persistAuthorization": True}),
)

api.add_router("/assignments", assignments_router, tags=["assignments"])
api.add_router("/workers", workers_router, tags=["workers"])
api.add_router("/production-lines", lines_router, tags=["production lines"])
api.add_router("/products", products_router, tags=["products"])
api.add_router("/performance", performance_router, tags=["performance"])


@api.exception_handler(ApiError)
def on_api_error(request: HttpRequest, exc: ApiError):
    return api.create_response(request, exc.to_dict(), status=exc.status_code)


@api.exception_handler(ValidationError)
def on_validation_error(request: HttpRequest, exc: ValidationError):
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors
    ]
    message = details[0]["msg"] if details else "Invalid request data"
    return api.create_response(
        request,
        {"error": "VALIDATION_ERROR", "message": message, "details": details},
        status=400,
    )


@api.exception_handler(ProtectedError)
def on_protected_error(request: HttpRequest, exc: ProtectedError):
    return api.create_response(
        request,
        {
            "error": "FOREIGN_KEY_VIOLATION",
            "message": "The resource is still referenced by other records",
        },
        status=400,
    )


@api.exception_handler(IntegrityError)
def on_integrity_error(request: HttpRequest, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.path, exc)
    return api.create_response(
        request,
        {
            "error": "UNIQUE_CONSTRAINT_VIOLATION",
            "message": "A record with this information already exists",
        },
        status=409,
    )


@api.exception_handler(DatabaseError)
def on_database_error(request: HttpRequest, exc: DatabaseError):
    logger.error("Database error on %s %s", request.method, request.path, exc_info=exc)
    return api.create_response(
        request,
        {
            "error": "DATABASE_ERROR",
            "message": "An error occurred while processing your request",
        },
        status=500,
    )
