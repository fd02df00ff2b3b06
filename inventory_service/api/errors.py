"""
Inventory Service — Exception handlers

Every error leaves the service as
  {"errors": [{"status", "title", "detail", "timestamp", "errors"?}]}
"""
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inventory_service.core.errors import InternalFailure, InventoryError
from inventory_service.models.inventory import utcnow

logger = logging.getLogger(__name__)


def error_body(status_code: int, title: str, detail: str, field_errors: dict[str, str] | None = None) -> dict:
    error = {
        "status": str(status_code),
        "title": title,
        "detail": detail,
        "timestamp": utcnow().isoformat(),
    }
    if field_errors:
        error["errors"] = field_errors
    return {"errors": [error]}


def _field_name(loc) -> str:
    # drop the leading "body"/"query"/"path" segment
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    detail = exc.detail
    if isinstance(exc, InternalFailure):
        detail = "An internal error occurred while processing the request"
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.title, detail))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {_field_name(err["loc"]): err["msg"] for err in exc.errors()}
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(400, "Validation error", "Request validation failed", fields),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(500, "Internal server error", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
