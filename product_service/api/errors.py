"""
Product Service — Exception handlers rendering {"errors": [{status, title, detail, timestamp, errors?}]}
"""
import logging
from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

TITLES = {
    400: "Bad request",
    404: "Not found",
    405: "Method not allowed",
    409: "Conflict",
    500: "Internal server error",
}


def error_body(status_code: int, detail: str, field_errors: dict[str, str] | None = None) -> dict:
    error = {
        "status": str(status_code),
        "title": TITLES.get(status_code, "Error"),
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if field_errors:
        error["errors"] = field_errors
    return {"errors": [error]}


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, str(exc.detail)),
                        headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0]): err["msg"] for err in exc.errors()}
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                        content=error_body(400, "Request validation failed", fields))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(500, "An unexpected error occurred"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
