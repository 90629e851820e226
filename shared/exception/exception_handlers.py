"""Mapeo de excepciones a respuestas JSON con el envelope estándar"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from shared.exception.exceptions import DomainError
from shared.utils.rate_limiter import rate_limit_exceeded_handler
from shared.utils.response import error_response

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    400: "validation_failed",
    401: "unauthenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Domain error on {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message, exc.code))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = _HTTP_STATUS_CODES.get(exc.status_code, "error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.info(f"Validation error on {request.url.path}: {errors}")
    fields = sorted({".".join(str(p) for p in e.get("loc", ())[1:]) for e in errors} - {""})
    message = f"Missing or malformed fields: {', '.join(fields)}" if fields else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(message, "validation_failed"),
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Stack trace solo en el log, nunca al cliente
    logger.error(f"Unhandled exception on {request.url.path}: {type(exc).__name__}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response("Internal server error", "internal"),
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    HTTPException: http_exception_handler,
    RequestValidationError: validation_error_handler,
    RateLimitExceeded: rate_limit_exceeded_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
