"""
Global exception handlers.

Every failure leaves the API in the same envelope:
    {"success": false, "errors": [{"msg": ..., "code": ...}]}
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException

logger = logging.getLogger(__name__)


def error_response(status_code: int, errors: List[Dict[str, Any]], headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "errors": errors},
        headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": str(err["loc"][-1]) if err.get("loc") else "unknown",
            "msg": err["msg"],
            "code": "VALIDATION_ERROR",
        }
        for err in exc.errors()
    ]
    logger.warning(f"Validation failed on {request.url.path}: {errors}")
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def handle_app_exception(request: Request, exc: AppException):
    logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
    error = {"msg": exc.message, "code": exc.error_code}
    if exc.details:
        error["details"] = exc.details
    return error_response(exc.status_code, [error])


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    # 401s carry WWW-Authenticate; keep whatever headers the raiser set
    msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, [{"msg": msg}], getattr(exc, "headers", None))


async def handle_unexpected(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        [{"msg": "An unexpected server error occurred."}],
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(AppException, handle_app_exception)
    # fastapi.HTTPException subclasses the starlette one
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
