# src/storefront/utils/error_handler.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("fastapi")


def _safe_args(exc: Exception) -> str:
    a = getattr(exc, "args", None)
    return str(a) if a else "No additional details"


def _json_error(
    status_code: int,
    message: str,
    exc: Exception,
    extra: Dict[str, Any] | None = None,
) -> JSONResponse:
    """
    Unified JSON error envelope.
    5xx never leaks internals; client errors keep the handler's detail.
    """
    user_message = message
    if status_code >= 500:
        user_message = "Internal Server Error. Please try again later."

    payload: Dict[str, Any] = {
        "success": False,
        "error": user_message,
        "error_type": exc.__class__.__name__,
        "status_code": status_code,
    }

    if extra:
        payload.update(extra)

    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _log_http(request: Request, status_code: int, detail: str, exc: Exception) -> None:
    """
    Log levels:
    - 404 -> INFO (normal noise)
    - 401/403 -> WARNING (auth/permission)
    - other 4xx -> ERROR (client error worth checking)
    - 5xx -> EXCEPTION (stack trace)
    """
    url = str(request.url)
    method = request.method

    if status_code == 404:
        logger.info("404 Not Found: %s %s", method, url)
        return

    if status_code in (401, 403):
        logger.warning("%s: %s %s | detail=%s", status_code, method, url, detail)
        return

    if 400 <= status_code < 500:
        logger.error(
            "%s: %s %s | detail=%s | args=%s",
            status_code,
            method,
            url,
            detail,
            _safe_args(exc),
        )
        return

    logger.exception("%s: %s %s | detail=%s", status_code, method, url, detail)


async def custom_exception_handler(request: Request, exc: Exception):
    # FastAPI's HTTPException subclasses Starlette's, so one branch covers both
    if isinstance(exc, StarletteHTTPException):
        status = int(exc.status_code)
        detail = str(exc.detail)
        _log_http(request, status, detail, exc)
        response = _json_error(status_code=status, message=detail, exc=exc)
        if getattr(exc, "headers", None):
            response.headers.update(exc.headers)
        return response

    if isinstance(exc, RequestValidationError):
        logger.warning(
            "422 Validation error: %s %s | %s",
            request.method,
            str(request.url),
            exc.errors(),
        )
        return _json_error(
            status_code=422,
            message="Validation failed",
            exc=exc,
            extra={"details": exc.errors()},
        )

    if isinstance(exc, IntegrityError):
        # constraint hit that a route did not translate (unique handle, dangling FK)
        logger.error("400 Integrity error: %s %s | %s", request.method, str(request.url), exc.orig)
        return _json_error(status_code=400, message="Conflicting or invalid menu data", exc=exc)

    logger.exception("500 Unhandled exception: %s %s | %s", request.method, str(request.url), str(exc))
    return _json_error(
        status_code=500,
        message="Internal Server Error. Please try again later.",
        exc=exc,
    )
