"""
API error envelope.

Every error response has the shape:

    {"success": false, "error": {"code": ..., "message": ..., "details": ...}}

Routers raise ApiError; request validation errors, unknown routes and
unhandled exceptions are converted here. Internal exception text is only
exposed when APP_ENV=development.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


class ApiError(Exception):
    """An error with a status code, a machine-readable code and a safe message."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details

    @classmethod
    def not_found(cls, message: str = "Resource not found") -> "ApiError":
        return cls(404, "NOT_FOUND", message)

    @classmethod
    def bad_request(cls, message: str = "Bad request", details: Optional[Any] = None) -> "ApiError":
        return cls(400, "BAD_REQUEST", message, details)


def error_body(code: str, message: str, details: Optional[Any] = None) -> dict:
    error: dict = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


def register_error_handlers(app: FastAPI, *, expose_internal_errors: bool = False) -> None:
    """Install the envelope-producing exception handlers on `app`."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_body("VALIDATION_ERROR", "Validation failed", details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(_HTTP_CODES.get(exc.status_code, "HTTP_ERROR"), message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error on %s %s", request.method, request.url.path)
        message = str(exc) if expose_internal_errors else "An unexpected error occurred"
        return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", message))


__all__ = ["ApiError", "error_body", "register_error_handlers"]
