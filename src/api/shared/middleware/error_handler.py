"""
Global Error Handler Middleware

Every failure leaves the API as
``{"error": {code, message, details, trace_id, timestamp}}``.
"""

import logging
import sqlite3
import traceback

import asyncpg
from fastapi import Request, FastAPI
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ..exceptions import APIException, DatabaseError
from ..responses import ErrorBody, ErrorDetail, ErrorResponse
from ..error_codes import is_server_error
from .trace import get_correlation_id, get_trace_id

logger = logging.getLogger(__name__)


def _envelope(status_code: int, body: ErrorBody) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=body).model_dump(mode="json")
    )


def _api_error_response(request: Request, exc: APIException) -> JSONResponse:
    log = logger.error if is_server_error(exc.code) else logger.warning
    log(
        f"API Error: {exc.code.value} - {exc.message}",
        extra={"error_code": exc.code.value, "path": request.url.path, "correlation_id": get_correlation_id()}
    )
    return _envelope(exc.status_code, ErrorBody(
        code=exc.code.value,
        message=exc.message,
        details=exc.details,
        trace_id=exc.trace_id or get_trace_id()
    ))


def register_error_handlers(app: FastAPI):
    """Install handlers for API errors, request validation, database and unexpected errors."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request: Request, exc: APIException):
        return _api_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            ErrorDetail(
                field=".".join(str(part) for part in error["loc"]),
                message=error["msg"],
                code=error["type"]
            )
            for error in exc.errors()
        ]
        logger.warning(
            f"Validation Error: {len(details)} field(s)",
            extra={"path": request.url.path, "errors": [d.model_dump() for d in details]}
        )
        return _envelope(400, ErrorBody.validation_error(
            "Request validation failed", details=details, trace_id=get_trace_id()
        ))

    @app.exception_handler(asyncpg.PostgresError)
    @app.exception_handler(sqlite3.Error)
    async def database_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Database Error: {type(exc).__name__}: {exc}",
            extra={"path": request.url.path}
        )
        return _api_error_response(request, DatabaseError())

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled Exception: {type(exc).__name__}: {exc}",
            extra={"path": request.url.path, "traceback": traceback.format_exc()}
        )
        # Internal details stay in the logs
        return _envelope(500, ErrorBody.internal_error(trace_id=get_trace_id()))
