"""Centralized error response formatting and handling."""

import re
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from modification_service.errors import ErrorKind, ModificationError

logger = structlog.get_logger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.SERVICE_UNAVAILABLE: 502,
    ErrorKind.CACHE_UNAVAILABLE: 503,
}

_SECRET_PATTERNS = (
    re.compile(r"(\b(?:password|api[_-]?key|token|secret)\s*[=:]\s*)\S+", re.IGNORECASE),
    re.compile(r"(\w+://[^:/\s]+:)[^@\s]+(?=@)"),
)


class ErrorHandler:
    """Format common error responses."""

    def format_modification_error(self, error: ModificationError) -> JSONResponse:
        message = self._sanitize_error_message(str(error))
        logger.error("Modification error occurred", error_kind=error.kind.value, message=message)
        return JSONResponse(
            status_code=_STATUS_BY_KIND.get(error.kind, 500),
            content={"status": "error", "detail": {"type": error.kind.value, "message": message}},
        )

    def format_validation_error(self, error: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"status": "error", "detail": {"type": "Validation error", "errors": jsonable_encoder(error.errors())}},
        )

    def format_http_exception(self, error: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=error.status_code,
            content={"status": "error", "detail": error.detail},
        )

    def format_generic_error(self, error: Exception) -> JSONResponse:
        message = self._sanitize_error_message(str(error))
        logger.error("Generic error occurred", message=message)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "detail": {"type": "Unexpected error", "message": message}},
        )

    def _sanitize_error_message(self, message: str) -> str:
        """Mask credentials that may leak through driver error messages."""
        for pattern in _SECRET_PATTERNS:
            message = pattern.sub(r"\1***", message)
        return message

    def register_exception_handlers(self, app: FastAPI) -> None:
        @app.exception_handler(ModificationError)
        async def modification_error_handler(request: Request, exc: ModificationError):
            return self.format_modification_error(exc)

        @app.exception_handler(RequestValidationError)
        async def validation_error_handler(request: Request, exc: RequestValidationError):
            return self.format_validation_error(exc)

        @app.exception_handler(HTTPException)
        async def http_exception_handler(request: Request, exc: HTTPException):
            return self.format_http_exception(exc)

        @app.exception_handler(Exception)
        async def generic_exception_handler(request: Request, exc: Exception):
            return self.format_generic_error(exc)
