from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.exceptions import VerificationServiceError, RateLimitError, InvalidCodeError, InternalError
from app.schemas.response import ErrorResponse
from app.core.config import settings

logger = logging.getLogger(__name__)


def _error_content(error: ErrorResponse) -> dict:
    return error.model_dump(by_alias=True, exclude_none=True)


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(VerificationServiceError)
    async def service_exception_handler(request: Request, exc: VerificationServiceError):
        error = ErrorResponse(
            error=exc.message,
            code=exc.code,
            details=exc.details
        )
        headers = None

        if isinstance(exc, RateLimitError):
            error.retry_after = exc.retry_after
            headers = {"Retry-After": str(exc.retry_after)}
        elif isinstance(exc, InvalidCodeError):
            error.attempts_remaining = exc.attempts_remaining

        if exc.status_code >= 500:
            logger.error(
                f"Service error: {exc.message}",
                extra={"http_method": request.method, "url": str(request.url)}
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(error),
            headers=headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, etc.)
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(ErrorResponse(
                error=str(exc.detail),
                code="HTTP_ERROR"
            ))
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles malformed request bodies as business validation failures.
        """
        return JSONResponse(
            status_code=400,
            content=_error_content(ErrorResponse(
                error="Input validation failed",
                code="VALIDATION_ERROR",
                details=jsonable_encoder(exc.errors())
            ))
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "http_method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        # Full detail stays in the server log
        details = {"type": type(exc).__name__} if settings.DEBUG and not settings.is_production else None

        error = InternalError(details=details)

        return JSONResponse(
            status_code=error.status_code,
            content=_error_content(ErrorResponse(
                error=error.message,
                code=error.code,
                details=error.details
            ))
        )
