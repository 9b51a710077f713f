"""
Custom exception handlers for consistent API error responses.

Every failure is answered with ``{"status": "error", "code": <status>, "error": <message>}``;
the browser front-end reads the ``error`` key.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from deeptrust.core.exceptions import AnalysisError
from deeptrust.core.logging import get_logger

logger = get_logger(__name__)

# Constants for sanitized error messages
INVALID_REQUEST_MSG = "Invalid request body"
INTERNAL_ERROR_MSG = "Analysis failed"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "code": status_code,
            "error": message,
        },
    )


async def analysis_exception_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    """
    Handle AnalysisError: the status code and message travel with the exception.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "analysis_exception",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTPException with standardized error response.
    """
    detail = str(exc.detail) if exc.detail else "An error occurred"

    logger.warning(
        "http_exception",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        detail=detail,
    )
    return error_response(exc.status_code, detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors (malformed JSON, wrong field types) as a plain 400.
    """
    logger.warning(
        "validation_exception",
        path=request.url.path,
        method=request.method,
        errors=str(exc.errors())[:500],
    )
    return error_response(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST_MSG)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with standardized error response.

    Returns 500 Internal Server Error.
    """
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MSG)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all custom exception handlers with the FastAPI app.
    """
    app.add_exception_handler(AnalysisError, analysis_exception_handler)

    # Standard FastAPI exceptions
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Catch-all for any other exceptions
    app.add_exception_handler(Exception, generic_exception_handler)
