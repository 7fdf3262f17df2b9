"""
API error envelope.

Route handlers raise ApiError (usually via the Errors factory); the app
renders every ApiError as:

    {"success": false, "error": ..., "errorType": ..., "details": ..., "timestamp": ...}
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from quiz.errors import IncompleteAnswersError, InvalidTransitionError, QuizError

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    INTERNAL = "INTERNAL"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"


class ApiError(HTTPException):
    """HTTPException carrying an error category and optional details."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: ErrorType = ErrorType.INTERNAL,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.error_type = error_type
        self.details = details


class Errors:
    """Constructors for the common API errors."""

    @staticmethod
    def validation(message: str, details: Any = None) -> ApiError:
        return ApiError(message, 400, ErrorType.VALIDATION, details)

    @staticmethod
    def authentication(message: str = "Authentication required") -> ApiError:
        return ApiError(message, 401, ErrorType.AUTHENTICATION)

    @staticmethod
    def authorization(message: str = "Insufficient permissions") -> ApiError:
        return ApiError(message, 403, ErrorType.AUTHORIZATION)

    @staticmethod
    def not_found(message: str = "Resource not found") -> ApiError:
        return ApiError(message, 404, ErrorType.NOT_FOUND)

    @staticmethod
    def conflict(message: str = "Resource conflict", details: Any = None) -> ApiError:
        return ApiError(message, 409, ErrorType.VALIDATION, details)

    @staticmethod
    def rate_limit(message: str = "Rate limit exceeded", retry_after: int = 0) -> ApiError:
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        return ApiError(message, 429, ErrorType.RATE_LIMIT, {"retry_after": retry_after}, headers)

    @staticmethod
    def external_service(message: str, details: Any = None) -> ApiError:
        return ApiError(message, 502, ErrorType.EXTERNAL_SERVICE, details)

    @staticmethod
    def internal(message: str = "Internal server error") -> ApiError:
        return ApiError(message, 500, ErrorType.INTERNAL)


def error_body(message: str, error_type: ErrorType, details: Any = None) -> dict:
    return {
        "success": False,
        "error": message,
        "errorType": error_type.value,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def from_quiz_error(error: QuizError) -> ApiError:
    """Map a quiz domain error onto an HTTP error."""
    if isinstance(error, InvalidTransitionError):
        return Errors.conflict(str(error), {"phase": error.phase})
    if isinstance(error, IncompleteAnswersError):
        return Errors.validation(str(error), {"missing": error.missing})
    return Errors.validation(str(error))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error_type, exc.details),
        headers=exc.headers,
    )


async def quiz_error_handler(request: Request, exc: QuizError) -> JSONResponse:
    return await api_error_handler(request, from_quiz_error(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get the same envelope as other validation errors, with status 400."""
    problems = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    message = problems[0]["message"] if problems else "Invalid request body"
    return JSONResponse(
        status_code=400,
        content=error_body(message, ErrorType.VALIDATION, problems),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", ErrorType.INTERNAL),
    )
