"""
Unified error handling for consistent API error responses.

All API errors use these classes to ensure consistent response format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "detail": "Optional additional context"
    }
}
"""

from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from ..core.http import ExternalAPIError, NotConfiguredError, UpstreamNotFoundError


class APIError(HTTPException):
    """Base API error class for consistent error responses."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        detail: str | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.code = code
        self.message = message
        self.error_detail = detail
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": message, "detail": detail},
            headers=headers,
        )


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Any, code: str = "NOT_FOUND"):
        super().__init__(
            status_code=404,
            code=code,
            message=f"{resource} not found",
            detail=f"{resource} with ID {identifier}",
        )


class ValidationError(APIError):
    """Invalid input (400)."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            status_code=400,
            code="VALIDATION_ERROR",
            message=message,
            detail=detail,
        )


class UnauthorizedError(APIError):
    """Missing or wrong admin credentials (401)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            status_code=401,
            code="UNAUTHORIZED",
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ConflictError(APIError):
    """Write would violate a uniqueness rule (409)."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            status_code=409,
            code="CONFLICT",
            message=message,
            detail=detail,
        )


class ServiceUnavailableError(APIError):
    """External service unavailable (503)."""

    def __init__(self, service: str, message: str | None = None):
        super().__init__(
            status_code=503,
            code="SERVICE_UNAVAILABLE",
            message=message or f"{service} is currently unavailable",
            detail=f"The {service} service is not configured or experiencing issues",
        )


class ExternalServiceError(APIError):
    """External API error (502 unless the upstream error says otherwise)."""

    def __init__(self, service: str, message: str, status_code: int = 502, code: str = "EXTERNAL_API_ERROR"):
        super().__init__(
            status_code=status_code,
            code=code,
            message=message,
            detail=f"Error from {service} API",
        )


def upstream_error(service: str, exc: ExternalAPIError) -> APIError:
    """Translate a client-layer error into the matching API error."""
    if isinstance(exc, NotConfiguredError):
        return ServiceUnavailableError(service, exc.message)
    if isinstance(exc, UpstreamNotFoundError):
        return APIError(status_code=404, code=exc.code, message=exc.message)
    return ExternalServiceError(service, exc.message, status_code=exc.status_code, code=exc.code)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """
    FastAPI exception handler for APIError.

    Converts APIError exceptions to consistent JSON responses.
    """
    content = {
        "error": {
            "code": exc.code,
            "message": exc.message,
        }
    }
    if exc.error_detail:
        content["error"]["detail"] = exc.error_detail

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
    )
