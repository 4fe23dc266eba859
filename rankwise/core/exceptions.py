"""API errors rendered as RFC 7807 problem details."""

import logging
from typing import Any, ClassVar

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


class AppError(Exception):
    """Base error carrying the problem details returned to API clients.

    Subclasses fix the status, title and type slug; callers only supply a
    detail message, falling back to the subclass default.
    """

    status_code: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR
    title: ClassVar[str] = "Internal Server Error"
    slug: ClassVar[str] = "internal-error"
    default_detail: ClassVar[str] = "An unexpected error occurred"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def error_type(self) -> str:
        return f"about:blank#{self.slug}"

    def to_problem_detail(self) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Details format."""
        return {
            "type": self.error_type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }


class ValidationError(AppError):
    """The question or request body is unusable."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    title = "Validation Error"
    slug = "validation-error"
    default_detail = "Request validation failed"


class UnauthorizedError(AppError):
    """The OpenAI key is missing or was rejected."""

    status_code = status.HTTP_401_UNAUTHORIZED
    title = "Unauthorized"
    slug = "unauthorized"
    default_detail = "OpenAI API key is missing or invalid"


class RateLimitError(AppError):
    """The provider's rate limit or quota is exhausted."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    title = "Too Many Requests"
    slug = "rate-limit"
    default_detail = "Rate limit exceeded"


class UpstreamError(AppError):
    """The provider failed or returned nothing usable."""

    status_code = status.HTTP_502_BAD_GATEWAY
    title = "Bad Gateway"
    slug = "upstream-error"
    default_detail = "Failed to generate answers. Please try again."


def problem_response(problem: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=problem["status"],
        content=problem,
        media_type=PROBLEM_JSON,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError raised by an endpoint or service."""
    logger.warning(
        "%s: %s",
        exc.title,
        exc.detail,
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return problem_response(exc.to_problem_detail())


async def request_validation_handler(
    request: Request,  # noqa: ARG001
    exc: RequestValidationError,
) -> JSONResponse:
    """Render request body validation failures in the same problem format."""
    problem = ValidationError().to_problem_detail()
    problem["errors"] = jsonable_encoder(exc.errors())
    return problem_response(problem)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected exception and hide its details from the client."""
    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return problem_response(AppError().to_problem_detail())


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI application."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
