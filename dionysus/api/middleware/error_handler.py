"""
Error Handler Middleware - Global exception handling for the API.

The exception classes in this module are raised by the services layer;
the handlers turn them into consistent JSON error responses.
"""

import logging
import traceback
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from dionysus.core.config import get_settings

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedError(AppException):
    """Raised when the request carries no signed-in user."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            status_code=401
        )


class ProjectNotFoundError(AppException):
    """Raised when a project does not exist or belongs to someone else."""

    def __init__(self, project_id: str = None):
        super().__init__(
            message="Project not found or access denied",
            error_code="PROJECT_NOT_FOUND",
            status_code=404,
            details={"project_id": project_id} if project_id else {}
        )


class InvalidRepositoryURLError(AppException):
    """Raised when a repository URL cannot be parsed."""

    def __init__(self, message: str, repo_url: str = None):
        super().__init__(
            message=message,
            error_code="INVALID_REPO_URL",
            status_code=400,
            details={"repo_url": repo_url} if repo_url else {}
        )


class RepositoryNotFoundError(AppException):
    """Raised when GitHub reports the repository or commit as missing."""

    def __init__(self, repo_url: str):
        super().__init__(
            message=f"Repository not found: {repo_url}",
            error_code="REPO_NOT_FOUND",
            status_code=404,
            details={"repo_url": repo_url}
        )


class GitHubRequestError(AppException):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, repo_url: str = None):
        super().__init__(
            message=message,
            error_code="GITHUB_ERROR",
            status_code=502,
            details={"repo_url": repo_url} if repo_url else {}
        )


class AIServiceError(AppException):
    """Raised when the language model call fails or returns nothing."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="AI_ERROR",
            status_code=502
        )


class AIConfigurationError(AppException):
    """Raised when the language model is not configured."""

    def __init__(self, message: str = "Missing GEMINI_API_KEY"):
        super().__init__(
            message=message,
            error_code="AI_NOT_CONFIGURED",
            status_code=503
        )


class IdentityProviderError(AppException):
    """Raised when the identity provider cannot return a user profile."""

    def __init__(self, message: str, user_id: str = None):
        super().__init__(
            message=message,
            error_code="IDENTITY_ERROR",
            status_code=502,
            details={"user_id": user_id} if user_id else {}
        )


class NotificationError(AppException):
    """Raised when an outbound notification email is rejected."""

    def __init__(self, status_code: int, body: str):
        super().__init__(
            message=f"[auth-notify] Failed to send email ({status_code}): {body}",
            error_code="NOTIFICATION_ERROR",
            status_code=502,
            details={"provider_status": status_code}
        )


def create_error_response(
    message: str,
    error_code: str = "INTERNAL_ERROR",
    status_code: int = 500,
    details: dict = None
) -> JSONResponse:
    """Create a standardized error response."""
    settings = get_settings()

    content = {
        "success": False,
        "error": message,
        "error_code": error_code,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    # Include details in debug mode
    if details and settings.debug:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


async def app_exception_handler(
    request: Request,
    exc: AppException
) -> JSONResponse:
    """Handle application-specific exceptions."""
    if exc.status_code >= 500:
        logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return create_error_response(
        message=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code,
        details=exc.details
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions."""
    return create_error_response(
        message=str(exc.detail),
        error_code="HTTP_ERROR",
        status_code=exc.status_code
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        loc = " -> ".join(str(l) for l in error["loc"])
        errors.append(f"{loc}: {error['msg']}")

    return create_error_response(
        message="Validation error",
        error_code="VALIDATION_ERROR",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    settings = get_settings()

    traceback_str = "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    )
    logger.error(f"Unexpected error on {request.url.path}: {traceback_str}")

    details = None
    if settings.debug:
        details = {
            "exception_type": type(exc).__name__,
            "traceback": traceback_str
        }

    return create_error_response(
        message="An unexpected error occurred",
        error_code="INTERNAL_ERROR",
        status_code=500,
        details=details
    )
