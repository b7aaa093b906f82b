"""
API Middleware - Request/response processing middleware.
"""

from dionysus.api.middleware.error_handler import (
    AppException,
    UnauthorizedError,
    ProjectNotFoundError,
    InvalidRepositoryURLError,
    RepositoryNotFoundError,
    GitHubRequestError,
    AIServiceError,
    AIConfigurationError,
    IdentityProviderError,
    NotificationError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)

__all__ = [
    "AppException",
    "UnauthorizedError",
    "ProjectNotFoundError",
    "InvalidRepositoryURLError",
    "RepositoryNotFoundError",
    "GitHubRequestError",
    "AIServiceError",
    "AIConfigurationError",
    "IdentityProviderError",
    "NotificationError",
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "generic_exception_handler",
]
