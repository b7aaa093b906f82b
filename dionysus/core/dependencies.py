"""
Dependencies - Dependency injection for services and the current user.

Provides singleton instances of services built from settings.
"""

from functools import lru_cache

from fastapi import Request

from dionysus.api.middleware.error_handler import UnauthorizedError
from dionysus.core.config import get_settings
from dionysus.services.ai_service import AIService, AIServiceConfig
from dionysus.services.billing_service import BillingService
from dionysus.services.commit_service import CommitService
from dionysus.services.github_service import GitHubService, GitHubServiceConfig
from dionysus.services.identity_service import IdentityService, IdentityServiceConfig
from dionysus.services.notification_service import NotificationConfig, NotificationService


def get_current_user_id(request: Request) -> str:
    """
    Return the signed-in user's id.

    The identity provider's edge verifies the session and forwards the user
    id in the configured header.
    """
    settings = get_settings()
    user_id = request.headers.get(settings.auth_user_header, "").strip()
    if not user_id:
        raise UnauthorizedError()
    return user_id


@lru_cache()
def get_github_service() -> GitHubService:
    """Get GitHub service instance."""
    settings = get_settings()
    return GitHubService(
        GitHubServiceConfig(token=settings.github_token, max_commits=settings.max_commits)
    )


@lru_cache()
def get_ai_service() -> AIService:
    """Get AI service instance."""
    settings = get_settings()
    return AIService(
        AIServiceConfig(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            context_commits=settings.ai_context_commits,
            http_timeout_seconds=settings.http_timeout_seconds,
        )
    )


def get_commit_service() -> CommitService:
    """Get commit sync service wired to the GitHub and AI services."""
    return CommitService(get_github_service(), get_ai_service())


@lru_cache()
def get_identity_service() -> IdentityService:
    """Get identity provider client."""
    settings = get_settings()
    return IdentityService(
        IdentityServiceConfig(
            api_url=settings.identity_api_url,
            secret_key=settings.identity_secret_key,
            timeout_seconds=settings.http_timeout_seconds,
        )
    )


@lru_cache()
def get_notification_service() -> NotificationService:
    """Get auth notification sender."""
    settings = get_settings()
    return NotificationService(
        NotificationConfig(
            api_key=settings.resend_api_key,
            sender=settings.auth_notify_from,
            recipient=settings.auth_notify_to,
            timeout_seconds=settings.http_timeout_seconds,
        )
    )


@lru_cache()
def get_billing_service() -> BillingService:
    """Get billing service instance."""
    return BillingService(checkout_delay_seconds=get_settings().checkout_delay_seconds)
