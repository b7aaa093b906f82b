"""
Application Configuration - Environment settings and constants.

Loads configuration from environment variables with sensible defaults.
Uses Pydantic Settings for validation and type safety.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Usage:
        from dionysus.core.config import get_settings
        settings = get_settings()
    """

    # Application
    app_name: str = "Dionysus"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # HTTP Server Configuration
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    api_prefix: str = "/api/v1"
    allowed_origins: List[str] = ["*"]

    # Database
    database_url: str = "sqlite:///./data/dionysus.db"

    # Authentication (identity provider sits in front of the API)
    auth_user_header: str = "X-User-Id"
    identity_api_url: str = "https://api.clerk.com/v1"
    identity_secret_key: Optional[str] = None

    # GitHub
    github_token: Optional[str] = None
    max_commits: int = 15
    commit_page_size: int = 50

    # Generative AI
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    ai_context_commits: int = 20

    # Billing
    checkout_delay_seconds: float = 0.9

    # Auth notifications
    resend_api_key: Optional[str] = None
    auth_notify_from: str = "Dionysus Auth <onboarding@resend.dev>"
    auth_notify_to: Optional[str] = None

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
