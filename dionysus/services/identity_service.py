"""
Identity Service - Reads user profiles from the identity provider.

Sign-in itself happens at the provider; the API only receives the verified
user id (see ``get_current_user_id``) and looks the profile up here.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from dionysus.api.middleware.error_handler import IdentityProviderError

logger = logging.getLogger(__name__)


@dataclass
class UserProfile:
    """Subset of the provider's user object the app uses."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    email_addresses: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=payload["id"],
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            username=payload.get("username"),
            email_addresses=[
                e["email_address"]
                for e in payload.get("email_addresses") or []
                if e.get("email_address")
            ],
        )


@dataclass
class IdentityServiceConfig:
    api_url: str = "https://api.clerk.com/v1"
    secret_key: Optional[str] = None
    timeout_seconds: float = 30.0


class IdentityService:
    """Client for the identity provider's backend user API."""

    def __init__(self, config: Optional[IdentityServiceConfig] = None):
        self.config = config or IdentityServiceConfig()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.secret_key)

    async def get_user(self, user_id: str) -> UserProfile:
        """Fetch a user's profile by id."""
        if not self.is_configured:
            raise IdentityProviderError("Identity provider secret key is not configured", user_id=user_id)

        url = f"{self.config.api_url.rstrip('/')}/users/{user_id}"
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.get(
                    url, headers={"Authorization": f"Bearer {self.config.secret_key}"}
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Identity provider request failed: {e}", user_id=user_id) from e

        if response.status_code == 404:
            raise IdentityProviderError("User not found", user_id=user_id)
        if response.is_error:
            raise IdentityProviderError(
                f"Identity provider returned {response.status_code}", user_id=user_id
            )
        return UserProfile.from_payload(response.json())

    async def find_user(self, user_id: str) -> Optional[UserProfile]:
        """Like ``get_user`` but returns None when the profile is unavailable."""
        if not self.is_configured:
            return None
        try:
            return await self.get_user(user_id)
        except IdentityProviderError as e:
            logger.warning(f"Profile lookup for {user_id} failed: {e.message}")
            return None
