"""
User Service - Mirrors identity-provider users into the local users table.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from dionysus.db.database import utcnow
from dionysus.db.models import User
from dionysus.services.identity_service import UserProfile

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "User"
UNKNOWN_EMAIL = "unknown@email.com"


def display_name(profile: UserProfile) -> str:
    """Full name, else username, else first email, else "User"."""
    full_name = " ".join(p for p in (profile.first_name, profile.last_name) if p).strip()
    if full_name:
        return full_name
    if profile.username:
        return profile.username
    if profile.email_addresses:
        return profile.email_addresses[0]
    return DEFAULT_USER_NAME


def primary_email(profile: UserProfile) -> str:
    return profile.email_addresses[0] if profile.email_addresses else UNKNOWN_EMAIL


def upsert_user(db: Session, user_id: str, name: Optional[str] = None) -> User:
    """
    Insert or update the local row for ``user_id``.

    A missing ``name`` keeps the stored one (or "User" for a new row).
    The caller commits.
    """
    user = db.get(User, user_id)
    if user is None:
        user = User(id=user_id, name=name or DEFAULT_USER_NAME)
        db.add(user)
        logger.info(f"Created local user {user_id}")
    else:
        if name:
            user.name = name
        user.updated_at = utcnow()
    db.flush()
    return user


def sync_user_profile(db: Session, profile: UserProfile) -> Tuple[User, bool]:
    """
    Mirror a provider profile locally.

    Returns:
        The user row and whether it was created by this call.
    """
    is_new = db.get(User, profile.id) is None
    user = upsert_user(db, profile.id, display_name(profile))
    db.commit()
    return user, is_new
