"""
Auth Endpoints - Mirrors the signed-in user after the identity provider login.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from dionysus.api.middleware.error_handler import AppException
from dionysus.core.dependencies import (
    get_current_user_id,
    get_identity_service,
    get_notification_service,
)
from dionysus.db.database import get_db
from dionysus.models.responses import SyncUserResponse
from dionysus.models.schemas import UserInfo
from dionysus.services.identity_service import IdentityService
from dionysus.services.notification_service import AuthEvent, NotificationService
from dionysus.services.user_service import primary_email, sync_user_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def client_ip(request: Request) -> Optional[str]:
    """First ``x-forwarded-for`` hop, else None."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for:
        return None
    return forwarded_for.split(",")[0].strip() or None


@router.post(
    "/sync-user",
    response_model=SyncUserResponse,
    summary="Sync User",
    description="Mirror the identity provider profile locally and send a login/signup notification"
)
async def sync_user(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity_service),
    notifications: NotificationService = Depends(get_notification_service)
) -> SyncUserResponse:
    """
    Upsert the local user row from the provider profile.

    The notification is best effort: a failure is logged and the sync
    still succeeds.
    """
    profile = await identity.get_user(user_id)
    user, is_new = sync_user_profile(db, profile)
    event_type = "signup" if is_new else "login"

    notified = False
    try:
        notified = await notifications.send_auth_notification(
            AuthEvent(
                event_type=event_type,
                name=user.name,
                email=primary_email(profile),
                user_id=user_id,
                occurred_at=datetime.now(timezone.utc),
                ip_address=client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )
        )
    except AppException as e:
        logger.error(e.message)
    except Exception as e:
        logger.exception(f"Auth notification for {user_id} failed: {e}")

    return SyncUserResponse(
        user=UserInfo.model_validate(user),
        event_type=event_type,
        notified=notified,
    )
