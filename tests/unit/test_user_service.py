"""Tests for user mirroring, identity profiles and auth notifications."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from dionysus.api.middleware.error_handler import IdentityProviderError, NotificationError
from dionysus.db.models import User
from dionysus.services.identity_service import IdentityService, IdentityServiceConfig, UserProfile
from dionysus.services.notification_service import (
    RESEND_EMAILS_URL,
    AuthEvent,
    NotificationConfig,
    NotificationService,
    build_html,
    build_subject,
)
from dionysus.services.user_service import (
    display_name,
    primary_email,
    sync_user_profile,
    upsert_user,
)


def make_event(**overrides):
    values = dict(
        event_type="signup",
        name="Ada Lovelace",
        email="ada@example.com",
        user_id="user_1",
        occurred_at=datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return AuthEvent(**values)


# ── profile helpers ──────────────────────────────────────────────────────────


class TestDisplayName:
    def test_full_name(self):
        assert display_name(UserProfile(id="u", first_name="Ada", last_name="Lovelace")) == "Ada Lovelace"

    def test_first_name_only(self):
        assert display_name(UserProfile(id="u", first_name="Ada")) == "Ada"

    def test_username(self):
        assert display_name(UserProfile(id="u", username="ada")) == "ada"

    def test_email(self):
        assert display_name(UserProfile(id="u", email_addresses=["ada@example.com"])) == "ada@example.com"

    def test_fallback(self):
        assert display_name(UserProfile(id="u")) == "User"


class TestPrimaryEmail:
    def test_first_address(self):
        profile = UserProfile(id="u", email_addresses=["a@example.com", "b@example.com"])
        assert primary_email(profile) == "a@example.com"

    def test_unknown(self):
        assert primary_email(UserProfile(id="u")) == "unknown@email.com"


class TestProfilePayload:
    def test_from_payload(self):
        profile = UserProfile.from_payload({
            "id": "user_1",
            "first_name": "Ada",
            "last_name": None,
            "username": "ada",
            "email_addresses": [{"email_address": "ada@example.com"}, {"id": "no-address"}],
        })
        assert profile.id == "user_1"
        assert profile.email_addresses == ["ada@example.com"]

    @pytest.mark.asyncio
    async def test_unconfigured_lookup_returns_none(self):
        assert await IdentityService().find_user("user_1") is None


class TestIdentityLookup:
    @pytest.fixture
    def service(self):
        return IdentityService(IdentityServiceConfig(api_url="https://api.clerk.test/v1/", secret_key="sk_test"))

    @pytest.mark.asyncio
    async def test_fetches_profile_with_bearer_key(self, service, mock_http):
        seen = mock_http(lambda request: httpx.Response(200, json={
            "id": "user_1",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email_addresses": [{"email_address": "ada@example.com"}],
        }))

        profile = await service.get_user("user_1")

        assert (profile.first_name, profile.email_addresses) == ("Ada", ["ada@example.com"])
        assert str(seen[0].url) == "https://api.clerk.test/v1/users/user_1"
        assert seen[0].headers["Authorization"] == "Bearer sk_test"

    @pytest.mark.asyncio
    async def test_missing_user(self, service, mock_http):
        mock_http(lambda request: httpx.Response(404, json={"errors": []}))
        with pytest.raises(IdentityProviderError, match="User not found"):
            await service.get_user("user_1")

    @pytest.mark.asyncio
    async def test_provider_failure(self, service, mock_http):
        mock_http(lambda request: httpx.Response(500))
        with pytest.raises(IdentityProviderError, match="500"):
            await service.get_user("user_1")

    @pytest.mark.asyncio
    async def test_find_user_swallows_provider_failure(self, service, mock_http):
        mock_http(lambda request: httpx.Response(500))
        assert await service.find_user("user_1") is None


# ── upsert ───────────────────────────────────────────────────────────────────


class TestUpsertUser:
    def test_creates_with_default_name(self, db):
        user = upsert_user(db, "user_9")
        db.commit()
        assert user.name == "User"

    def test_keeps_name_when_none_given(self, db):
        upsert_user(db, "user_9", "Ada")
        user = upsert_user(db, "user_9")
        db.commit()
        assert user.name == "Ada"
        assert db.get(User, "user_9").name == "Ada"

    def test_sync_reports_new_user_once(self, db):
        profile = UserProfile(id="user_9", first_name="Ada", last_name="Lovelace")
        user, is_new = sync_user_profile(db, profile)
        assert (user.name, is_new) == ("Ada Lovelace", True)

        _, is_new = sync_user_profile(db, profile)
        assert is_new is False


# ── notifications ────────────────────────────────────────────────────────────


class TestNotificationContent:
    def test_subjects(self):
        assert build_subject(make_event()) == "[Dionysus] New Signup: Ada Lovelace"
        assert build_subject(make_event(event_type="login")) == "[Dionysus] User Login: Ada Lovelace"

    def test_html_escapes_values(self):
        html = build_html(make_event(name="<script>alert(1)</script>"))
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_missing_request_metadata(self):
        html = build_html(make_event())
        assert html.count("Unavailable") == 2
        assert "SIGNUP" in html

    @pytest.mark.asyncio
    async def test_skipped_without_credentials(self):
        service = NotificationService(NotificationConfig(api_key=None, recipient="ops@example.com"))
        assert await service.send_auth_notification(make_event()) is False


class TestNotificationDelivery:
    @pytest.fixture
    def service(self):
        return NotificationService(NotificationConfig(api_key="re_test", recipient="ops@example.com"))

    @pytest.mark.asyncio
    async def test_posts_email(self, service, mock_http):
        seen = mock_http(lambda request: httpx.Response(200, json={"id": "email_1"}))

        assert await service.send_auth_notification(make_event()) is True

        request = seen[0]
        assert str(request.url) == RESEND_EMAILS_URL
        assert request.headers["Authorization"] == "Bearer re_test"
        body = json.loads(request.content)
        assert body["from"] == "Dionysus Auth <onboarding@resend.dev>"
        assert body["to"] == ["ops@example.com"]
        assert body["subject"] == "[Dionysus] New Signup: Ada Lovelace"
        assert "Ada Lovelace" in body["html"]

    @pytest.mark.asyncio
    async def test_rejected_email_raises(self, service, mock_http):
        mock_http(lambda request: httpx.Response(422, json={"message": "Invalid `to` field"}))

        with pytest.raises(NotificationError, match="422") as exc:
            await service.send_auth_notification(make_event())

        assert exc.value.details["provider_status"] == 422
        assert "Invalid `to` field" in exc.value.message
