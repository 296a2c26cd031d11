"""Tests for token verification and the auth endpoint."""

import time
from uuid import UUID

import httpx
import pytest

from marvin.config import get_settings
from marvin.errors import AuthError, UpstreamError
from marvin.services.auth import AuthenticatedUser, SupabaseAuth

from conftest import USER_ID, make_token


class TestDecodeAccessToken:
    def test_valid_token(self, auth):
        user = auth.decode_access_token(make_token(USER_ID, "user@example.com"))

        assert user.id == USER_ID
        assert user.email == "user@example.com"

    def test_expired_token(self, auth):
        token = make_token(USER_ID, exp=int(time.time()) - 60)
        with pytest.raises(AuthError):
            auth.decode_access_token(token)

    def test_wrong_audience(self, auth):
        token = make_token(USER_ID, aud="anon")
        with pytest.raises(AuthError):
            auth.decode_access_token(token)

    def test_garbage(self, auth):
        with pytest.raises(AuthError):
            auth.decode_access_token("not-a-jwt")

    def test_subject_must_be_uuid(self, auth):
        token = make_token(USER_ID, sub="service")
        with pytest.raises(AuthError):
            auth.decode_access_token(token)


class TestIsAdmin:
    def test_admin_by_email_is_case_insensitive(self):
        user = AuthenticatedUser(id=USER_ID, email="Admin@Example.com")
        assert user.is_admin(["admin@example.com"])

    def test_admin_by_app_metadata(self):
        user = AuthenticatedUser(id=USER_ID, email=None, app_metadata={"role": "admin"})
        assert user.is_admin([])

    def test_regular_user(self):
        user = AuthenticatedUser(id=USER_ID, email="user@example.com")
        assert not user.is_admin(["admin@example.com"])


class TestRemoteVerification:
    """Projects without a shared JWT secret verify tokens via the auth API."""

    @pytest.fixture
    def settings(self):
        return get_settings().model_copy(update={"supabase_jwt_secret": None})

    async def test_valid_token(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer remote-token"
            assert request.headers["apikey"] == settings.supabase_anon_key
            return httpx.Response(200, json={"id": str(USER_ID), "email": "user@example.com"})

        auth = SupabaseAuth(settings, httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        user = await auth.verify_token("remote-token")
        await auth.aclose()

        assert user.id == USER_ID

    async def test_rejected_token(self, settings):
        auth = SupabaseAuth(
            settings,
            httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(401))),
        )
        with pytest.raises(AuthError):
            await auth.verify_token("expired")
        await auth.aclose()

    async def test_auth_service_down(self, settings):
        auth = SupabaseAuth(
            settings,
            httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503))),
        )
        with pytest.raises(UpstreamError):
            await auth.verify_token("token")
        await auth.aclose()


async def test_list_user_emails(auth):
    emails = await auth.list_user_emails()
    assert emails[USER_ID] == "user@example.com"


async def test_list_user_emails_without_service_key():
    settings = get_settings().model_copy(update={"supabase_service_role_key": None})
    auth = SupabaseAuth(settings, httpx.AsyncClient())
    assert await auth.list_user_emails() == {}
    await auth.aclose()


# =============================================================================
# ENDPOINTS
# =============================================================================


async def test_missing_token_returns_401_envelope(client):
    response = await client.get("/api/sessions")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Nicht authentifiziert"}


async def test_invalid_token_returns_401(client):
    response = await client.get("/api/sessions", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


async def test_token_from_cookie(client):
    client.cookies.set("sb-access-token", make_token(USER_ID))
    response = await client.get("/api/sessions")
    assert response.status_code == 200


async def test_me_before_onboarding(client, headers):
    response = await client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert UUID(data["id"]) == USER_ID
    assert data["email"] == "user@example.com"
    assert data["is_admin"] is False
    assert data["onboarding_complete"] is False


async def test_me_after_onboarding(client, headers):
    await client.post(
        "/api/onboarding",
        json={"name": "Anna", "consent_data_processing": True},
        headers=headers,
    )

    response = await client.get("/api/auth/me", headers=headers)

    assert response.json()["data"]["onboarding_complete"] is True


async def test_me_for_admin(client, admin_headers):
    response = await client.get("/api/auth/me", headers=admin_headers)
    assert response.json()["data"]["is_admin"] is True
