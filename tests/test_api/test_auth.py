"""Tests for authentication API endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient


SAMPLE_SESSION = {
    "access_token": "new-access-token",
    "refresh_token": "new-refresh-token",
    "expires_in": 3600,
    "token_type": "bearer",
    "user": {
        "id": "00000000-0000-4000-8000-000000000001",
        "email": "dev@example.com",
        "email_confirmed_at": "2025-01-01T00:00:00Z",
        "user_metadata": {},
    },
}


class TestCurrentSession:
    """Tests for the current session endpoint."""

    async def test_anonymous(self, client: AsyncClient, use_db) -> None:
        """Test that a request without a session is rejected."""
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "not_logged_in"
        assert data["error"] == "로그인이 필요합니다"

    async def test_before_onboarding(
        self, client: AsyncClient, use_db, sign_in, identity
    ) -> None:
        """Test that the stored user is null until onboarding."""
        sign_in(identity)

        response = await client.get("/api/auth/me")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == identity.id
        assert data["email_verified"] is True
        assert data["profile_completed"] is False
        assert data["user"] is None

    async def test_after_onboarding(
        self, client: AsyncClient, use_db, sign_in, identity_factory, make_user
    ) -> None:
        """Test that the stored profile is returned once it exists."""
        await make_user(username="devuser")
        sign_in(identity_factory(profile_completed=True))

        response = await client.get("/api/auth/me")

        data = response.json()
        assert data["profile_completed"] is True
        assert data["user"]["username"] == "devuser"
        assert data["user"]["role"] == "user"


class TestAuthCallback:
    """Tests for the OAuth callback."""

    async def test_missing_code(self, client: AsyncClient) -> None:
        """Test that a callback without a code goes to the error page."""
        response = await client.get("/auth/callback")

        assert response.status_code == 303
        assert response.headers["location"] == "/auth/auth-code-error"

    async def test_first_sign_in_marks_profile_incomplete(
        self, client: AsyncClient, auth_http: AsyncMock, provider_response
    ) -> None:
        """Test the code exchange and the metadata write for new identities."""
        auth_http.request.side_effect = [
            provider_response(200, SAMPLE_SESSION),
            provider_response(200, SAMPLE_SESSION["user"]),
        ]
        client.cookies.set("sb-code-verifier", "verifier-123")

        response = await client.get("/auth/callback", params={"code": "abc", "next": "/projects"})

        assert response.status_code == 303
        assert response.headers["location"] == "/projects"

        exchange, update = auth_http.request.call_args_list
        assert exchange.kwargs["params"] == {"grant_type": "pkce"}
        assert exchange.kwargs["json"] == {"auth_code": "abc", "code_verifier": "verifier-123"}
        assert update.kwargs["method"] == "PUT"
        assert update.kwargs["json"] == {"data": {"profile_completed": False}}
        assert update.kwargs["headers"]["Authorization"] == "Bearer new-access-token"

        cookies = response.headers.get_list("set-cookie")
        assert any(c.startswith("sb-access-token=new-access-token") for c in cookies)
        assert any(c.startswith("sb-refresh-token=new-refresh-token") for c in cookies)
        assert all("httponly" in c.lower() for c in cookies if c.startswith("sb-access"))

    async def test_returning_user_skips_metadata_write(
        self, client: AsyncClient, auth_http: AsyncMock, provider_response
    ) -> None:
        """Test that completed profiles are left alone."""
        session = {
            **SAMPLE_SESSION,
            "user": {**SAMPLE_SESSION["user"], "user_metadata": {"profile_completed": True}},
        }
        auth_http.request.return_value = provider_response(200, session)

        response = await client.get("/auth/callback", params={"code": "abc"})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert auth_http.request.call_count == 1

    async def test_rejected_code(
        self, client: AsyncClient, auth_http: AsyncMock, provider_response
    ) -> None:
        """Test that a failed exchange goes to the error page."""
        auth_http.request.return_value = provider_response(400, {"error": "invalid_grant"})

        response = await client.get("/auth/callback", params={"code": "bad"})

        assert response.status_code == 303
        assert response.headers["location"] == "/auth/auth-code-error"

    @pytest.mark.parametrize("next_path", ["https://evil.example", "//evil.example"])
    async def test_offsite_next_is_ignored(
        self, client: AsyncClient, auth_http: AsyncMock, provider_response, next_path: str
    ) -> None:
        """Test that only same-site paths are followed after sign-in."""
        session = {
            **SAMPLE_SESSION,
            "user": {**SAMPLE_SESSION["user"], "user_metadata": {"profile_completed": True}},
        }
        auth_http.request.return_value = provider_response(200, session)

        response = await client.get("/auth/callback", params={"code": "abc", "next": next_path})

        assert response.headers["location"] == "/"
