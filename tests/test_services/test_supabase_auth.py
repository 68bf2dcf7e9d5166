"""Tests for the Supabase auth client."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from vivvers.schemas.external import AuthIdentity, AuthSession
from vivvers.services.base import APIError, NotFoundError, RateLimitError
from vivvers.services.supabase_auth import SupabaseAuthClient

SAMPLE_USER = {
    "id": "00000000-0000-4000-8000-000000000001",
    "aud": "authenticated",
    "email": "dev@example.com",
    "email_confirmed_at": "2025-01-01T00:00:00Z",
    "user_metadata": {"profile_completed": True, "username": "devuser"},
    "app_metadata": {"provider": "github"},
}

SAMPLE_SESSION = {
    "access_token": "access",
    "refresh_token": "refresh",
    "expires_in": 3600,
    "token_type": "bearer",
    "user": SAMPLE_USER,
}


def mock_response(status_code: int, json=None, headers=None) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=json,
        headers=headers,
        request=httpx.Request("GET", "https://project.supabase.test/auth/v1/user"),
    )


@pytest.fixture
def auth_client() -> SupabaseAuthClient:
    """Create an auth client for testing."""
    return SupabaseAuthClient(supabase_url="https://project.supabase.test/", anon_key="anon")


class TestSupabaseAuthClientInit:
    """Tests for client construction."""

    def test_base_url_and_headers(self, auth_client: SupabaseAuthClient) -> None:
        assert auth_client.base_url == "https://project.supabase.test/auth/v1"
        assert auth_client.default_headers["apikey"] == "anon"

    def test_uses_settings_by_default(self) -> None:
        client = SupabaseAuthClient()
        assert client.base_url == "https://project.supabase.test/auth/v1"

    def test_requires_configuration(self) -> None:
        with patch("vivvers.services.supabase_auth.get_settings") as mock_settings:
            mock_settings.return_value.supabase_url = ""
            mock_settings.return_value.supabase_anon_key = ""
            with pytest.raises(ValueError, match="required"):
                SupabaseAuthClient()


class TestGetUser:
    """Tests for resolving access tokens."""

    async def test_get_user(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(200, SAMPLE_USER)

        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            identity = await auth_client.get_user("token")

        assert isinstance(identity, AuthIdentity)
        assert identity.email_verified is True
        assert identity.profile_completed is True
        call = mock_http_client.request.call_args
        assert call.kwargs["url"] == "user"
        assert call.kwargs["headers"]["Authorization"] == "Bearer token"
        assert call.kwargs["headers"]["apikey"] == "anon"

    @pytest.mark.parametrize("status_code", [400, 401, 403])
    async def test_rejected_token_is_none(
        self, auth_client: SupabaseAuthClient, status_code: int
    ) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(status_code, {"msg": "bad jwt"})

        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            assert await auth_client.get_user_or_none("expired") is None

    async def test_deleted_identity_is_none(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(404)

        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            assert await auth_client.get_user_or_none("token") is None

    async def test_outage_still_raises(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(503, {"msg": "unavailable"})

        with (
            patch.object(auth_client, "_get_client", return_value=mock_http_client),
            pytest.raises(APIError) as exc_info,
        ):
            await auth_client.get_user_or_none("token")
        assert exc_info.value.status_code == 503

    async def test_get_user_not_found(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(404)

        with (
            patch.object(auth_client, "_get_client", return_value=mock_http_client),
            pytest.raises(NotFoundError),
        ):
            await auth_client.get_user("token")

    async def test_rate_limit(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(429, headers={"Retry-After": "30"})

        with (
            patch.object(auth_client, "_get_client", return_value=mock_http_client),
            pytest.raises(RateLimitError) as exc_info,
        ):
            await auth_client.get_user("token")
        assert exc_info.value.retry_after == 30

    async def test_timeout(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.side_effect = httpx.TimeoutException("timed out")

        with (
            patch.object(auth_client, "_get_client", return_value=mock_http_client),
            pytest.raises(APIError, match="timed out"),
        ):
            await auth_client.get_user("token")


class TestSessionExchange:
    """Tests for the OAuth code exchange and metadata writes."""

    async def test_exchange_code(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(200, SAMPLE_SESSION)

        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            session = await auth_client.exchange_code_for_session("code", "verifier")

        assert isinstance(session, AuthSession)
        assert session.access_token == "access"
        assert session.user.id == SAMPLE_USER["id"]
        call = mock_http_client.request.call_args
        assert call.kwargs["method"] == "POST"
        assert call.kwargs["url"] == "token"
        assert call.kwargs["params"] == {"grant_type": "pkce"}
        assert call.kwargs["json"] == {"auth_code": "code", "code_verifier": "verifier"}

    async def test_exchange_without_verifier(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(200, SAMPLE_SESSION)

        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            await auth_client.exchange_code_for_session("code")

        assert mock_http_client.request.call_args.kwargs["json"] == {"auth_code": "code"}

    async def test_update_user(self, auth_client: SupabaseAuthClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(200, SAMPLE_USER)

        with patch.object(auth_client, "_get_client", return_value=mock_http_client):
            identity = await auth_client.update_user("token", {"username": "devuser"})

        assert identity.user_metadata["username"] == "devuser"
        call = mock_http_client.request.call_args
        assert call.kwargs["method"] == "PUT"
        assert call.kwargs["json"] == {"data": {"username": "devuser"}}


class TestClientLifecycle:
    """Tests for opening and closing the underlying HTTP client."""

    async def test_context_manager_closes(self, auth_client: SupabaseAuthClient) -> None:
        async with auth_client as client:
            assert client._client is not None
            assert client._client.headers["apikey"] == "anon"
        assert auth_client._client is None
