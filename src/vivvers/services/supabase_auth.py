"""Supabase Auth (GoTrue) API client service."""

import logging
from typing import Any

from vivvers.config import get_settings
from vivvers.schemas.external import AuthIdentity, AuthSession
from vivvers.services.base import APIError, BaseAPIClient, NotFoundError

logger = logging.getLogger(__name__)


class SupabaseAuthClient(BaseAPIClient):
    """Client for the hosted auth provider.

    Resolves access tokens to identities, exchanges OAuth codes for sessions
    and writes user metadata. Every call is authorized with the project's
    anon key; calls on behalf of a user also carry the user's access token.
    """

    def __init__(
        self,
        supabase_url: str | None = None,
        anon_key: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the auth client.

        Args:
            supabase_url: Project URL. If not provided, uses settings.
            anon_key: Project anon key. If not provided, uses settings.
            timeout: Request timeout in seconds.
        """
        settings = get_settings()
        project_url = supabase_url or settings.supabase_url
        self._anon_key = anon_key or settings.supabase_anon_key

        if not project_url or not self._anon_key:
            raise ValueError("Supabase URL and anon key are required")

        super().__init__(base_url=f"{project_url.rstrip('/')}/auth/v1", timeout=timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        """Return default headers including the project API key."""
        return {
            "apikey": self._anon_key,
            "Accept": "application/json",
        }

    @staticmethod
    def _bearer(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def get_user(self, access_token: str) -> AuthIdentity:
        """Resolve an access token to the identity it was issued for.

        Raises:
            APIError: If the token is rejected (401/403) or the call fails.
            NotFoundError: If the identity no longer exists.
        """
        data = await self.get("/user", headers=self._bearer(access_token))
        return AuthIdentity.model_validate(data)

    async def get_user_or_none(self, access_token: str) -> AuthIdentity | None:
        """Resolve an access token, returning None when it is not accepted.

        Expired, forged or revoked tokens mean "no identity" rather than an
        error. Provider outages still raise.
        """
        try:
            return await self.get_user(access_token)
        except NotFoundError:
            return None
        except APIError as e:
            if e.status_code in (400, 401, 403):
                logger.info("Session token rejected by auth provider (%s)", e.status_code)
                return None
            raise

    async def exchange_code_for_session(
        self, code: str, code_verifier: str | None = None
    ) -> AuthSession:
        """Exchange an OAuth authorization code for a session."""
        payload: dict[str, Any] = {"auth_code": code}
        if code_verifier:
            payload["code_verifier"] = code_verifier
        data = await self.post("/token", params={"grant_type": "pkce"}, json=payload)
        return AuthSession.model_validate(data)

    async def update_user(self, access_token: str, data: dict[str, Any]) -> AuthIdentity:
        """Merge ``data`` into the identity's user metadata."""
        result = await self.put("/user", json={"data": data}, headers=self._bearer(access_token))
        return AuthIdentity.model_validate(result)


async def get_auth_client() -> SupabaseAuthClient:
    """Factory function to create an auth client.

    Can be used as a FastAPI dependency.
    """
    return SupabaseAuthClient()
