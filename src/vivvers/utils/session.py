"""Session token extraction and local claim decoding."""

import logging
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from vivvers.config import get_settings

logger = logging.getLogger(__name__)

# Bearer scheme for API clients; browsers send the session cookie instead
bearer_scheme = HTTPBearer(auto_error=False)


def extract_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = None,
) -> str | None:
    """Return the caller's access token from the Authorization header or cookie."""
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token

    return request.cookies.get(get_settings().session_cookie_name) or None


async def get_session_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """FastAPI dependency returning the raw session token, if any."""
    return extract_session_token(request, credentials)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a provider-issued access token locally.

    Only the signature, expiry and audience are checked, so no network round
    trip is needed; use the auth provider to resolve the full identity.

    Args:
        token: The JWT token string to decode

    Returns:
        Decoded token payload if valid, None if invalid, expired or if no
        JWT secret is configured
    """
    settings = get_settings()
    if not settings.supabase_jwt_secret:
        return None
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.supabase_jwt_algorithm],
            audience=settings.supabase_jwt_audience,
        )
    except JWTError:
        logger.debug("Discarding invalid session token")
        return None
