"""Session gating for page requests.

Page routes are redirected before they render based on the caller's session
claims: signed-out callers are kept off private pages, and signed-in callers
who have not finished onboarding are sent there first. API routes are left
alone; they answer with error bodies instead of redirects.
"""

import logging
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from vivvers.config import get_settings
from vivvers.utils.session import decode_access_token, extract_session_token

logger = logging.getLogger(__name__)

# Paths the gate never redirects
BYPASS_PREFIXES = ("/api", "/auth", "/health", "/docs", "/redoc", "/openapi.json")

PROTECTED_PREFIXES = ("/profile", "/project/upload")
AUTH_PAGE_PREFIXES = ("/signin", "/signup")
ONBOARDING_PREFIX = "/onboarding"


def _matches(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in prefixes)


def resolve_gate_redirect(
    path: str,
    claims: dict[str, Any] | None,
    signin_path: str = "/signin",
    onboarding_path: str = "/onboarding",
) -> str | None:
    """Decide where a page request must go instead, or None to let it through.

    Args:
        path: Request path
        claims: Decoded session claims, or None when signed out
        signin_path: Where signed-out callers are sent
        onboarding_path: Where callers without a completed profile are sent
    """
    if claims is None:
        if _matches(path, PROTECTED_PREFIXES):
            return signin_path
        return None

    metadata = claims.get("user_metadata") or {}
    profile_completed = bool(metadata.get("profile_completed"))
    on_auth_page = _matches(path, AUTH_PAGE_PREFIXES)
    on_onboarding = _matches(path, (ONBOARDING_PREFIX,))

    if not profile_completed and not (on_auth_page or on_onboarding):
        return onboarding_path
    if on_auth_page:
        return "/"
    if profile_completed and on_onboarding:
        return "/"
    return None


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Redirect page requests according to :func:`resolve_gate_redirect`."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if _matches(path, BYPASS_PREFIXES):
            return await call_next(request)

        settings = get_settings()
        token = extract_session_token(request)
        claims = decode_access_token(token) if token else None

        target = resolve_gate_redirect(
            path,
            claims,
            signin_path=settings.signin_path,
            onboarding_path=settings.onboarding_path,
        )
        if target is not None and target != path:
            logger.debug("Redirecting %s to %s", path, target)
            return RedirectResponse(target, status_code=307)

        return await call_next(request)
