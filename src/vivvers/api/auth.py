"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.config import get_settings
from vivvers.database import get_db
from vivvers.errors import NotLoggedInError
from vivvers.models.user import User
from vivvers.schemas.user import CurrentSession, UserResponse
from vivvers.services.base import APIError
from vivvers.services.supabase_auth import SupabaseAuthClient, get_auth_client
from vivvers.utils.security import SessionIdentity

logger = logging.getLogger(__name__)

AUTH_CODE_ERROR_PATH = "/auth/auth-code-error"

router = APIRouter(prefix="/auth", tags=["auth"])

# Mounted outside /api: the provider redirects the browser here
callback_router = APIRouter(prefix="/auth", tags=["auth"])


def safe_next_path(next_path: str | None) -> str:
    """Only same-site relative paths may be redirected to after sign-in."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return "/"
    return next_path


@callback_router.get("/callback")
async def auth_callback(
    request: Request,
    code: str | None = Query(None, description="OAuth authorization code"),
    next_path: str | None = Query(None, alias="next", description="Page to return to"),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> RedirectResponse:
    """Finish an OAuth sign-in.

    Exchanges the code for a session, marks first-time identities as not yet
    onboarded, and sets the session cookies on the redirect. Any failure
    sends the browser to the auth error page.
    """
    settings = get_settings()
    if not code:
        return RedirectResponse(AUTH_CODE_ERROR_PATH, status_code=303)

    code_verifier = request.cookies.get(settings.code_verifier_cookie_name)
    try:
        async with auth_client:
            session = await auth_client.exchange_code_for_session(code, code_verifier)
            if not session.user.profile_completed:
                await auth_client.update_user(session.access_token, {"profile_completed": False})
    except APIError as e:
        logger.warning("OAuth code exchange failed: %s", e)
        return RedirectResponse(AUTH_CODE_ERROR_PATH, status_code=303)

    response = RedirectResponse(safe_next_path(next_path), status_code=303)
    cookie_options = {
        "httponly": True,
        "secure": settings.session_cookie_secure,
        "samesite": "lax",
        "path": "/",
    }
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        max_age=session.expires_in,
        **cookie_options,
    )
    response.set_cookie(settings.refresh_cookie_name, session.refresh_token, **cookie_options)
    response.delete_cookie(settings.code_verifier_cookie_name, path="/")
    return response


@router.get("/me", response_model=CurrentSession)
async def get_current_session(
    identity: SessionIdentity,
    db: AsyncSession = Depends(get_db),
) -> CurrentSession:
    """Get the caller's identity and stored profile.

    ``user`` is null until onboarding has created the record.

    Raises:
        NotLoggedInError: If the request carries no valid session
    """
    if identity is None:
        raise NotLoggedInError()

    result = await db.execute(select(User).where(User.id == identity.id))
    user = result.scalar_one_or_none()

    return CurrentSession(
        id=identity.id,
        email=identity.email,
        email_verified=identity.email_verified,
        profile_completed=identity.profile_completed,
        user=UserResponse.model_validate(user) if user else None,
    )
