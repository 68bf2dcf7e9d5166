"""Authentication and permission gate.

Every privileged operation runs through one of the checks below before it
touches data. The pure ``require_*`` functions take the already-resolved
user so they can be called from anywhere; the ``get_*`` dependencies wire
them into FastAPI routes.
"""

import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.config import get_settings
from vivvers.database import get_db
from vivvers.errors import (
    InsufficientPermissionError,
    NotAdminError,
    NotLoggedInError,
    NotModeratorError,
)
from vivvers.models.user import User, UserRole, UserStatus
from vivvers.schemas.external import AuthIdentity
from vivvers.services.supabase_auth import SupabaseAuthClient
from vivvers.services.users import ensure_user_exists
from vivvers.utils.session import get_session_token

logger = logging.getLogger(__name__)

STAFF_ROLES = (UserRole.ADMIN, UserRole.MODERATOR)


def require_admin_permission(user: User | None) -> User:
    """Allow admins and moderators.

    Raises:
        NotLoggedInError: If there is no signed-in user (checked first)
        NotAdminError: If the user is neither admin nor moderator
    """
    if user is None:
        raise NotLoggedInError()
    if user.role not in STAFF_ROLES:
        raise NotAdminError()
    return user


def require_specific_role(user: User | None, role: UserRole) -> User:
    """Require ``admin`` exactly, or ``moderator`` and above.

    Raises:
        NotLoggedInError: If there is no signed-in user
        NotAdminError: If ``role`` is admin and the user is not one
        NotModeratorError: If ``role`` is moderator and the user is a plain user
    """
    if user is None:
        raise NotLoggedInError()

    if role == UserRole.ADMIN:
        if user.role != UserRole.ADMIN:
            raise NotAdminError()
        return user

    if role == UserRole.MODERATOR:
        if user.role not in STAFF_ROLES:
            raise NotModeratorError()
        return user

    return user


def require_owner(owner_id: str, user: User, message: str | None = None) -> None:
    """Only the author may change a resource. Staff roles do not bypass this."""
    if owner_id != user.id:
        raise InsufficientPermissionError(message)


async def get_session_identity(
    token: Annotated[str | None, Depends(get_session_token)],
) -> AuthIdentity | None:
    """Resolve the caller's session to a provider identity.

    Missing, expired or rejected tokens mean "anonymous" rather than an
    error; each route decides whether it needs a user.
    """
    if not token:
        return None

    settings = get_settings()
    if not settings.auth_configured:
        logger.warning("Session token received but the auth provider is not configured")
        return None

    async with SupabaseAuthClient() as client:
        return await client.get_user_or_none(token)


SessionIdentity = Annotated[AuthIdentity | None, Depends(get_session_identity)]


async def get_current_user(
    identity: SessionIdentity,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Get the stored record for the caller, if signed in and onboarded."""
    if identity is None:
        return None
    result = await db.execute(select(User).where(User.id == identity.id))
    return result.scalar_one_or_none()


async def require_active_user(
    identity: SessionIdentity,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get the signed-in caller, provisioning their record if needed.

    Raises:
        NotLoggedInError: If the request carries no valid session
        InsufficientPermissionError: If the account is suspended
    """
    if identity is None:
        raise NotLoggedInError()

    user = await ensure_user_exists(db, identity)
    if user.status != UserStatus.ACTIVE:
        raise InsufficientPermissionError("정지된 계정입니다")
    return user


async def get_admin_user(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Dependency allowing admins and moderators."""
    return require_admin_permission(user)


async def get_admin_only_user(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Dependency allowing admins only."""
    return require_specific_role(user, UserRole.ADMIN)


# Type aliases for use in route dependencies
CurrentUser = Annotated[User, Depends(require_active_user)]
OptionalUser = Annotated[User | None, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]
AdminOnlyUser = Annotated[User, Depends(get_admin_only_user)]
