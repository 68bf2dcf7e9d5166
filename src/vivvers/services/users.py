"""User record provisioning and profile lookups."""

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.models.project import Project
from vivvers.models.user import User, UserRole, UserStatus, utcnow
from vivvers.schemas.external import AuthIdentity
from vivvers.schemas.user import UserStats

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
_USERNAME_STRIP = re.compile(r"[^a-zA-Z0-9-]")


def derive_username(identity: AuthIdentity) -> str:
    """Pick a starting username for a new record.

    Uses the username from provider metadata, then the email local part,
    then a prefix of the identity id. The result always satisfies the
    username rules, but may already be taken.
    """
    candidates = [
        identity.user_metadata.get("username"),
        identity.email.split("@")[0] if identity.email else None,
    ]
    for candidate in candidates:
        if not isinstance(candidate, str):
            continue
        cleaned = _USERNAME_STRIP.sub("", candidate)[:USERNAME_MAX_LENGTH]
        if len(cleaned) >= USERNAME_MIN_LENGTH:
            return cleaned
    return f"user-{identity.id.replace('-', '')[:8]}"


async def unique_username(db: AsyncSession, base: str, user_id: str) -> str:
    """Return ``base`` or a suffixed variant no other user has claimed."""
    suffix = user_id.replace("-", "")
    candidate = base
    for length in (0, 4, 8, 12):
        if length:
            candidate = f"{base[: USERNAME_MAX_LENGTH - length - 1]}-{suffix[:length]}"
        result = await db.execute(
            select(User.id).where(User.username == candidate, User.id != user_id)
        )
        if result.scalar_one_or_none() is None:
            return candidate
    return f"user-{suffix[:12]}"


async def is_username_taken(db: AsyncSession, username: str, exclude_id: str | None = None) -> bool:
    query = select(User.id).where(User.username == username)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    result = await db.execute(query)
    return result.scalar_one_or_none() is not None


async def ensure_user_exists(db: AsyncSession, identity: AuthIdentity) -> User:
    """Return the stored record for an identity, creating it on first sight.

    Every authenticated request refreshes ``last_active``. A concurrent
    first request may create the record between our read and insert; the
    unique primary key rejects the duplicate and the winner's row is read
    back.
    """
    result = await db.execute(select(User).where(User.id == identity.id))
    user = result.scalar_one_or_none()

    if user is not None:
        user.last_active = utcnow()
        return user

    username = await unique_username(db, derive_username(identity), identity.id)
    now = utcnow()
    user = User(
        id=identity.id,
        username=username,
        email=identity.email or "",
        avatar_url=identity.user_metadata.get("avatar_url"),
        skills=[],
        is_public=True,
        role=UserRole.USER,
        status=UserStatus.ACTIVE,
        verified=False,
        last_active=now,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(select(User).where(User.id == identity.id))
        return result.scalar_one()

    logger.info("Created user record %s for identity %s", username, identity.id)
    return user


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_stats(db: AsyncSession, user_id: str) -> UserStats:
    """Count a user's projects and the likes they have received."""
    result = await db.execute(
        select(func.count(Project.id), func.coalesce(func.sum(Project.like_count), 0)).where(
            Project.author_id == user_id
        )
    )
    project_count, total_likes = result.one()
    return UserStats(project_count=project_count, total_likes=total_likes)
