"""User moderation queries for the admin dashboard."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.errors import InvalidUserActionError, UserNotFoundError
from vivvers.models.comment import ProjectComment
from vivvers.models.project import Project
from vivvers.models.user import User, UserRole, UserStatus, utcnow
from vivvers.schemas.admin import AdminUser, UserStatsSummary

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


@dataclass
class UserFilters:
    search: str | None = None
    role: UserRole | None = None
    status: UserStatus | None = None
    verified: bool | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def calculate_last_active(
    updated_at: datetime,
    latest_project_update: datetime | None,
    latest_comment: datetime | None,
) -> datetime:
    """Latest of the profile update, project update and comment times."""
    activities = [updated_at, latest_project_update, latest_comment]
    return max(_as_utc(moment) for moment in activities if moment is not None)


class AdminUserService:
    """Listing, statistics and moderation updates over user records."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_users(self, filters: UserFilters) -> list[AdminUser]:
        """List users newest first, with project counts and last activity."""
        project_stats = (
            select(
                Project.author_id.label("user_id"),
                func.count(Project.id).label("project_count"),
                func.max(Project.updated_at).label("latest_project"),
            )
            .group_by(Project.author_id)
            .subquery()
        )
        comment_stats = (
            select(
                ProjectComment.author_id.label("user_id"),
                func.max(ProjectComment.created_at).label("latest_comment"),
            )
            .group_by(ProjectComment.author_id)
            .subquery()
        )

        query = (
            select(
                User,
                func.coalesce(project_stats.c.project_count, 0),
                project_stats.c.latest_project,
                comment_stats.c.latest_comment,
            )
            .outerjoin(project_stats, project_stats.c.user_id == User.id)
            .outerjoin(comment_stats, comment_stats.c.user_id == User.id)
        )

        if filters.search:
            pattern = f"%{filters.search.lower()}%"
            query = query.where(
                or_(func.lower(User.username).like(pattern), func.lower(User.email).like(pattern))
            )
        if filters.role is not None:
            query = query.where(User.role == filters.role)
        if filters.status is not None:
            query = query.where(User.status == filters.status)
        if filters.verified is not None:
            query = query.where(User.verified == filters.verified)

        query = query.order_by(User.created_at.desc()).offset(filters.offset).limit(filters.limit)
        result = await self.db.execute(query)

        return [
            AdminUser(
                id=user.id,
                username=user.username,
                email=user.email,
                avatar=user.avatar_url or "",
                join_date=user.created_at,
                description=user.bio,
                project_count=project_count,
                role=user.role,
                status=user.status,
                verified=user.verified,
                last_active=user.last_active
                or calculate_last_active(user.updated_at, latest_project, latest_comment),
                admin_notes=user.admin_notes,
            )
            for user, project_count, latest_project, latest_comment in result.all()
        ]

    async def get_user_stats(self) -> UserStatsSummary:
        now = utcnow()
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        result = await self.db.execute(
            select(
                func.count(User.id),
                func.count(User.id).filter(User.status == UserStatus.ACTIVE),
                func.count(User.id).filter(User.created_at >= week_ago),
                func.count(User.id).filter(User.status == UserStatus.SUSPENDED),
                func.count(User.id).filter(User.last_active >= month_ago),
            )
        )
        total, active, new_this_week, suspended, monthly_active = result.one()
        return UserStatsSummary(
            total_users=total,
            active_users=active,
            new_users_this_week=new_this_week,
            suspended_users=suspended,
            monthly_active_users=monthly_active,
        )

    async def _get_user(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError()
        return user

    async def update_user_status(self, actor: User, user_id: str, status: UserStatus) -> User:
        if actor.id == user_id:
            raise InvalidUserActionError("자신의 상태는 변경할 수 없습니다")
        user = await self._get_user(user_id)
        user.status = status
        user.updated_at = utcnow()
        logger.info("%s set status of %s to %s", actor.username, user.username, status)
        return user

    async def update_user_role(self, actor: User, user_id: str, role: UserRole) -> User:
        if actor.id == user_id:
            raise InvalidUserActionError("자신의 역할은 변경할 수 없습니다")
        user = await self._get_user(user_id)
        user.role = role
        user.updated_at = utcnow()
        logger.info("%s set role of %s to %s", actor.username, user.username, role)
        return user

    async def update_user_verification(self, user_id: str, verified: bool) -> User:
        user = await self._get_user(user_id)
        user.verified = verified
        user.updated_at = utcnow()
        return user

    async def update_admin_notes(self, user_id: str, admin_notes: str) -> User:
        user = await self._get_user(user_id)
        user.admin_notes = admin_notes
        user.updated_at = utcnow()
        return user
