"""Like toggling for projects and comments.

A like toggle is a single transaction: the like row is inserted or deleted
and the target's denormalized ``like_count`` is recomputed from the like
rows, so the two can never disagree once the transaction commits.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.database import Base
from vivvers.errors import ResourceNotFoundError
from vivvers.models.comment import ProjectComment, ProjectCommentLike
from vivvers.models.project import Project, ProjectLike
from vivvers.models.user import User

logger = logging.getLogger(__name__)

PROJECT_NOT_FOUND = "프로젝트를 찾을 수 없습니다"
COMMENT_NOT_FOUND = "댓글을 찾을 수 없습니다"


@dataclass(frozen=True)
class LikeState:
    """Authoritative like state of one target for one user."""

    is_liked: bool
    like_count: int


async def _find_like_id(db: AsyncSession, like_model: type[Base], *like_filter) -> str | None:
    existing = await db.execute(select(like_model.id).where(*like_filter))
    return existing.scalar_one_or_none()


async def _toggle_like(
    db: AsyncSession,
    *,
    target_model: type[Base],
    like_model: type[Base],
    target_column: str,
    target_id: str,
    user_id: str,
    not_found_message: str,
) -> LikeState:
    target_key = getattr(like_model, target_column)

    exists = await db.execute(select(target_model.id).where(target_model.id == target_id))
    if exists.scalar_one_or_none() is None:
        raise ResourceNotFoundError(not_found_message)

    like_filter = (like_model.user_id == user_id, target_key == target_id)

    if await _find_like_id(db, like_model, *like_filter) is not None:
        await db.execute(delete(like_model).where(*like_filter))
        is_liked = False
    else:
        # Savepoint so losing the insert race discards only the like row
        try:
            async with db.begin_nested():
                db.add(
                    like_model(id=str(uuid.uuid4()), user_id=user_id, **{target_column: target_id})
                )
        except IntegrityError:
            # A concurrent request liked it first; that like stands
            logger.info("Duplicate like by %s on %s ignored", user_id, target_id)
        is_liked = True

    like_total = (
        select(func.count()).select_from(like_model).where(target_key == target_id)
    ).scalar_subquery()
    await db.execute(
        update(target_model).where(target_model.id == target_id).values(like_count=like_total)
    )

    result = await db.execute(select(target_model.like_count).where(target_model.id == target_id))
    state = LikeState(is_liked=is_liked, like_count=result.scalar_one())
    logger.debug("Like toggled on %s by %s: %s", target_id, user_id, state)
    return state


async def toggle_project_like(db: AsyncSession, project_id: str, user_id: str) -> LikeState:
    """Like the project if the user has not, otherwise remove the like.

    Raises:
        ResourceNotFoundError: If the project does not exist
    """
    return await _toggle_like(
        db,
        target_model=Project,
        like_model=ProjectLike,
        target_column="project_id",
        target_id=project_id,
        user_id=user_id,
        not_found_message=PROJECT_NOT_FOUND,
    )


async def toggle_comment_like(db: AsyncSession, comment_id: str, user_id: str) -> LikeState:
    """Like the comment if the user has not, otherwise remove the like.

    Raises:
        ResourceNotFoundError: If the comment does not exist
    """
    return await _toggle_like(
        db,
        target_model=ProjectComment,
        like_model=ProjectCommentLike,
        target_column="comment_id",
        target_id=comment_id,
        user_id=user_id,
        not_found_message=COMMENT_NOT_FOUND,
    )


async def get_project_like_state(
    db: AsyncSession, project_id: str, user_id: str | None
) -> LikeState:
    result = await db.execute(select(Project.like_count).where(Project.id == project_id))
    like_count = result.scalar_one_or_none()
    if like_count is None:
        raise ResourceNotFoundError(PROJECT_NOT_FOUND)

    is_liked = False
    if user_id is not None:
        liked = await db.execute(
            select(ProjectLike.id).where(
                ProjectLike.project_id == project_id, ProjectLike.user_id == user_id
            )
        )
        is_liked = liked.scalar_one_or_none() is not None
    return LikeState(is_liked=is_liked, like_count=like_count)


async def get_liked_comment_ids(
    db: AsyncSession, comment_ids: list[str], user_id: str | None
) -> set[str]:
    """Which of ``comment_ids`` the user has liked."""
    if user_id is None or not comment_ids:
        return set()
    result = await db.execute(
        select(ProjectCommentLike.comment_id).where(
            ProjectCommentLike.user_id == user_id,
            ProjectCommentLike.comment_id.in_(comment_ids),
        )
    )
    return set(result.scalars().all())


async def list_project_likers(
    db: AsyncSession, project_id: str, page: int, limit: int
) -> tuple[list[User], int]:
    """Users who liked a project, most recent first, with the total count."""
    exists = await db.execute(select(Project.id).where(Project.id == project_id))
    if exists.scalar_one_or_none() is None:
        raise ResourceNotFoundError(PROJECT_NOT_FOUND)

    total_result = await db.execute(
        select(func.count()).select_from(ProjectLike).where(ProjectLike.project_id == project_id)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(User)
        .join(ProjectLike, ProjectLike.user_id == User.id)
        .where(ProjectLike.project_id == project_id)
        .order_by(ProjectLike.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
