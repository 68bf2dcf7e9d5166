"""Project comment API endpoints."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vivvers.database import get_db
from vivvers.errors import ResourceNotFoundError, ValidationFailedError
from vivvers.models.comment import ProjectComment, ProjectCommentLike
from vivvers.models.project import Project
from vivvers.models.user import utcnow
from vivvers.schemas.comment import (
    CommentCreate,
    CommentDeleteResponse,
    CommentListResponse,
    CommentResponse,
    CommentSort,
    CommentUpdate,
)
from vivvers.schemas.common import Pagination
from vivvers.schemas.project import LikeToggleResponse
from vivvers.schemas.user import UserSummary
from vivvers.services.likes import COMMENT_NOT_FOUND, get_liked_comment_ids, toggle_comment_like
from vivvers.utils.security import CurrentUser, OptionalUser, require_owner

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comments"])

PREVIEW_REPLIES = 3


def comment_to_response(
    comment: ProjectComment,
    liked_ids: set[str],
    replies: list[ProjectComment] | None = None,
) -> CommentResponse:
    """Convert a ProjectComment model to CommentResponse schema.

    Requires comment.author to be loaded.
    """
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        project_id=comment.project_id,
        author_id=comment.author_id,
        parent_id=comment.parent_id,
        like_count=comment.like_count,
        replies_count=comment.replies_count,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        author=UserSummary.model_validate(comment.author),
        is_liked=comment.id in liked_ids,
        replies=[comment_to_response(reply, liked_ids) for reply in replies or []],
    )


async def get_comment_or_404(db: AsyncSession, comment_id: str) -> ProjectComment:
    result = await db.execute(
        select(ProjectComment)
        .where(ProjectComment.id == comment_id)
        .options(selectinload(ProjectComment.author))
        .execution_options(populate_existing=True)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise ResourceNotFoundError(COMMENT_NOT_FOUND)
    return comment


async def load_reply_previews(
    db: AsyncSession, parent_ids: list[str]
) -> dict[str, list[ProjectComment]]:
    """The oldest few replies of each parent, keyed by parent id."""
    if not parent_ids:
        return {}

    position = (
        func.row_number()
        .over(partition_by=ProjectComment.parent_id, order_by=ProjectComment.created_at)
        .label("position")
    )
    ranked = (
        select(ProjectComment.id, position)
        .where(ProjectComment.parent_id.in_(parent_ids))
        .subquery()
    )
    result = await db.execute(
        select(ProjectComment)
        .join(ranked, ranked.c.id == ProjectComment.id)
        .where(ranked.c.position <= PREVIEW_REPLIES)
        .options(selectinload(ProjectComment.author))
        .order_by(ProjectComment.created_at)
    )

    previews: dict[str, list[ProjectComment]] = {parent_id: [] for parent_id in parent_ids}
    for reply in result.scalars().all():
        previews[reply.parent_id].append(reply)
    return previews


def order_comments(sort: CommentSort):
    if sort == CommentSort.OLDEST:
        return (ProjectComment.created_at.asc(),)
    if sort == CommentSort.MOST_LIKED:
        return (ProjectComment.like_count.desc(), ProjectComment.created_at.desc())
    return (ProjectComment.created_at.desc(),)


@router.get("/projects/{project_id}/comments", response_model=CommentListResponse)
async def list_comments(
    project_id: str,
    current_user: OptionalUser,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=50, description="Items per page"),
    sort: CommentSort = Query(CommentSort.LATEST, description="Sort order"),
    parent_id: str | None = Query(None, description="List replies of this comment instead"),
    db: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    """List a project's top-level comments, or the replies to one comment.

    Top-level comments come with their first few replies preloaded.
    """
    exists = await db.execute(select(Project.id).where(Project.id == project_id))
    if exists.scalar_one_or_none() is None:
        raise ResourceNotFoundError("존재하지 않는 프로젝트입니다")

    base_query = select(ProjectComment).where(ProjectComment.project_id == project_id)
    if parent_id is None:
        base_query = base_query.where(ProjectComment.parent_id.is_(None))
    else:
        base_query = base_query.where(ProjectComment.parent_id == parent_id)

    count_query = select(func.count()).select_from(base_query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    results = await db.execute(
        base_query.options(selectinload(ProjectComment.author))
        .order_by(*order_comments(sort))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    comments = list(results.scalars().all())

    previews: dict[str, list[ProjectComment]] = {}
    if parent_id is None:
        previews = await load_reply_previews(db, [c.id for c in comments if c.replies_count])

    all_ids = [c.id for c in comments] + [r.id for replies in previews.values() for r in replies]
    liked_ids = await get_liked_comment_ids(
        db, all_ids, current_user.id if current_user else None
    )

    return CommentListResponse(
        comments=[
            comment_to_response(comment, liked_ids, previews.get(comment.id))
            for comment in comments
        ],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("/projects/{project_id}/comments", response_model=CommentResponse, status_code=201)
async def create_comment(
    project_id: str,
    current_user: CurrentUser,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """Comment on a project, or reply to a top-level comment.

    Replies must target a comment of the same project, and replies cannot
    themselves be replied to.
    """
    exists = await db.execute(select(Project.id).where(Project.id == project_id))
    if exists.scalar_one_or_none() is None:
        raise ResourceNotFoundError("존재하지 않는 프로젝트입니다")

    if comment_data.parent_id is not None:
        result = await db.execute(
            select(ProjectComment).where(ProjectComment.id == comment_data.parent_id)
        )
        parent = result.scalar_one_or_none()
        if parent is None:
            raise ResourceNotFoundError("존재하지 않는 댓글입니다")
        if parent.project_id != project_id:
            raise ValidationFailedError("잘못된 댓글 요청입니다")
        if parent.parent_id is not None:
            raise ValidationFailedError("답글에는 답글을 달 수 없습니다")

    now = utcnow()
    comment = ProjectComment(
        id=str(uuid.uuid4()),
        project_id=project_id,
        author_id=current_user.id,
        parent_id=comment_data.parent_id,
        content=comment_data.content,
        like_count=0,
        replies_count=0,
        created_at=now,
        updated_at=now,
    )
    db.add(comment)
    await db.flush()

    if comment_data.parent_id is not None:
        await db.execute(
            update(ProjectComment)
            .where(ProjectComment.id == comment_data.parent_id)
            .values(replies_count=ProjectComment.replies_count + 1)
        )

    comment = await get_comment_or_404(db, comment.id)
    return comment_to_response(comment, set())


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    current_user: CurrentUser,
    comment_data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """Edit a comment. Only its author may do so."""
    comment = await get_comment_or_404(db, comment_id)
    require_owner(comment.author_id, current_user, "댓글을 수정할 권한이 없습니다")

    if comment.content == comment_data.content:
        raise ValidationFailedError("변경된 내용이 없습니다")

    comment.content = comment_data.content
    comment.updated_at = utcnow()
    await db.flush()

    liked_ids = await get_liked_comment_ids(db, [comment.id], current_user.id)
    return comment_to_response(comment, liked_ids)


@router.delete("/comments/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment(
    comment_id: str,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> CommentDeleteResponse:
    """Delete a comment with its replies and their likes.

    Only its author may do so. Deleting a reply lowers its parent's reply
    count.
    """
    comment = await get_comment_or_404(db, comment_id)
    require_owner(comment.author_id, current_user, "댓글을 삭제할 권한이 없습니다")

    replies = await db.execute(
        select(ProjectComment.id).where(ProjectComment.parent_id == comment_id)
    )
    reply_ids = list(replies.scalars())
    doomed = [*reply_ids, comment_id]

    await db.execute(delete(ProjectCommentLike).where(ProjectCommentLike.comment_id.in_(doomed)))
    await db.execute(delete(ProjectComment).where(ProjectComment.parent_id == comment_id))
    await db.execute(delete(ProjectComment).where(ProjectComment.id == comment_id))

    if comment.parent_id is not None:
        await db.execute(
            update(ProjectComment)
            .where(ProjectComment.id == comment.parent_id, ProjectComment.replies_count > 0)
            .values(replies_count=ProjectComment.replies_count - 1)
        )

    logger.info("User %s deleted comment %s", current_user.username, comment_id)
    return CommentDeleteResponse(deleted_id=comment_id, deleted_count=len(doomed))


@router.post("/comments/{comment_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    comment_id: str,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> LikeToggleResponse:
    """Like or unlike a comment and return the authoritative state."""
    state = await toggle_comment_like(db, comment_id, current_user.id)
    return LikeToggleResponse(is_liked=state.is_liked, like_count=state.like_count)
