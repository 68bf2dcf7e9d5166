"""Admin dashboard and moderation endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vivvers.api.projects import purge_project
from vivvers.config import get_settings
from vivvers.database import get_db
from vivvers.errors import AuthorizationError, ResourceNotFoundError, redirect_for_error
from vivvers.models.comment import ProjectComment
from vivvers.models.project import Project
from vivvers.models.user import UserRole, UserStatus, utcnow
from vivvers.schemas.admin import (
    AdminDashboard,
    AdminNotesUpdate,
    AdminProject,
    ProjectFeaturedUpdate,
    UserRoleUpdate,
    UserStatsSummary,
    UserStatusUpdate,
    UserVerificationUpdate,
)
from vivvers.schemas.admin import AdminUser as AdminUserRow
from vivvers.schemas.common import ActionResponse
from vivvers.services.admin import AdminUserService, UserFilters
from vivvers.services.likes import PROJECT_NOT_FOUND
from vivvers.utils.security import (
    AdminOnlyUser,
    AdminUser,
    OptionalUser,
    require_admin_permission,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

# Page route: failures redirect instead of returning an error body
page_router = APIRouter(tags=["admin"])

RECENT_USERS = 5


@page_router.get("/admin", response_model=AdminDashboard)
async def admin_dashboard(
    request: Request,
    current_user: OptionalUser,
    db: AsyncSession = Depends(get_db),
) -> AdminDashboard | RedirectResponse:
    """Dashboard summary for staff.

    Signed-out callers are redirected to sign-in and non-staff callers to
    the unauthorized page.
    """
    settings = get_settings()
    try:
        viewer = require_admin_permission(current_user)
    except AuthorizationError as e:
        target = redirect_for_error(
            e,
            next_path=request.url.path,
            signin_path=settings.signin_path,
            unauthorized_path=settings.unauthorized_path,
        )
        return RedirectResponse(target, status_code=303)

    service = AdminUserService(db)
    return AdminDashboard(
        viewer=viewer.username,
        role=viewer.role,
        stats=await service.get_user_stats(),
        recent_users=await service.get_users(UserFilters(limit=RECENT_USERS)),
    )


@router.get("/stats", response_model=UserStatsSummary)
async def get_stats(
    current_user: AdminUser,  # noqa: ARG001 - Required for permission enforcement
    db: AsyncSession = Depends(get_db),
) -> UserStatsSummary:
    """User totals for the dashboard cards."""
    return await AdminUserService(db).get_user_stats()


@router.get("/users", response_model=list[AdminUserRow])
async def list_users(
    current_user: AdminUser,  # noqa: ARG001 - Required for permission enforcement
    search: str | None = Query(None, description="Match username or email"),
    role: UserRole | None = Query(None, description="Filter by role"),
    status: UserStatus | None = Query(None, description="Filter by status"),
    verified: bool | None = Query(None, description="Filter by verification"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of users"),
    offset: int = Query(0, ge=0, description="Number of users to skip"),
    db: AsyncSession = Depends(get_db),
) -> list[AdminUserRow]:
    """List users for moderation, newest first."""
    filters = UserFilters(
        search=search,
        role=role,
        status=status,
        verified=verified,
        limit=limit,
        offset=offset,
    )
    return await AdminUserService(db).get_users(filters)


@router.patch("/users/{user_id}/status", response_model=ActionResponse)
async def update_user_status(
    user_id: str,
    current_user: AdminUser,
    body: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Suspend or reinstate a user."""
    await AdminUserService(db).update_user_status(current_user, user_id, body.status)
    return ActionResponse(message="사용자 상태가 변경되었습니다")


@router.patch("/users/{user_id}/role", response_model=ActionResponse)
async def update_user_role(
    user_id: str,
    current_user: AdminOnlyUser,
    body: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Change a user's role. Admins only."""
    await AdminUserService(db).update_user_role(current_user, user_id, body.role)
    return ActionResponse(message="사용자 역할이 변경되었습니다")


@router.patch("/users/{user_id}/verification", response_model=ActionResponse)
async def update_user_verification(
    user_id: str,
    current_user: AdminUser,  # noqa: ARG001 - Required for permission enforcement
    body: UserVerificationUpdate,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Mark a user as verified or not."""
    await AdminUserService(db).update_user_verification(user_id, body.verified)
    return ActionResponse(message="사용자 인증 상태가 변경되었습니다")


@router.patch("/users/{user_id}/notes", response_model=ActionResponse)
async def update_admin_notes(
    user_id: str,
    current_user: AdminUser,  # noqa: ARG001 - Required for permission enforcement
    body: AdminNotesUpdate,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Replace the staff-only notes on a user."""
    await AdminUserService(db).update_admin_notes(user_id, body.admin_notes)
    return ActionResponse(message="관리자 메모가 업데이트되었습니다")


@router.get("/projects", response_model=list[AdminProject])
async def list_projects(
    current_user: AdminUser,  # noqa: ARG001 - Required for permission enforcement
    search: str | None = Query(None, description="Match title"),
    featured: bool | None = Query(None, description="Filter by featured flag"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of projects"),
    offset: int = Query(0, ge=0, description="Number of projects to skip"),
    db: AsyncSession = Depends(get_db),
) -> list[AdminProject]:
    """List projects for moderation, newest first."""
    comment_counts = (
        select(ProjectComment.project_id, func.count(ProjectComment.id).label("comment_count"))
        .group_by(ProjectComment.project_id)
        .subquery()
    )
    query = (
        select(Project, func.coalesce(comment_counts.c.comment_count, 0))
        .outerjoin(comment_counts, comment_counts.c.project_id == Project.id)
        .options(selectinload(Project.author))
    )
    if search:
        query = query.where(func.lower(Project.title).like(f"%{search.lower()}%"))
    if featured is not None:
        query = query.where(Project.featured == featured)

    result = await db.execute(query.order_by(Project.created_at.desc()).offset(offset).limit(limit))
    return [
        AdminProject(
            id=project.id,
            title=project.title,
            category=project.category,
            author_id=project.author_id,
            author_username=project.author.username,
            featured=project.featured,
            view_count=project.view_count,
            like_count=project.like_count,
            comment_count=comment_count,
            created_at=project.created_at,
        )
        for project, comment_count in result.all()
    ]


@router.patch("/projects/{project_id}/featured", response_model=ActionResponse)
async def set_project_featured(
    project_id: str,
    current_user: AdminUser,
    body: ProjectFeaturedUpdate,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Feature or unfeature a project."""
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if project is None:
        raise ResourceNotFoundError(PROJECT_NOT_FOUND)

    project.featured = body.featured
    project.updated_at = utcnow()
    logger.info(
        "%s set featured=%s on project %s", current_user.username, body.featured, project_id
    )
    return ActionResponse(message="추천 상태가 변경되었습니다")


@router.delete("/projects/{project_id}", response_model=ActionResponse)
async def remove_project(
    project_id: str,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Remove any user's project as a moderation action."""
    result = await db.execute(select(Project.id).where(Project.id == project_id))
    if result.scalar_one_or_none() is None:
        raise ResourceNotFoundError(PROJECT_NOT_FOUND)

    await purge_project(db, project_id)
    logger.info("%s removed project %s", current_user.username, project_id)
    return ActionResponse(message="프로젝트가 삭제되었습니다")
