"""Project API endpoints."""

import logging
import uuid

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from vivvers.config import get_settings
from vivvers.database import get_db
from vivvers.errors import ResourceNotFoundError
from vivvers.models.comment import ProjectComment, ProjectCommentLike
from vivvers.models.project import Project, ProjectLike, ProjectTag, ProjectTechStack
from vivvers.models.tag import Tag
from vivvers.models.user import utcnow
from vivvers.schemas.common import ActionResponse, Pagination
from vivvers.schemas.project import (
    LikedUsersResponse,
    LikeStatusResponse,
    LikeToggleResponse,
    ProjectCreate,
    ProjectCreateResponse,
    ProjectDetail,
    ProjectListResponse,
    ProjectSort,
    ProjectSummary,
    ProjectUpdate,
    ScreenshotUploadResponse,
    TagResponse,
)
from vivvers.schemas.user import UserSummary
from vivvers.services.likes import (
    PROJECT_NOT_FOUND,
    get_project_like_state,
    list_project_likers,
    toggle_project_like,
)
from vivvers.services.storage import (
    SupabaseStorageClient,
    build_storage_path,
    generate_file_name,
    get_storage_client,
    validate_upload,
)
from vivvers.services.tags import replace_project_tags
from vivvers.utils.security import CurrentUser, OptionalUser, require_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

MAX_PAGE_SIZE = 50


def with_project_relations(query: Select) -> Select:
    """Eager-load everything the project serializers read."""
    return query.options(
        selectinload(Project.author),
        selectinload(Project.project_tags).selectinload(ProjectTag.tag),
        selectinload(Project.project_tech_stacks).selectinload(ProjectTechStack.tag),
    )


def project_to_summary(project: Project) -> ProjectSummary:
    """Convert a Project model to ProjectSummary schema.

    Requires author and tag relations to be loaded.
    """
    return ProjectSummary(
        id=project.id,
        title=project.title,
        excerpt=project.excerpt,
        category=project.category,
        images=project.images or [],
        demo_url=project.demo_url,
        github_url=project.github_url,
        featured=project.featured,
        view_count=project.view_count,
        like_count=project.like_count,
        author=UserSummary.model_validate(project.author),
        tags=[TagResponse.model_validate(pt.tag) for pt in project.project_tags],
        tech_stack=[TagResponse.model_validate(pt.tag) for pt in project.project_tech_stacks],
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def project_to_detail(project: Project, is_liked: bool, is_owner: bool) -> ProjectDetail:
    return ProjectDetail(
        **project_to_summary(project).model_dump(),
        description=project.excerpt,
        full_description=project.description or None,
        full_description_json=project.full_description_json,
        full_description_html=project.full_description_html,
        features=project.features or [],
        is_liked=is_liked,
        is_owner=is_owner,
    )


async def get_project_or_404(db: AsyncSession, project_id: str, refresh: bool = False) -> Project:
    query = with_project_relations(select(Project).where(Project.id == project_id))
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    project = result.scalar_one_or_none()
    if project is None:
        raise ResourceNotFoundError(PROJECT_NOT_FOUND)
    return project


async def purge_project(db: AsyncSession, project_id: str) -> None:
    """Delete a project and every row that references it."""
    comment_ids = select(ProjectComment.id).where(ProjectComment.project_id == project_id)
    await db.execute(
        delete(ProjectCommentLike).where(ProjectCommentLike.comment_id.in_(comment_ids))
    )
    await db.execute(delete(ProjectComment).where(ProjectComment.project_id == project_id))
    await db.execute(delete(ProjectLike).where(ProjectLike.project_id == project_id))
    await db.execute(delete(ProjectTag).where(ProjectTag.project_id == project_id))
    await db.execute(delete(ProjectTechStack).where(ProjectTechStack.project_id == project_id))
    await db.execute(delete(Project).where(Project.id == project_id))


def order_projects(query: Select, sort: ProjectSort) -> Select:
    if sort == ProjectSort.POPULAR:
        return query.order_by(
            Project.like_count.desc(), Project.view_count.desc(), Project.created_at.desc()
        )
    if sort == ProjectSort.UPDATED:
        return query.order_by(Project.updated_at.desc())
    return query.order_by(Project.created_at.desc())


async def paginate_projects(
    db: AsyncSession, base_query: Select, sort: ProjectSort, page: int, limit: int
) -> ProjectListResponse:
    count_query = select(func.count()).select_from(base_query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    results_query = with_project_relations(order_projects(base_query, sort))
    results = await db.execute(results_query.offset((page - 1) * limit).limit(limit))
    projects = results.scalars().all()

    return ProjectListResponse(
        projects=[project_to_summary(project) for project in projects],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(12, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    category: str | None = Query(None, description="Filter by category"),
    tags: str | None = Query(None, description="Comma-separated tag names; any may match"),
    search: str | None = Query(None, description="Search in title and summary"),
    featured: bool | None = Query(None, description="Only featured (or non-featured) projects"),
    sort: ProjectSort = Query(ProjectSort.LATEST, description="Sort order"),
    db: AsyncSession = Depends(get_db),
) -> ProjectListResponse:
    """List projects with filters and pagination."""
    base_query = select(Project)

    if category:
        base_query = base_query.where(Project.category == category)

    if tags:
        names = [name.strip().lower() for name in tags.split(",") if name.strip()]
        if names:
            base_query = base_query.where(
                Project.project_tags.any(ProjectTag.tag.has(Tag.name.in_(names)))
            )

    if search:
        pattern = f"%{search.strip().lower()}%"
        base_query = base_query.where(
            or_(func.lower(Project.title).like(pattern), func.lower(Project.excerpt).like(pattern))
        )

    if featured is not None:
        base_query = base_query.where(Project.featured == featured)

    return await paginate_projects(db, base_query, sort, page, limit)


@router.post("", response_model=ProjectCreateResponse, status_code=201)
async def create_project(
    current_user: CurrentUser,
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
) -> ProjectCreateResponse:
    """Create a project with its tags and tech stack.

    Tags that do not exist yet are created in the same transaction.
    Requires authentication.
    """
    now = utcnow()
    project = Project(
        id=str(uuid.uuid4()),
        author_id=current_user.id,
        title=project_data.title,
        excerpt=project_data.description,
        description=project_data.full_description or "",
        full_description_json=project_data.description_json(),
        full_description_html=project_data.full_description_html,
        category=project_data.category,
        images=project_data.screenshots,
        demo_url=project_data.demo_url or None,
        github_url=project_data.github_url or None,
        features=project_data.features,
        featured=False,
        view_count=0,
        like_count=0,
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    await db.flush()

    await replace_project_tags(db, project, project_data.tags, project_data.tech_stack)

    logger.info("User %s created project %s", current_user.username, project.id)
    return ProjectCreateResponse(
        project_id=project.id,
        message="프로젝트가 성공적으로 생성되었습니다",
    )


@router.post("/screenshots", response_model=ScreenshotUploadResponse, status_code=201)
async def upload_screenshot(
    current_user: CurrentUser,
    file: UploadFile = File(..., description="Screenshot image"),
    storage: SupabaseStorageClient = Depends(get_storage_client),
) -> ScreenshotUploadResponse:
    """Upload a project screenshot and return its public URL.

    Requires authentication.
    """
    settings = get_settings()
    content = await file.read()
    validate_upload(len(content), file.content_type)

    path = build_storage_path(current_user.id, generate_file_name(file.filename or "screenshot"))
    async with storage:
        await storage.upload(settings.screenshot_bucket, path, content, file.content_type)

    return ScreenshotUploadResponse(
        url=storage.get_public_url(settings.screenshot_bucket, path),
        path=path,
    )


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: str,
    current_user: OptionalUser,
    db: AsyncSession = Depends(get_db),
) -> ProjectDetail:
    """Get a project's full page. Each call counts as one view."""
    await db.execute(
        update(Project)
        .where(Project.id == project_id)
        .values(view_count=Project.view_count + 1)
    )
    project = await get_project_or_404(db, project_id, refresh=True)

    user_id = current_user.id if current_user else None
    like_state = await get_project_like_state(db, project_id, user_id)

    return project_to_detail(
        project,
        is_liked=like_state.is_liked,
        is_owner=user_id == project.author_id,
    )


@router.get("/{project_id}/related", response_model=list[ProjectSummary])
async def get_related_projects(
    project_id: str,
    limit: int = Query(4, ge=1, le=12, description="Number of projects"),
    db: AsyncSession = Depends(get_db),
) -> list[ProjectSummary]:
    """Other projects in the same category, most liked first."""
    result = await db.execute(select(Project.category).where(Project.id == project_id))
    category = result.scalar_one_or_none()
    if category is None:
        raise ResourceNotFoundError(PROJECT_NOT_FOUND)

    query = with_project_relations(
        select(Project)
        .where(Project.category == category, Project.id != project_id)
        .order_by(Project.like_count.desc(), Project.created_at.desc())
        .limit(limit)
    )
    results = await db.execute(query)
    return [project_to_summary(project) for project in results.scalars().all()]


@router.patch("/{project_id}", response_model=ProjectDetail)
async def update_project(
    project_id: str,
    current_user: CurrentUser,
    project_data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
) -> ProjectDetail:
    """Update a project. Only its author may do so.

    Tag and tech-stack lists, when given, replace the existing relations.
    """
    project = await get_project_or_404(db, project_id)
    require_owner(project.author_id, current_user, "본인의 프로젝트만 수정할 수 있습니다")

    updates = project_data.model_dump(exclude_unset=True)
    field_map = {
        "title": "title",
        "description": "excerpt",
        "full_description_html": "full_description_html",
        "category": "category",
        "screenshots": "images",
        "features": "features",
    }
    for field, column in field_map.items():
        if field in updates and updates[field] is not None:
            setattr(project, column, updates[field])

    if "full_description" in updates:
        project.description = updates["full_description"] or ""
    if "full_description_json" in updates:
        project.full_description_json = project_data.description_json()
    if "demo_url" in updates:
        project.demo_url = updates["demo_url"] or None
    if "github_url" in updates:
        project.github_url = updates["github_url"] or None

    project.updated_at = utcnow()
    await replace_project_tags(db, project, project_data.tags, project_data.tech_stack)

    project = await get_project_or_404(db, project_id, refresh=True)
    like_state = await get_project_like_state(db, project_id, current_user.id)
    return project_to_detail(project, is_liked=like_state.is_liked, is_owner=True)


@router.delete("/{project_id}", response_model=ActionResponse)
async def delete_project(
    project_id: str,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Delete a project with its likes, comments and tag relations.

    Only its author may do so; staff use the admin moderation endpoint.
    """
    project = await get_project_or_404(db, project_id)
    require_owner(project.author_id, current_user, "본인의 프로젝트만 삭제할 수 있습니다")

    await purge_project(db, project_id)
    logger.info("User %s deleted project %s", current_user.username, project_id)
    return ActionResponse(message="프로젝트가 삭제되었습니다")


@router.post("/{project_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    project_id: str,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> LikeToggleResponse:
    """Like or unlike a project and return the authoritative state."""
    state = await toggle_project_like(db, project_id, current_user.id)
    return LikeToggleResponse(is_liked=state.is_liked, like_count=state.like_count)


@router.get("/{project_id}/like", response_model=LikeStatusResponse)
async def get_like_status(
    project_id: str,
    current_user: OptionalUser,
    db: AsyncSession = Depends(get_db),
) -> LikeStatusResponse:
    """Whether the caller liked the project, and its like count."""
    state = await get_project_like_state(db, project_id, current_user.id if current_user else None)
    return LikeStatusResponse(is_liked=state.is_liked, like_count=state.like_count)


@router.get("/{project_id}/likes", response_model=LikedUsersResponse)
async def list_likes(
    project_id: str,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    db: AsyncSession = Depends(get_db),
) -> LikedUsersResponse:
    """Users who liked a project, most recent first."""
    users, total = await list_project_likers(db, project_id, page, limit)
    return LikedUsersResponse(
        users=[UserSummary.model_validate(user) for user in users],
        pagination=Pagination.build(page, limit, total),
    )
