"""User profile API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.api.projects import MAX_PAGE_SIZE, paginate_projects
from vivvers.config import get_settings
from vivvers.database import get_db
from vivvers.errors import ConflictError, NotLoggedInError, UserNotFoundError
from vivvers.models.project import Project
from vivvers.models.user import User, UserRole, UserStatus, utcnow
from vivvers.schemas.project import ProjectListResponse, ProjectSort
from vivvers.schemas.user import (
    AvatarResponse,
    PublicProfile,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from vivvers.services.base import APIError
from vivvers.services.storage import (
    SupabaseStorageClient,
    build_storage_path,
    generate_file_name,
    get_storage_client,
    validate_upload,
)
from vivvers.services.supabase_auth import SupabaseAuthClient, get_auth_client
from vivvers.services.users import get_user_by_username, get_user_stats, is_username_taken
from vivvers.utils.security import CurrentUser, OptionalUser, SessionIdentity
from vivvers.utils.session import get_session_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

USERNAME_TAKEN = "이미 사용 중인 사용자명입니다"

SessionToken = Annotated[str | None, Depends(get_session_token)]


async def sync_identity_metadata(
    auth_client: SupabaseAuthClient, token: str | None, data: dict
) -> None:
    """Mirror profile fields into the provider's user metadata.

    The stored record stays authoritative, so a failed sync is logged and
    otherwise ignored.
    """
    if not token:
        return
    try:
        async with auth_client:
            await auth_client.update_user(token, data)
    except APIError as e:
        logger.warning("Could not update identity metadata: %s", e)


@router.post("", response_model=UserResponse, status_code=201)
async def complete_onboarding(
    identity: SessionIdentity,
    token: SessionToken,
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> UserResponse:
    """Create (or fill in) the signed-in identity's profile.

    Marks the identity's profile as completed so page gating stops sending
    it to onboarding.

    Raises:
        NotLoggedInError: If the request carries no valid session
        ConflictError: If the username belongs to someone else
    """
    if identity is None:
        raise NotLoggedInError()

    if await is_username_taken(db, user_data.username, exclude_id=identity.id):
        raise ConflictError(USERNAME_TAKEN)

    result = await db.execute(select(User).where(User.id == identity.id))
    user = result.scalar_one_or_none()
    now = utcnow()

    if user is None:
        user = User(
            id=identity.id,
            username=user_data.username,
            email=str(user_data.email),
            bio=user_data.bio,
            avatar_url=user_data.avatar or None,
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
    else:
        user.username = user_data.username
        user.email = str(user_data.email)
        user.bio = user_data.bio
        if user_data.avatar:
            user.avatar_url = user_data.avatar
        user.updated_at = now

    await db.flush()
    await sync_identity_metadata(
        auth_client, token, {"profile_completed": True, "username": user.username}
    )

    logger.info("Onboarding completed for %s", user.username)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_my_profile(current_user: CurrentUser) -> UserResponse:
    """Get the signed-in user's profile, creating the record if needed."""
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    current_user: CurrentUser,
    token: SessionToken,
    user_data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> UserResponse:
    """Update the signed-in user's profile. Omitted fields are left unchanged.

    Raises:
        ConflictError: If the new username belongs to someone else
    """
    updates = user_data.model_dump(exclude_unset=True)
    username_changed = "username" in updates and updates["username"] != current_user.username

    if username_changed:
        if await is_username_taken(db, updates["username"], exclude_id=current_user.id):
            raise ConflictError(USERNAME_TAKEN)
        current_user.username = updates["username"]

    if "bio" in updates:
        current_user.bio = updates["bio"] or None
    if "avatar" in updates:
        current_user.avatar_url = updates["avatar"] or None
    if "social_links" in updates:
        current_user.social_links = updates["social_links"]
    if "skills" in updates and updates["skills"] is not None:
        current_user.skills = updates["skills"]
    if "experience" in updates:
        current_user.experience = updates["experience"] or None
    if updates.get("is_public") is not None:
        current_user.is_public = updates["is_public"]

    current_user.updated_at = utcnow()
    await db.flush()

    if username_changed:
        await sync_identity_metadata(auth_client, token, {"username": current_user.username})

    return UserResponse.model_validate(current_user)


@router.post("/me/avatar", response_model=AvatarResponse)
async def upload_avatar(
    current_user: CurrentUser,
    file: UploadFile = File(..., description="Avatar image"),
    storage: SupabaseStorageClient = Depends(get_storage_client),
    db: AsyncSession = Depends(get_db),
) -> AvatarResponse:
    """Replace the signed-in user's avatar.

    Previous avatar files are removed so each user keeps a single image.
    """
    settings = get_settings()
    bucket = settings.avatar_bucket
    content = await file.read()
    validate_upload(len(content), file.content_type)

    path = build_storage_path(current_user.id, generate_file_name(file.filename or "avatar"))
    async with storage:
        existing = await storage.list(bucket, prefix=current_user.id)
        stale = [build_storage_path(current_user.id, obj.name) for obj in existing]
        if stale:
            await storage.remove(bucket, stale)
        await storage.upload(bucket, path, content, file.content_type, upsert=True)

    current_user.avatar_url = storage.get_public_url(bucket, path)
    current_user.updated_at = utcnow()
    await db.flush()

    return AvatarResponse(avatar_url=current_user.avatar_url)


async def get_visible_user(db: AsyncSession, username: str, viewer: User | None) -> User:
    """Private profiles are only visible to their owner."""
    user = await get_user_by_username(db, username)
    if user is None:
        raise UserNotFoundError()
    if not user.is_public and (viewer is None or viewer.id != user.id):
        raise UserNotFoundError()
    return user


@router.get("/{username}", response_model=PublicProfile)
async def get_profile(
    username: str,
    viewer: OptionalUser,
    db: AsyncSession = Depends(get_db),
) -> PublicProfile:
    """Get a user's public profile with project and like totals."""
    user = await get_visible_user(db, username, viewer)
    stats = await get_user_stats(db, user.id)

    return PublicProfile(
        id=user.id,
        username=user.username,
        avatar_url=user.avatar_url,
        bio=user.bio,
        social_links=user.social_links,
        skills=user.skills or [],
        experience=user.experience,
        verified=user.verified,
        created_at=user.created_at,
        stats=stats,
    )


@router.get("/{username}/projects", response_model=ProjectListResponse)
async def list_user_projects(
    username: str,
    viewer: OptionalUser,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(12, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    sort: ProjectSort = Query(ProjectSort.LATEST, description="Sort order"),
    db: AsyncSession = Depends(get_db),
) -> ProjectListResponse:
    """List the projects a user has shared."""
    user = await get_visible_user(db, username, viewer)
    base_query = select(Project).where(Project.author_id == user.id)
    return await paginate_projects(db, base_query, sort, page, limit)
