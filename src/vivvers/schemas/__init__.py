"""Pydantic schemas for request/response validation."""

from vivvers.schemas.admin import (
    AdminDashboard,
    AdminNotesUpdate,
    AdminProject,
    AdminUser,
    ProjectFeaturedUpdate,
    UserRoleUpdate,
    UserStatsSummary,
    UserStatusUpdate,
    UserVerificationUpdate,
)
from vivvers.schemas.comment import (
    CommentCreate,
    CommentDeleteResponse,
    CommentListResponse,
    CommentResponse,
    CommentSort,
    CommentUpdate,
)
from vivvers.schemas.common import ActionResponse, ErrorResponse, FieldError, Pagination
from vivvers.schemas.external import AuthIdentity, AuthSession, StorageObject
from vivvers.schemas.project import (
    PROJECT_CATEGORIES,
    LikeStatusResponse,
    LikeToggleResponse,
    ProjectCreate,
    ProjectDetail,
    ProjectListResponse,
    ProjectSort,
    ProjectSummary,
    ProjectUpdate,
)
from vivvers.schemas.tag import TagSearchResponse, TagSuggestion, TagUsage
from vivvers.schemas.user import (
    PublicProfile,
    UserCreate,
    UserResponse,
    UserSummary,
    UserUpdate,
)

__all__ = [
    # Shared
    "ActionResponse",
    "ErrorResponse",
    "FieldError",
    "Pagination",
    # Provider payloads
    "AuthIdentity",
    "AuthSession",
    "StorageObject",
    # User schemas
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserSummary",
    "PublicProfile",
    # Project schemas
    "PROJECT_CATEGORIES",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectSort",
    "ProjectSummary",
    "ProjectDetail",
    "ProjectListResponse",
    "LikeToggleResponse",
    "LikeStatusResponse",
    # Comment schemas
    "CommentCreate",
    "CommentUpdate",
    "CommentSort",
    "CommentResponse",
    "CommentListResponse",
    "CommentDeleteResponse",
    # Tag schemas
    "TagUsage",
    "TagSearchResponse",
    "TagSuggestion",
    # Admin schemas
    "AdminUser",
    "AdminProject",
    "AdminDashboard",
    "UserStatsSummary",
    "UserStatusUpdate",
    "UserRoleUpdate",
    "UserVerificationUpdate",
    "AdminNotesUpdate",
    "ProjectFeaturedUpdate",
]
