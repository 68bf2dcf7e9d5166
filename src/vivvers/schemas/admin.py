"""Pydantic schemas for the admin dashboard."""

from datetime import datetime

from pydantic import BaseModel, Field

from vivvers.models.user import UserRole, UserStatus


class AdminUser(BaseModel):
    """User row in the moderation table."""

    id: str
    username: str
    email: str
    avatar: str
    join_date: datetime
    description: str | None
    project_count: int
    role: UserRole
    status: UserStatus
    verified: bool
    last_active: datetime | None
    admin_notes: str | None
    report_count: int = 0


class UserStatsSummary(BaseModel):
    total_users: int
    active_users: int
    new_users_this_week: int
    suspended_users: int
    monthly_active_users: int


class AdminDashboard(BaseModel):
    viewer: str = Field(description="Username of the staff member viewing the dashboard")
    role: UserRole
    stats: UserStatsSummary
    recent_users: list[AdminUser]


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserVerificationUpdate(BaseModel):
    verified: bool


class AdminNotesUpdate(BaseModel):
    admin_notes: str = Field(max_length=2000)


class ProjectFeaturedUpdate(BaseModel):
    featured: bool


class AdminProject(BaseModel):
    id: str
    title: str
    category: str
    author_id: str
    author_username: str
    featured: bool
    view_count: int
    like_count: int
    comment_count: int
    created_at: datetime
