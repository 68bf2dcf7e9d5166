"""Pydantic schemas for user profile endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from vivvers.models.user import UserRole, UserStatus
from vivvers.schemas.validators import (
    validate_max_length,
    validate_optional_url,
    validate_username,
)


class UserCreate(BaseModel):
    """Onboarding form: creates the profile for the signed-in identity."""

    username: str = Field(description="Unique username (3-20 characters)")
    email: EmailStr = Field(description="Valid email address")
    bio: str | None = Field(default=None, description="Short self introduction")
    avatar: str | None = Field(default=None, description="Avatar URL")

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return validate_username(v)

    @field_validator("bio")
    @classmethod
    def check_bio(cls, v: str | None) -> str | None:
        return validate_max_length(v, 500, "자기소개는 최대 500자까지 가능합니다")

    @field_validator("avatar")
    @classmethod
    def check_avatar(cls, v: str | None) -> str | None:
        return validate_optional_url(v)


class SocialLinks(BaseModel):
    github: str | None = None
    linkedin: str | None = None
    portfolio: str | None = None

    @field_validator("github")
    @classmethod
    def check_github(cls, v: str | None) -> str | None:
        return validate_optional_url(v, "GitHub URL이 올바르지 않습니다")

    @field_validator("linkedin")
    @classmethod
    def check_linkedin(cls, v: str | None) -> str | None:
        return validate_optional_url(v, "LinkedIn URL이 올바르지 않습니다")

    @field_validator("portfolio")
    @classmethod
    def check_portfolio(cls, v: str | None) -> str | None:
        return validate_optional_url(v, "포트폴리오 URL이 올바르지 않습니다")


class UserUpdate(BaseModel):
    """Profile edit form. Omitted fields are left unchanged."""

    username: str | None = None
    bio: str | None = None
    avatar: str | None = None
    social_links: SocialLinks | None = None
    skills: list[str] | None = None
    experience: str | None = None
    is_public: bool | None = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_username(v)

    @field_validator("bio")
    @classmethod
    def check_bio(cls, v: str | None) -> str | None:
        return validate_max_length(v, 500, "자기소개는 최대 500자까지 가능합니다")

    @field_validator("avatar")
    @classmethod
    def check_avatar(cls, v: str | None) -> str | None:
        return validate_optional_url(v)

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if len(v) > 20:
            raise ValueError("스킬은 최대 20개까지 입력 가능합니다")
        if any(len(skill) < 1 for skill in v):
            raise ValueError("스킬은 최소 1글자 이상이어야 합니다")
        return v

    @field_validator("experience")
    @classmethod
    def check_experience(cls, v: str | None) -> str | None:
        return validate_max_length(v, 1000, "경력은 최대 1000자까지 입력 가능합니다")


class UserSummary(BaseModel):
    """Minimal user info for authorship display."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="User ID")
    username: str = Field(description="Username")
    avatar_url: str | None = Field(default=None, description="Avatar URL")


class UserResponse(BaseModel):
    """Full profile of the signed-in user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    avatar_url: str | None
    bio: str | None
    social_links: dict[str, Any] | None
    skills: list[str]
    experience: str | None
    is_public: bool
    role: UserRole
    status: UserStatus
    verified: bool
    created_at: datetime
    updated_at: datetime


class UserStats(BaseModel):
    project_count: int = Field(description="Projects authored")
    total_likes: int = Field(description="Likes received across all projects")


class PublicProfile(BaseModel):
    """Profile as seen by other users."""

    id: str
    username: str
    avatar_url: str | None
    bio: str | None
    social_links: dict[str, Any] | None
    skills: list[str]
    experience: str | None
    verified: bool
    created_at: datetime
    stats: UserStats


class CurrentSession(BaseModel):
    """Identity plus the stored record, if onboarding has happened."""

    id: str
    email: str | None
    email_verified: bool
    profile_completed: bool
    user: UserResponse | None


class AvatarResponse(BaseModel):
    success: bool = True
    avatar_url: str
