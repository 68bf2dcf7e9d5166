"""Pydantic schemas for project API endpoints."""

import json
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vivvers.schemas.common import Pagination
from vivvers.schemas.user import UserSummary
from vivvers.schemas.validators import validate_max_length, validate_optional_url, validate_url
from vivvers.utils.tags import tag_error

PROJECT_CATEGORIES: tuple[str, ...] = (
    "웹 개발",
    "모바일 앱",
    "AI/ML",
    "블록체인",
    "UI/UX",
    "게임",
    "데이터",
)

MAX_SCREENSHOTS = 10
MAX_TECH_STACK = 15
MAX_TECH_STACK_NAME_LENGTH = 50
MAX_FEATURES = 20
MAX_TAGS = 10


def validate_tag(value: str) -> str:
    """Check the raw tag, then store it lowercased."""
    message = tag_error(value)
    if message:
        raise ValueError(message)
    return value.lower()


class ProjectSort(StrEnum):
    LATEST = "latest"
    POPULAR = "popular"
    UPDATED = "updated"


class ProjectUpdate(BaseModel):
    """Editable project fields. Omitted fields are left unchanged."""

    title: str | None = Field(default=None, description="Project title (1-100 characters)")
    description: str | None = Field(default=None, description="One-line summary (1-200)")
    full_description: str | None = Field(default=None, description="Long description")
    full_description_json: str | None = Field(
        default=None, description="Editor state serialized as JSON"
    )
    full_description_html: str | None = Field(default=None, description="Rendered description")
    category: str | None = Field(default=None, description="One of PROJECT_CATEGORIES")
    screenshots: list[str] | None = Field(default=None, description="Screenshot URLs (1-10)")
    demo_url: str | None = Field(default=None, description="Live demo URL")
    github_url: str | None = Field(default=None, description="Repository URL")
    tech_stack: list[str] | None = Field(default=None, description="Technologies used")
    features: list[str] | None = Field(default=None, description="Key features")
    tags: list[str] | None = Field(default=None, description="Descriptive tags")

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 1:
            raise ValueError("제목을 입력하세요")
        return validate_max_length(v, 100, "제목은 최대 100자까지 가능합니다")

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 1:
            raise ValueError("간단한 설명을 입력하세요")
        return validate_max_length(v, 200, "설명은 최대 200자까지 가능합니다")

    @field_validator("full_description")
    @classmethod
    def check_full_description(cls, v: str | None) -> str | None:
        return validate_max_length(v, 5000, "상세 설명은 최대 5000자까지 가능합니다")

    @field_validator("full_description_json")
    @classmethod
    def check_full_description_json(cls, v: str | None) -> str | None:
        validate_max_length(v, 20000, "JSON 데이터가 너무 큽니다")
        if v:
            try:
                json.loads(v)
            except ValueError:
                raise ValueError("JSON 형식이 올바르지 않습니다") from None
        return v

    @field_validator("full_description_html")
    @classmethod
    def check_full_description_html(cls, v: str | None) -> str | None:
        return validate_max_length(v, 20000, "HTML 데이터가 너무 큽니다")

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v:
            raise ValueError("카테고리를 선택하세요")
        if v not in PROJECT_CATEGORIES:
            raise ValueError("유효한 카테고리를 선택하세요")
        return v

    @field_validator("screenshots")
    @classmethod
    def check_screenshots(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if len(v) < 1:
            raise ValueError("스크린샷을 최소 1개 이상 업로드하세요")
        if len(v) > MAX_SCREENSHOTS:
            raise ValueError(f"스크린샷은 최대 {MAX_SCREENSHOTS}개까지 가능합니다")
        return [validate_url(url) for url in v]

    @field_validator("demo_url", "github_url")
    @classmethod
    def check_links(cls, v: str | None) -> str | None:
        return validate_optional_url(v)

    @field_validator("tech_stack")
    @classmethod
    def check_tech_stack(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and len(v) > MAX_TECH_STACK:
            raise ValueError(f"기술 스택은 최대 {MAX_TECH_STACK}개까지 가능합니다")
        if v is not None and any(len(name.strip()) > MAX_TECH_STACK_NAME_LENGTH for name in v):
            raise ValueError(
                f"기술 스택 항목은 {MAX_TECH_STACK_NAME_LENGTH}자 이하로 입력하세요"
            )
        return v

    @field_validator("features")
    @classmethod
    def check_features(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and len(v) > MAX_FEATURES:
            raise ValueError(f"주요 기능은 최대 {MAX_FEATURES}개까지 가능합니다")
        return v

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if len(v) > MAX_TAGS:
            raise ValueError(f"태그는 최대 {MAX_TAGS}개까지 가능합니다")
        return [validate_tag(tag) for tag in v]

    def description_json(self) -> Any | None:
        if not self.full_description_json:
            return None
        return json.loads(self.full_description_json)


class ProjectCreate(ProjectUpdate):
    """Schema for creating a project."""

    title: str = Field(description="Project title (1-100 characters)")
    description: str = Field(description="One-line summary (1-200 characters)")
    category: str = Field(description="One of PROJECT_CATEGORIES")
    screenshots: list[str] = Field(description="Screenshot URLs (1-10)")
    tech_stack: list[str] = Field(default_factory=list, description="Technologies used")
    features: list[str] = Field(default_factory=list, description="Key features")
    tags: list[str] = Field(default_factory=list, description="Descriptive tags")


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class ProjectSummary(BaseModel):
    """Project as shown in feeds and grids."""

    id: str
    title: str
    excerpt: str
    category: str
    images: list[str]
    demo_url: str | None
    github_url: str | None
    featured: bool
    view_count: int
    like_count: int
    author: UserSummary
    tags: list[TagResponse]
    tech_stack: list[TagResponse]
    created_at: datetime
    updated_at: datetime


class ProjectDetail(ProjectSummary):
    """Full project page."""

    description: str
    full_description: str | None
    full_description_json: Any | None
    full_description_html: str | None
    features: list[str]
    is_liked: bool = Field(default=False, description="Whether the caller liked it")
    is_owner: bool = Field(default=False, description="Whether the caller authored it")


class ProjectListResponse(BaseModel):
    projects: list[ProjectSummary]
    pagination: Pagination


class ProjectCreateResponse(BaseModel):
    success: bool = True
    project_id: str
    message: str | None = None


class LikeToggleResponse(BaseModel):
    """Authoritative like state after a toggle."""

    success: bool = True
    is_liked: bool
    like_count: int


class LikeStatusResponse(BaseModel):
    is_liked: bool
    like_count: int


class LikedUsersResponse(BaseModel):
    users: list[UserSummary]
    pagination: Pagination


class ScreenshotUploadResponse(BaseModel):
    success: bool = True
    url: str
    path: str
