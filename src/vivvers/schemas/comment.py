"""Pydantic schemas for project comment endpoints."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from vivvers.schemas.common import Pagination
from vivvers.schemas.user import UserSummary

COMMENT_MAX_LENGTH = 500


def validate_comment_content(value: str) -> str:
    content = value.strip()
    if not content:
        raise ValueError("댓글 내용을 입력해주세요")
    if len(content) > COMMENT_MAX_LENGTH:
        raise ValueError(f"댓글은 최대 {COMMENT_MAX_LENGTH}자까지 입력 가능합니다")
    return content


class CommentSort(StrEnum):
    LATEST = "latest"
    OLDEST = "oldest"
    MOST_LIKED = "most_liked"


class CommentCreate(BaseModel):
    content: str = Field(description="Comment body (1-500 characters)")
    parent_id: str | None = Field(default=None, description="Comment being replied to")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return validate_comment_content(v)


class CommentUpdate(BaseModel):
    content: str = Field(description="New comment body (1-500 characters)")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return validate_comment_content(v)


class CommentResponse(BaseModel):
    id: str
    content: str
    project_id: str
    author_id: str
    parent_id: str | None
    like_count: int
    replies_count: int
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    is_liked: bool = False
    replies: list["CommentResponse"] = Field(default_factory=list)


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    pagination: Pagination


class CommentDeleteResponse(BaseModel):
    success: bool = True
    deleted_id: str
    deleted_count: int
