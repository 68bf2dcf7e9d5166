"""Pydantic schemas for tag endpoints."""

from pydantic import BaseModel, Field


class TagUsage(BaseModel):
    id: str
    name: str
    usage_count: int = Field(description="Projects using it as a tag or tech-stack entry")


class TagSearchPagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class TagSearchResponse(BaseModel):
    tags: list[TagUsage]
    pagination: TagSearchPagination


class TagSuggestion(BaseModel):
    value: str = Field(description="Input as typed")
    suggestion: str | None = Field(description="Normalized tag, or null when unusable")
    is_valid: bool = Field(description="Whether the input is already a valid tag")
