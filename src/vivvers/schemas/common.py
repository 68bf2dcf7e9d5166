"""Shared response shapes."""

from pydantic import BaseModel, Field


class ActionResponse(BaseModel):
    """Uniform result of a mutation."""

    success: bool = Field(default=True, description="Whether the action succeeded")
    message: str | None = Field(default=None, description="Message shown to the user")


class FieldError(BaseModel):
    field: str = Field(description="Dotted path of the rejected field")
    message: str = Field(description="Why it was rejected")


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    success: bool = False
    error: str = Field(description="User-facing error message")
    code: str = Field(description="Machine-readable error kind")
    errors: list[FieldError] | None = Field(
        default=None, description="Field-level messages for schema rejections"
    )


class Pagination(BaseModel):
    page: int = Field(description="Current page number")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")
    total_pages: int = Field(description="Total number of pages")
    has_next: bool = Field(description="Whether a later page exists")
    has_prev: bool = Field(description="Whether an earlier page exists")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


def empty_to_none(value: str | None) -> str | None:
    """Forms send "" for cleared optional fields; store those as NULL."""
    return value or None
