"""User ORM model."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vivvers.database import Base

if TYPE_CHECKING:
    from vivvers.models.comment import ProjectComment, ProjectCommentLike
    from vivvers.models.project import Project, ProjectLike


def utcnow() -> datetime:
    return datetime.now(UTC)


class UserRole(StrEnum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class UserStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(Base):
    """Community member.

    The primary key is the auth provider's identity id, so a stored record is
    always tied to exactly one external identity and never re-keyed.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), index=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    social_links: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    skills: Mapped[list[str]] = mapped_column(JSON, default=list)
    experience: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(default=True)

    # Moderation fields
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.USER,
        index=True,
    )
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status", values_callable=lambda e: [m.value for m in e]),
        default=UserStatus.ACTIVE,
        index=True,
    )
    verified: Mapped[bool] = mapped_column(default=False)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_active: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    projects: Mapped[list[Project]] = relationship(
        back_populates="author", cascade="all, delete-orphan"
    )
    comments: Mapped[list[ProjectComment]] = relationship(
        back_populates="author", cascade="all, delete-orphan"
    )
    project_likes: Mapped[list[ProjectLike]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    comment_likes: Mapped[list[ProjectCommentLike]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.MODERATOR)
