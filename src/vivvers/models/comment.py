"""Project comment ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vivvers.database import Base
from vivvers.models.user import utcnow

if TYPE_CHECKING:
    from vivvers.models.project import Project
    from vivvers.models.user import User


class ProjectComment(Base):
    """Comment on a project. Replies are one level deep."""

    __tablename__ = "project_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    author_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    parent_id: Mapped[str | None] = mapped_column(
        ForeignKey("project_comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    content: Mapped[str] = mapped_column(Text)
    like_count: Mapped[int] = mapped_column(default=0)
    replies_count: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    project: Mapped[Project] = relationship(back_populates="comments")
    author: Mapped[User] = relationship(back_populates="comments")
    parent: Mapped[ProjectComment | None] = relationship(
        back_populates="replies", remote_side="ProjectComment.id"
    )
    replies: Mapped[list[ProjectComment]] = relationship(
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="ProjectComment.created_at",
    )
    likes: Mapped[list[ProjectCommentLike]] = relationship(
        back_populates="comment", cascade="all, delete-orphan"
    )


class ProjectCommentLike(Base):
    """At most one like per (user, comment)."""

    __tablename__ = "project_comment_likes"
    __table_args__ = (UniqueConstraint("user_id", "comment_id", name="uq_user_comment_like"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    comment_id: Mapped[str] = mapped_column(
        ForeignKey("project_comments.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    user: Mapped[User] = relationship(back_populates="comment_likes")
    comment: Mapped[ProjectComment] = relationship(back_populates="likes")
