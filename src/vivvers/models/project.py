"""Project and association ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vivvers.database import Base
from vivvers.models.user import utcnow

if TYPE_CHECKING:
    from vivvers.models.comment import ProjectComment
    from vivvers.models.tag import Tag
    from vivvers.models.user import User


class Project(Base):
    """A side-project shared by a user."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    author_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(100))
    excerpt: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    full_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_description_json: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    full_description_html: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), index=True)
    images: Mapped[list[str]] = mapped_column(JSON, default=list)
    demo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    github_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    features: Mapped[list[str]] = mapped_column(JSON, default=list)
    featured: Mapped[bool] = mapped_column(default=False, index=True)
    view_count: Mapped[int] = mapped_column(default=0)
    # Denormalized; kept equal to the number of ProjectLike rows by the toggle
    like_count: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    author: Mapped[User] = relationship(back_populates="projects")
    project_tags: Mapped[list[ProjectTag]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    project_tech_stacks: Mapped[list[ProjectTechStack]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    likes: Mapped[list[ProjectLike]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    comments: Mapped[list[ProjectComment]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )


class ProjectTag(Base):
    """Association between a project and a descriptive tag."""

    __tablename__ = "project_tags"
    __table_args__ = (UniqueConstraint("project_id", "tag_id", name="uq_project_tag"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    tag_id: Mapped[str] = mapped_column(ForeignKey("tags.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    project: Mapped[Project] = relationship(back_populates="project_tags")
    tag: Mapped[Tag] = relationship(back_populates="project_tags")


class ProjectTechStack(Base):
    """Association between a project and a technology it is built with."""

    __tablename__ = "project_tech_stacks"
    __table_args__ = (UniqueConstraint("project_id", "tag_id", name="uq_project_tech_stack"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    tag_id: Mapped[str] = mapped_column(ForeignKey("tags.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    project: Mapped[Project] = relationship(back_populates="project_tech_stacks")
    tag: Mapped[Tag] = relationship(back_populates="project_tech_stacks")


class ProjectLike(Base):
    """At most one like per (user, project)."""

    __tablename__ = "project_likes"
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_user_project_like"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    user: Mapped[User] = relationship(back_populates="project_likes")
    project: Mapped[Project] = relationship(back_populates="likes")
