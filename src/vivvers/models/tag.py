"""Tag ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vivvers.database import Base
from vivvers.models.user import utcnow

if TYPE_CHECKING:
    from vivvers.models.project import ProjectTag, ProjectTechStack


class Tag(Base):
    """Free-form label shared by project tags and tech-stack entries."""

    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    slug: Mapped[str] = mapped_column(String(60), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    project_tags: Mapped[list[ProjectTag]] = relationship(
        back_populates="tag", cascade="all, delete-orphan"
    )
    project_tech_stacks: Mapped[list[ProjectTechStack]] = relationship(
        back_populates="tag", cascade="all, delete-orphan"
    )
