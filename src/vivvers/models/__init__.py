"""SQLAlchemy ORM models."""

from vivvers.models.comment import ProjectComment, ProjectCommentLike
from vivvers.models.project import Project, ProjectLike, ProjectTag, ProjectTechStack
from vivvers.models.tag import Tag
from vivvers.models.user import User, UserRole, UserStatus

__all__ = [
    "Project",
    "ProjectComment",
    "ProjectCommentLike",
    "ProjectLike",
    "ProjectTag",
    "ProjectTechStack",
    "Tag",
    "User",
    "UserRole",
    "UserStatus",
]
