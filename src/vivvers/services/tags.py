"""Tag persistence and usage statistics."""

import uuid

from sqlalchemy import delete, func, literal, or_, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.models.project import Project, ProjectTag, ProjectTechStack
from vivvers.models.tag import Tag
from vivvers.schemas.tag import TagUsage
from vivvers.utils.tags import slugify_tag


async def upsert_tags(db: AsyncSession, names: list[str]) -> list[Tag]:
    """Return a Tag for every name, creating the missing ones.

    Names are matched case-insensitively and duplicates collapse to one tag;
    the input order is kept.
    """
    unique_names = list(dict.fromkeys(name.strip().lower() for name in names if name.strip()))
    if not unique_names:
        return []

    result = await db.execute(select(Tag).where(Tag.name.in_(unique_names)))
    existing = {tag.name: tag for tag in result.scalars().all()}

    tags = []
    for name in unique_names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(id=str(uuid.uuid4()), name=name, slug=slugify_tag(name))
            db.add(tag)
            existing[name] = tag
        tags.append(tag)

    await db.flush()
    return tags


async def replace_project_tags(
    db: AsyncSession,
    project: Project,
    tags: list[str] | None,
    tech_stack: list[str] | None,
) -> None:
    """Replace a project's tag and tech-stack relations.

    ``None`` leaves that relation untouched; an empty list clears it.
    """
    if tags is not None:
        await db.execute(delete(ProjectTag).where(ProjectTag.project_id == project.id))
        for tag in await upsert_tags(db, tags):
            db.add(ProjectTag(id=str(uuid.uuid4()), project_id=project.id, tag_id=tag.id))

    if tech_stack is not None:
        await db.execute(delete(ProjectTechStack).where(ProjectTechStack.project_id == project.id))
        for tag in await upsert_tags(db, tech_stack):
            db.add(ProjectTechStack(id=str(uuid.uuid4()), project_id=project.id, tag_id=tag.id))

    await db.flush()


def _usage_counts():
    """Subquery of (tag_id, usage_count) over both relation tables."""
    uses = union_all(
        select(ProjectTag.tag_id.label("tag_id"), literal(1).label("one")),
        select(ProjectTechStack.tag_id.label("tag_id"), literal(1).label("one")),
    ).subquery()
    return (
        select(uses.c.tag_id, func.count().label("usage_count"))
        .group_by(uses.c.tag_id)
        .subquery()
    )


async def search_tags(
    db: AsyncSession, query: str, limit: int, offset: int
) -> tuple[list[TagUsage], int]:
    """Case-insensitive tag search ordered by usage, then name."""
    usage = _usage_counts()
    pattern = f"%{query.strip().lower()}%"
    condition = or_(func.lower(Tag.name).like(pattern), Tag.slug.like(pattern))

    total_result = await db.execute(select(func.count()).select_from(Tag).where(condition))
    total = total_result.scalar_one()

    usage_count = func.coalesce(usage.c.usage_count, 0)
    result = await db.execute(
        select(Tag.id, Tag.name, usage_count)
        .outerjoin(usage, usage.c.tag_id == Tag.id)
        .where(condition)
        .order_by(usage_count.desc(), Tag.name)
        .offset(offset)
        .limit(limit)
    )
    tags = [TagUsage(id=tag_id, name=name, usage_count=count) for tag_id, name, count in result]
    return tags, total


async def popular_tags(db: AsyncSession, limit: int) -> list[TagUsage]:
    """Most used tags. Unused tags are left out."""
    usage = _usage_counts()
    result = await db.execute(
        select(Tag.id, Tag.name, usage.c.usage_count)
        .join(usage, usage.c.tag_id == Tag.id)
        .order_by(usage.c.usage_count.desc(), Tag.name)
        .limit(limit)
    )
    return [TagUsage(id=tag_id, name=name, usage_count=count) for tag_id, name, count in result]
