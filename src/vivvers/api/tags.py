"""Tag search and suggestion endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vivvers.database import get_db
from vivvers.schemas.tag import TagSearchPagination, TagSearchResponse, TagSuggestion, TagUsage
from vivvers.services.tags import popular_tags, search_tags
from vivvers.utils.tags import is_valid_tag, suggest_tag

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/search", response_model=TagSearchResponse)
async def search(
    query: str = Query("", max_length=50, description="Text to look for in tag names"),
    limit: int = Query(20, ge=1, le=100, description="Maximum number of results"),
    offset: int = Query(0, ge=0, description="Number of results to skip"),
    db: AsyncSession = Depends(get_db),
) -> TagSearchResponse:
    """Search tags by name, most used first. An empty query lists all tags."""
    tags, total = await search_tags(db, query, limit, offset)
    return TagSearchResponse(
        tags=tags,
        pagination=TagSearchPagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(tags) < total,
        ),
    )


@router.get("/popular", response_model=list[TagUsage])
async def popular(
    limit: int = Query(10, ge=1, le=50, description="Number of tags"),
    db: AsyncSession = Depends(get_db),
) -> list[TagUsage]:
    """Tags used by the most projects."""
    return await popular_tags(db, limit)


@router.get("/suggest", response_model=TagSuggestion)
async def suggest(
    value: str = Query(..., max_length=100, description="Tag as typed by the user"),
) -> TagSuggestion:
    """Normalize free text into a usable tag, or null when nothing usable remains."""
    return TagSuggestion(value=value, suggestion=suggest_tag(value), is_valid=is_valid_tag(value))
