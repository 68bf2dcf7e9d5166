"""Tag normalization and tag-list helpers.

Tags are short ASCII slugs: 2-20 characters drawn from letters, digits,
hyphen and underscore. User input is normalized with :func:`sanitize_tag`
and accepted only if the result passes :func:`is_valid_tag`.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

TAG_MIN_LENGTH = 2
TAG_MAX_LENGTH = 20
TAG_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

TAG_MIN_LENGTH_MESSAGE = f"태그는 최소 {TAG_MIN_LENGTH}자 이상이어야 합니다"
TAG_MAX_LENGTH_MESSAGE = f"태그는 최대 {TAG_MAX_LENGTH}자까지 가능합니다"
TAG_PATTERN_MESSAGE = "태그는 영문, 숫자, 하이픈(-), 언더스코어(_)만 사용 가능합니다"

_WHITESPACE_RUN = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9_-]")


def tag_error(value: str) -> str | None:
    """Return the first rule ``value`` breaks, or None if it is a valid tag."""
    if len(value) < TAG_MIN_LENGTH:
        return TAG_MIN_LENGTH_MESSAGE
    if len(value) > TAG_MAX_LENGTH:
        return TAG_MAX_LENGTH_MESSAGE
    if not TAG_PATTERN.match(value):
        return TAG_PATTERN_MESSAGE
    return None


def is_valid_tag(value: str) -> bool:
    return tag_error(value) is None


def sanitize_tag(value: str) -> str:
    """Normalize free-form input into tag form.

    >>> sanitize_tag("  React.js v18 (Latest)! ")
    'reactjs-v18-latest'
    """
    tag = value.strip().lower()
    tag = _WHITESPACE_RUN.sub("-", tag)
    return _DISALLOWED.sub("", tag)


def suggest_tag(value: str) -> str | None:
    """Return the sanitized tag if it is usable, otherwise None."""
    sanitized = sanitize_tag(value)
    if not is_valid_tag(sanitized):
        return None
    return sanitized


def parse_comma_separated_tags(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


@dataclass
class TagAddResult:
    success: bool
    tags: list[str]
    added_tag: str | None = None


@dataclass
class BatchTagResult:
    tags: list[str]
    added_count: int = 0
    valid_tags: list[str] = field(default_factory=list)


def add_tag_to_list(
    value: str,
    current_tags: list[str],
    max_tags: int,
    suggest: Callable[[str], str | None] = suggest_tag,
) -> TagAddResult:
    """Add the normalized form of ``value`` unless it is invalid, present, or over the limit."""
    suggestion = suggest(value)
    if suggestion and suggestion not in current_tags and len(current_tags) < max_tags:
        return TagAddResult(success=True, tags=[*current_tags, suggestion], added_tag=suggestion)
    return TagAddResult(success=False, tags=current_tags)


def remove_tag_from_list(tags: list[str], index: int) -> list[str]:
    return [tag for i, tag in enumerate(tags) if i != index]


def process_batch_tag_addition(
    value: str,
    current_tags: list[str],
    max_tags: int,
    suggest: Callable[[str], str | None] = suggest_tag,
) -> BatchTagResult:
    """Add every tag from a comma-separated string, skipping ones that don't fit."""
    result = BatchTagResult(tags=list(current_tags))
    for candidate in parse_comma_separated_tags(value):
        added = add_tag_to_list(candidate, result.tags, max_tags, suggest)
        if added.success and added.added_tag:
            result.tags = added.tags
            result.added_count += 1
            result.valid_tags.append(added.added_tag)
    return result


def slugify_tag(name: str) -> str:
    """Build the URL slug stored alongside a tag name."""
    return re.sub(r"[^a-z0-9가-힣]", "-", name.lower())
