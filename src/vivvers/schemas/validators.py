"""Reusable field rules with the messages shown in the Korean UI."""

import re

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")

_url_adapter = TypeAdapter(AnyHttpUrl)


def validate_username(value: str) -> str:
    """Check length and character set of a username."""
    if len(value) < USERNAME_MIN_LENGTH:
        raise ValueError(f"사용자명은 최소 {USERNAME_MIN_LENGTH}자 이상이어야 합니다")
    if len(value) > USERNAME_MAX_LENGTH:
        raise ValueError(f"사용자명은 최대 {USERNAME_MAX_LENGTH}자까지 가능합니다")
    if not USERNAME_PATTERN.match(value):
        raise ValueError("사용자명은 영문, 숫자, 하이픈만 사용할 수 있습니다")
    return value


def validate_url(value: str, message: str = "올바른 URL 형식이 아닙니다") -> str:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise ValueError(message) from None
    return value


def validate_optional_url(
    value: str | None, message: str = "올바른 URL 형식이 아닙니다"
) -> str | None:
    """Accept None, the empty string (a cleared form field), or a valid URL."""
    if value is None or value == "":
        return value
    return validate_url(value, message)


def validate_max_length(value: str | None, limit: int, message: str) -> str | None:
    if value is not None and len(value) > limit:
        raise ValueError(message)
    return value
