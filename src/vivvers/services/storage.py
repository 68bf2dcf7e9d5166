"""Supabase Storage API client and upload helpers.

Objects are keyed ``{bucket}/{userId}/{filename}`` so every user owns one
prefix per bucket.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import Any, Literal

from fastapi import Depends

from vivvers.config import get_settings
from vivvers.errors import ValidationFailedError
from vivvers.schemas.external import StorageObject
from vivvers.services.base import BaseAPIClient
from vivvers.utils.session import get_session_token

FileNameStrategy = Literal["uuid", "timestamp", "original"]


def sanitize_file_name(file_name: str) -> str:
    """Replace anything but ASCII letters, digits, dot, dash and underscore."""
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", file_name)
    cleaned = re.sub(r"_+", "_", cleaned)
    return cleaned.strip("_").lower() or "file"


def _extension(file_name: str) -> str:
    if "." not in file_name:
        return ""
    return "." + file_name.rsplit(".", 1)[-1].lower()


def generate_file_name(
    original_name: str,
    strategy: FileNameStrategy = "uuid",
    preserve_extension: bool = True,
) -> str:
    """Generate the stored file name for an upload."""
    extension = _extension(original_name) if preserve_extension else ""

    if strategy == "timestamp":
        base_name = original_name.rsplit(".", 1)[0] if "." in original_name else original_name
        return f"{int(time.time() * 1000)}-{sanitize_file_name(base_name)}{extension}"
    if strategy == "original":
        return sanitize_file_name(original_name)
    return f"{uuid.uuid4()}{extension}"


def build_storage_path(user_id: str, file_name: str) -> str:
    return f"{user_id}/{file_name}"


def validate_upload(
    size: int,
    content_type: str | None,
    max_size: int | None = None,
    allowed_types: list[str] | None = None,
) -> None:
    """Reject uploads that are empty, too large or of a disallowed type.

    Raises:
        ValidationFailedError: With the message shown to the user.
    """
    settings = get_settings()
    max_size = max_size if max_size is not None else settings.max_upload_size
    allowed_types = allowed_types if allowed_types is not None else settings.allowed_image_types

    if size <= 0:
        raise ValidationFailedError("빈 파일은 업로드할 수 없습니다")
    if size > max_size:
        limit_mb = max_size / (1024 * 1024)
        raise ValidationFailedError(f"파일 크기는 {limit_mb:.0f}MB 이하여야 합니다")
    if allowed_types and content_type not in allowed_types:
        raise ValidationFailedError("지원하지 않는 파일 형식입니다")


class SupabaseStorageClient(BaseAPIClient):
    """Client for the hosted object storage.

    Requests are authorized with the caller's access token when given, so
    the provider's per-user bucket policies apply; otherwise the anon key.
    """

    def __init__(
        self,
        access_token: str | None = None,
        supabase_url: str | None = None,
        anon_key: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the storage client.

        Args:
            access_token: Caller's session token for authorization.
            supabase_url: Project URL. If not provided, uses settings.
            anon_key: Project anon key. If not provided, uses settings.
            timeout: Request timeout in seconds.
        """
        settings = get_settings()
        project_url = (supabase_url or settings.supabase_url).rstrip("/")
        self._anon_key = anon_key or settings.supabase_anon_key
        self._access_token = access_token or self._anon_key

        if not project_url or not self._anon_key:
            raise ValueError("Supabase URL and anon key are required")

        self.public_base_url = f"{project_url}/storage/v1/object/public"
        super().__init__(base_url=f"{project_url}/storage/v1", timeout=timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._access_token}",
        }

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Upload bytes to ``bucket/path`` and return the stored object path."""
        await self.post(
            f"/object/{bucket}/{path}",
            content=content,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
                "Cache-Control": "max-age=3600",
            },
        )
        return path

    async def list(
        self, bucket: str, prefix: str = "", limit: int = 100, offset: int = 0
    ) -> list[StorageObject]:
        """List objects directly under ``prefix``."""
        payload: dict[str, Any] = {
            "prefix": prefix,
            "limit": limit,
            "offset": offset,
            "sortBy": {"column": "name", "order": "asc"},
        }
        data = await self.post(f"/object/list/{bucket}", json=payload)
        return [StorageObject.model_validate(item) for item in data or []]

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{path}"

    async def remove(self, bucket: str, paths: list[str]) -> None:
        """Delete the given object paths. Missing objects are ignored by the provider."""
        if not paths:
            return
        await self.delete(f"/object/{bucket}", json={"prefixes": paths})


async def get_storage_client(
    access_token: str | None = Depends(get_session_token),
) -> SupabaseStorageClient:
    """Factory function to create a storage client acting as the caller.

    Can be used as a FastAPI dependency.
    """
    return SupabaseStorageClient(access_token=access_token)
