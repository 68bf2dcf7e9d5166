"""Tests for the Supabase storage client and upload helpers."""

import re
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from vivvers.errors import ValidationFailedError
from vivvers.services.storage import (
    SupabaseStorageClient,
    build_storage_path,
    generate_file_name,
    sanitize_file_name,
    validate_upload,
)


def mock_response(status_code: int, json=None) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=json,
        request=httpx.Request("POST", "https://project.supabase.test/storage/v1/object"),
    )


@pytest.fixture
def storage_client() -> SupabaseStorageClient:
    """Create a storage client acting as a signed-in user."""
    return SupabaseStorageClient(
        access_token="user-token",
        supabase_url="https://project.supabase.test",
        anon_key="anon",
    )


class TestFileNames:
    """Tests for stored file naming."""

    def test_sanitize(self) -> None:
        assert sanitize_file_name("My Photo (1).PNG") == "my_photo_1_.png"
        assert sanitize_file_name("사진.jpg") == ".jpg"
        assert sanitize_file_name("___") == "file"

    def test_uuid_strategy_keeps_extension(self) -> None:
        name = generate_file_name("Screen Shot.PNG")
        assert re.fullmatch(r"[0-9a-f-]{36}\.png", name)

    def test_timestamp_strategy(self) -> None:
        name = generate_file_name("My Shot.jpg", strategy="timestamp")
        assert re.fullmatch(r"\d+-my_shot\.jpg", name)

    def test_original_strategy(self) -> None:
        assert generate_file_name("Demo.gif", strategy="original") == "demo.gif"

    def test_without_extension(self) -> None:
        assert "." not in generate_file_name("shot.png", preserve_extension=False)

    def test_storage_path(self) -> None:
        assert build_storage_path("user-1", "a.png") == "user-1/a.png"


class TestValidateUpload:
    """Tests for upload checks."""

    def test_accepts_image(self) -> None:
        validate_upload(1024, "image/png")

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValidationFailedError, match="빈 파일"):
            validate_upload(0, "image/png")

    def test_rejects_oversized(self) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            validate_upload(11 * 1024 * 1024, "image/png")
        assert exc_info.value.message == "파일 크기는 10MB 이하여야 합니다"

    def test_rejects_type(self) -> None:
        with pytest.raises(ValidationFailedError):
            validate_upload(10, "application/pdf")

    def test_custom_limits(self) -> None:
        validate_upload(10, "application/pdf", max_size=100, allowed_types=["application/pdf"])


class TestSupabaseStorageClient:
    """Tests for storage requests."""

    def test_headers_use_access_token(self, storage_client: SupabaseStorageClient) -> None:
        headers = storage_client.default_headers
        assert headers["Authorization"] == "Bearer user-token"
        assert headers["apikey"] == "anon"

    def test_headers_fall_back_to_anon_key(self) -> None:
        client = SupabaseStorageClient(supabase_url="https://project.supabase.test", anon_key="k")
        assert client.default_headers["Authorization"] == "Bearer k"

    def test_public_url(self, storage_client: SupabaseStorageClient) -> None:
        assert storage_client.get_public_url("avatars", "u1/a.png") == (
            "https://project.supabase.test/storage/v1/object/public/avatars/u1/a.png"
        )

    async def test_upload(self, storage_client: SupabaseStorageClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(200, {"Key": "avatars/u1/a.png"})

        with patch.object(storage_client, "_get_client", return_value=mock_http_client):
            path = await storage_client.upload("avatars", "u1/a.png", b"data", "image/png")

        assert path == "u1/a.png"
        call = mock_http_client.request.call_args
        assert call.kwargs["url"] == "object/avatars/u1/a.png"
        assert call.kwargs["content"] == b"data"
        assert call.kwargs["headers"]["Content-Type"] == "image/png"
        assert call.kwargs["headers"]["x-upsert"] == "false"

    async def test_list(self, storage_client: SupabaseStorageClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(
            200, [{"name": "a.png", "id": "1"}, {"name": "b.png"}]
        )

        with patch.object(storage_client, "_get_client", return_value=mock_http_client):
            objects = await storage_client.list("avatars", prefix="u1")

        assert [obj.name for obj in objects] == ["a.png", "b.png"]
        assert mock_http_client.request.call_args.kwargs["json"]["prefix"] == "u1"

    async def test_remove(self, storage_client: SupabaseStorageClient) -> None:
        mock_http_client = AsyncMock()
        mock_http_client.request.return_value = mock_response(200, [])

        with patch.object(storage_client, "_get_client", return_value=mock_http_client):
            await storage_client.remove("avatars", ["u1/a.png"])

        call = mock_http_client.request.call_args
        assert call.kwargs["method"] == "DELETE"
        assert call.kwargs["json"] == {"prefixes": ["u1/a.png"]}

    async def test_remove_nothing_sends_no_request(
        self, storage_client: SupabaseStorageClient
    ) -> None:
        mock_http_client = AsyncMock()

        with patch.object(storage_client, "_get_client", return_value=mock_http_client):
            await storage_client.remove("avatars", [])

        mock_http_client.request.assert_not_called()
