"""HTTP client for the Vivvers API itself."""

from vivvers.schemas.project import LikeStatusResponse, LikeToggleResponse
from vivvers.services.base import BaseAPIClient


class VivversClient(BaseAPIClient):
    """Client for the like endpoints, acting as one signed-in user."""

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``https://vivvers.example/api``.
            access_token: Session token sent as a bearer token.
            timeout: Request timeout in seconds.
        """
        self.access_token = access_token
        super().__init__(base_url=base_url, timeout=timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def toggle_project_like(self, project_id: str) -> LikeToggleResponse:
        data = await self.post(f"/projects/{project_id}/like")
        return LikeToggleResponse.model_validate(data)

    async def toggle_comment_like(self, comment_id: str) -> LikeToggleResponse:
        data = await self.post(f"/comments/{comment_id}/like")
        return LikeToggleResponse.model_validate(data)

    async def get_project_like_status(self, project_id: str) -> LikeStatusResponse:
        data = await self.get(f"/projects/{project_id}/like")
        return LikeStatusResponse.model_validate(data)
