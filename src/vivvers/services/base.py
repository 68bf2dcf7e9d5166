"""Shared async HTTP client for the auth/storage providers and the Vivvers API."""

from abc import ABC, abstractmethod
from typing import Any

import httpx

# Keys providers use for a human-readable error, most specific first.
ERROR_MESSAGE_KEYS = ("error_description", "msg", "message", "error")


class APIError(Exception):
    """Base exception for failed provider or API calls."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(APIError):
    """Raised on a 429 response."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int | None = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """Raised on a 404 response."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


def error_message_from(response: httpx.Response) -> str:
    """Pick the most useful error text out of a failed response.

    JSON bodies are searched for the usual error keys. Anything else falls
    back to the raw body, then to the status line.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value

    return response.text or f"HTTP {response.status_code}"


class BaseAPIClient(ABC):
    """Abstract base class for JSON-over-HTTP clients.

    Subclasses supply ``default_headers``. Requests go through one lazily
    created ``httpx.AsyncClient``; transport failures and error statuses are
    raised as :class:`APIError` subclasses.
    """

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL every endpoint is resolved against.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        ...

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.default_headers,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
        content: bytes | None = None,
    ) -> Any:
        """Send one request and decode its JSON body.

        Args:
            method: HTTP method.
            endpoint: Path relative to ``base_url``.
            params: Query parameters.
            headers: Headers merged over ``default_headers``.
            json: JSON-serializable request body.
            content: Raw request body, used for file uploads.

        Returns:
            The decoded body, or an empty dict when the body is empty.

        Raises:
            NotFoundError: On 404.
            RateLimitError: On 429.
            APIError: On any other error status or a transport failure.
        """
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=endpoint.lstrip("/"),
                params=params,
                headers={**self.default_headers, **(headers or {})},
                json=json,
                content=content,
            )
        except httpx.TimeoutException as e:
            raise APIError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise APIError(f"Request failed: {e}") from e

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        status = response.status_code

        if status == 404:
            raise NotFoundError()
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(retry_after=int(retry_after) if retry_after else None)
        if status >= 400:
            raise APIError(error_message_from(response), status_code=status)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON response: {e}", status_code=status) from e

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        return await self._request("GET", endpoint, params=params, headers=headers)

    async def post(
        self,
        endpoint: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> Any:
        return await self._request(
            "POST", endpoint, params=params, headers=headers, json=json, content=content
        )

    async def put(self, endpoint: str, json: Any = None, headers: dict[str, str] | None = None):
        return await self._request("PUT", endpoint, headers=headers, json=json)

    async def delete(self, endpoint: str, json: Any = None, headers: dict[str, str] | None = None):
        return await self._request("DELETE", endpoint, headers=headers, json=json)

    async def __aenter__(self) -> "BaseAPIClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
