"""Business logic and external API clients."""

from vivvers.services.admin import AdminUserService, UserFilters
from vivvers.services.base import (
    APIError,
    BaseAPIClient,
    NotFoundError,
    RateLimitError,
)
from vivvers.services.storage import SupabaseStorageClient, get_storage_client
from vivvers.services.supabase_auth import SupabaseAuthClient, get_auth_client

__all__ = [
    "APIError",
    "AdminUserService",
    "BaseAPIClient",
    "NotFoundError",
    "RateLimitError",
    "SupabaseAuthClient",
    "SupabaseStorageClient",
    "UserFilters",
    "get_auth_client",
    "get_storage_client",
]
