"""Pydantic schemas for auth and storage provider payloads."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuthIdentity(BaseModel):
    """Caller identity as resolved by the auth provider."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(description="Provider user id")
    email: str | None = Field(default=None, description="Email address")
    email_confirmed_at: datetime | None = Field(default=None, description="Verification time")
    user_metadata: dict[str, Any] = Field(default_factory=dict, description="Editable metadata")

    @property
    def email_verified(self) -> bool:
        return self.email_confirmed_at is not None

    @property
    def profile_completed(self) -> bool:
        return bool(self.user_metadata.get("profile_completed"))


class AuthSession(BaseModel):
    """Session issued by the provider after a code exchange."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_in: int = 3600
    token_type: str = "bearer"
    user: AuthIdentity


class StorageObject(BaseModel):
    """Entry returned when listing a storage prefix."""

    model_config = ConfigDict(extra="ignore")

    name: str
    id: str | None = None
    created_at: datetime | None = None
    metadata: dict[str, Any] | None = None
