"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Vivvers API"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./vivvers.db"

    # Supabase (auth + storage provider)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"
    supabase_jwt_algorithm: str = "HS256"

    # Session cookies
    session_cookie_name: str = "sb-access-token"
    refresh_cookie_name: str = "sb-refresh-token"
    code_verifier_cookie_name: str = "sb-code-verifier"
    session_cookie_secure: bool = True

    # Storage
    avatar_bucket: str = "avatars"
    screenshot_bucket: str = "project-screenshots"
    max_upload_size: int = 10 * 1024 * 1024
    allowed_image_types: list[str] = ["image/jpeg", "image/png", "image/webp", "image/gif"]

    # Page paths used for redirects
    signin_path: str = "/signin"
    onboarding_path: str = "/onboarding"
    unauthorized_path: str = "/unauthorized"

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Strip trailing slashes and require an http(s) scheme when set."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("SUPABASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def auth_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def validate_runtime_config(self) -> list[str]:
        """Validate runtime configuration and return warnings."""
        warnings = []

        if not self.supabase_url:
            warnings.append("SUPABASE_URL is not set - sign-in and uploads will not work")

        if not self.supabase_anon_key:
            warnings.append("SUPABASE_ANON_KEY is not set - provider requests will be rejected")

        if not self.supabase_jwt_secret:
            warnings.append(
                "SUPABASE_JWT_SECRET is not set - page session gating treats everyone as signed out"
            )

        # Warn about debug mode in production
        if self.debug:
            warnings.append("DEBUG mode is enabled - should be disabled in production")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
