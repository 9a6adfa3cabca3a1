"""
Configuration settings for the TrainingDesk backend.

Settings are loaded from environment variables (and an optional ``.env``
file). Example: COURSE_API_URL, OAUTH_CLIENT_ID, SESSION_SECRET, etc.
"""

import secrets
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Course-management backend
    course_api_url: str = Field(
        default="http://localhost:8080/wp-json/graston/v1",
        description="Base URL of the course-management REST API"
    )
    course_api_username: str = Field(default="", description="Basic auth username")
    course_api_password: str = Field(default="", description="Basic auth password")
    course_api_timeout: float = Field(default=30.0, gt=0, description="Outbound timeout in seconds")

    # Google OAuth
    oauth_client_id: str = Field(default="", description="Google OAuth client id")
    oauth_client_secret: str = Field(default="", description="Google OAuth client secret")
    allowed_email_domain: str = Field(
        default="grastontechnique.com",
        description="Only staff with an address in this domain may sign in"
    )
    public_base_url: str = Field(
        default="",
        description="External base URL for the OAuth redirect URI; derived from the request when empty"
    )
    post_login_redirect: str = Field(default="/", description="Where to send the browser after sign-in")

    # Session cookie
    session_secret: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        description="Secret used to sign the session cookie"
    )
    session_max_age: int = Field(default=8 * 60 * 60, gt=0, description="Session lifetime in seconds")
    session_https_only: bool = Field(default=False)

    # HTTP surface
    cors_origins: str = Field(default="http://localhost:3000", description="Comma separated origins")

    # Error responses
    debug_mode: str = Field(default="development")
    disable_api_debug_info: bool = Field(default=False)

    # Logging / server
    log_level: str = Field(default="INFO")
    uvicorn_log_level: str = Field(default="info")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    @field_validator('allowed_email_domain', mode='before')
    @classmethod
    def strip_domain(cls, value):
        if isinstance(value, str):
            return value.strip().lstrip("@").lower()
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.oauth_client_id and self.oauth_client_secret)

    @property
    def include_debug_info(self) -> bool:
        return (
            self.debug_mode.lower() in ['dev', 'development', 'local']
            and not self.disable_api_debug_info
        )


_settings: Optional[BackendSettings] = None


@lru_cache
def get_settings() -> BackendSettings:
    """
    Get backend settings singleton.

    Returns the settings installed by ``configure_settings`` if any,
    otherwise loads them from the environment once.
    """
    if _settings is not None:
        return _settings
    return BackendSettings()


def configure_settings(**kwargs) -> BackendSettings:
    """
    Configure settings programmatically.

    This allows overriding environment variables for testing or when
    settings come from a different source.
    """
    global _settings

    _settings = BackendSettings(**{k: v for k, v in kwargs.items() if v is not None})

    # Clear the lru_cache so get_settings returns new settings
    get_settings.cache_clear()

    return _settings


def reset_settings() -> None:
    """Reset settings to default (reload from environment)."""
    global _settings
    _settings = None
    get_settings.cache_clear()
