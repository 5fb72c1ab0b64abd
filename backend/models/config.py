import os
import sys
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    For local development, load `.env` automatically so the email settings
    can be provided from `backend/.env`.

    Do NOT auto-load `.env` when running under pytest or in CI, so tests
    that exercise missing email settings see the environment they set up.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'production', or 'test'",
    )
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )
    LOG_FILE: str = Field(
        default="",
        description="Optional path of a rotating log file (disabled when empty)",
    )

    # Contact notification settings
    # Missing values are reported per submission (HTTP 500), not at startup.
    RESEND_API_KEY: str = Field(
        default="",
        description="Resend API key used to deliver contact notifications",
    )
    CONTACT_FROM_EMAIL: str = Field(
        default="",
        description="Sender address of contact notifications",
    )
    CONTACT_TO_EMAIL: str = Field(
        default="",
        description="Recipient address of contact notifications",
    )
    EMAIL_PROVIDER: str = Field(
        default="resend",
        description="Email provider: 'resend' or 'console'",
    )
    RESEND_API_URL: str = Field(
        default="https://api.resend.com/emails",
        description="Resend send-email endpoint",
    )
    EMAIL_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for the outbound email API call",
    )

    # Request origin checks
    ALLOWED_ORIGIN_HOSTS: Annotated[List[str], NoDecode] = Field(
        default=[
            "castellomongivetto.com",
            "www.castellomongivetto.com",
            "castello-mongivetto.vercel.app",
        ],
        description="Hosts trusted as Origin/Referer (comma-separated in env var)",
    )
    PREVIEW_HOST_SUFFIX: str = Field(
        default=".vercel.app",
        description="Deployment-preview host suffix also trusted as Origin/Referer",
    )

    # Email domain checks
    DNS_LOOKUP_TIMEOUT_SECONDS: float = Field(
        default=3.0,
        description="Resolver lifetime for each MX/A/AAAA lookup",
    )

    @field_validator("CORS_ORIGINS", "ALLOWED_ORIGIN_HOSTS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | List[str]) -> List[str]:
        """Parse list settings from comma-separated strings."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


settings = Settings()
