"""
Application Configuration
Pydantic Settings for environment-based configuration
Source: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

import json
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The Google client credentials are required: a deployment without them
    fails here, at startup, instead of at the first sign-in attempt.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # ============================================================================
    # Application Settings
    # ============================================================================
    ENVIRONMENT: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment: development, staging, production, testing"
    )
    DEBUG: bool = Field(default=False, description="Debug mode (NEVER enable in production)")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # ============================================================================
    # Database Configuration
    # ============================================================================
    POSTGRES_HOST: str = Field(default="db", description="PostgreSQL host")
    POSTGRES_PORT: int = Field(default=5432, description="PostgreSQL port")
    POSTGRES_DB: str = Field(default="civicdesk", description="Database name")
    POSTGRES_USER: str = Field(default="civicdesk", description="Database user")
    POSTGRES_PASSWORD: str = Field(default="", description="Database password")

    DATABASE_URL: str | None = Field(default=None, description="Full database URL")

    DB_POOL_SIZE: int = Field(default=20, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=10, description="Max overflow connections")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Connection timeout (seconds)")
    DB_CREATE_ALL: bool = Field(
        default=False, description="Create missing tables on startup"
    )

    @property
    def database_url(self) -> str:
        """Construct DATABASE_URL if not explicitly provided"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ============================================================================
    # Redis Configuration
    # ============================================================================
    REDIS_HOST: str = Field(default="redis", description="Redis host")
    REDIS_PORT: int = Field(default=6379, description="Redis port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password")
    REDIS_URL: str | None = Field(default=None, description="Full Redis URL")

    @property
    def redis_url(self) -> str:
        """Construct REDIS_URL if not explicitly provided"""
        if self.REDIS_URL:
            return self.REDIS_URL
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ============================================================================
    # Session Configuration
    # ============================================================================
    SESSION_BACKEND: Literal["redis", "memory"] = Field(
        default="redis", description="Where session records live: redis or memory"
    )
    SESSION_COOKIE_NAME: str = Field(default="civicdesk_session", description="Session cookie name")
    SESSION_TTL_SECONDS: int = Field(
        default=60 * 60 * 8, description="Idle lifetime of a session record (seconds)", gt=0
    )
    SESSION_COOKIE_SECURE: bool = Field(default=True, description="Send session cookie over HTTPS only")

    # ============================================================================
    # Google OAuth2 Configuration
    # ============================================================================
    GOOGLE_CLIENT_ID: str = Field(..., min_length=1, description="Google OAuth2 client ID")
    GOOGLE_CLIENT_SECRET: str = Field(..., min_length=1, description="Google OAuth2 secret")
    GOOGLE_REDIRECT_URI: str = Field(..., min_length=1, description="Google redirect URI")

    GOOGLE_AUTH_URL: str = Field(
        default="https://accounts.google.com/o/oauth2/v2/auth",
        description="Google authorization endpoint",
    )
    GOOGLE_TOKEN_URL: str = Field(
        default="https://oauth2.googleapis.com/token", description="Google token endpoint"
    )
    GOOGLE_USERINFO_URL: str = Field(
        default="https://openidconnect.googleapis.com/v1/userinfo",
        description="Google OpenID Connect userinfo endpoint",
    )
    GOOGLE_TOKENINFO_URL: str = Field(
        default="https://oauth2.googleapis.com/tokeninfo",
        description="Google ID token info endpoint",
    )
    GOOGLE_SCOPES: str = Field(
        default="openid email profile", description="Requested OAuth2 scopes, space-delimited"
    )

    OAUTH_HTTP_TIMEOUT_SECONDS: float = Field(
        default=10.0, description="Timeout for calls to the identity provider", gt=0
    )
    OAUTH_STATE_TTL_SECONDS: int = Field(
        default=600, description="Lifetime of a pending anti-forgery state token", gt=0
    )

    # ============================================================================
    # FastAPI Configuration
    # ============================================================================
    API_HOST: str = Field(default="0.0.0.0", description="API host")  # nosec B104
    API_PORT: int = Field(default=8000, description="API port")

    # CORS Configuration
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )
    CORS_CREDENTIALS: bool = Field(default=True, description="Allow credentials")
    CORS_METHODS: list[str] = Field(default=["*"], description="Allowed methods")
    CORS_HEADERS: list[str] = Field(default=["*"], description="Allowed headers")

    @staticmethod
    def _parse_list_field(value: Any) -> Any:
        """Allow JSON arrays or comma-separated strings for list settings."""
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return []
            if stripped.startswith("[") and stripped.endswith("]"):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    # Fall back to CSV parsing below when JSON parse fails
                    pass
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("CORS_ORIGINS", "CORS_METHODS", "CORS_HEADERS", mode="before")
    @classmethod
    def parse_cors_fields(cls, v: Any) -> Any:
        """Normalize CORS list fields from env strings."""
        return cls._parse_list_field(v)

    @field_validator("GOOGLE_SCOPES")
    @classmethod
    def require_email_scope(cls, v: str) -> str:
        """Accounts are matched by email, so the email scope is mandatory."""
        scopes = v.split()
        if "email" not in scopes:
            raise ValueError("GOOGLE_SCOPES must include 'email'")
        return " ".join(scopes)

    # ============================================================================
    # Helper Properties
    # ============================================================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode"""
        return self.ENVIRONMENT.lower() == "testing"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    Source: https://fastapi.tiangolo.com/advanced/settings/
    """
    return Settings()


settings = get_settings()
