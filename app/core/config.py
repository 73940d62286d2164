"""
Centralized configuration management.

- All secrets (service role key, JWT secret, DB password, storage keys) MUST come
  from environment variables or a secure secret store (never hardcoded)
- The service role key is server-side only: never serialize it, never log it
- Do not spread os.getenv calls all over the codebase
"""
from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Supabase (identity provider) ---
    SUPABASE_URL: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL"),
        description="Supabase project base URL",
    )
    SUPABASE_ANON_KEY: str = Field(default="", description="Supabase public (anon) key")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(default="", description="Supabase service role key (server-side only)")
    SUPABASE_JWT_SECRET: str = Field(default="", description="Secret used to verify Supabase access tokens")
    JWT_AUDIENCE: str = Field(default="authenticated", description="Expected audience of access tokens")

    # --- Redirects ---
    INVITE_REDIRECT_URL: str = Field(
        default="http://localhost:5173/criar-senha",
        description="Landing page where invited users set their password",
    )
    PASSWORD_RESET_REDIRECT_URL: str = Field(
        default="http://localhost:5173/resetar-senha",
        description="Landing page for password recovery links",
    )

    # --- Postgres (Supabase database) ---
    PG_HOST: str = Field(default="", description="PostgreSQL host")
    PG_PORT: int = Field(default=5432, description="PostgreSQL port")
    PG_DB: str = Field(default="postgres", description="PostgreSQL database name")
    PG_USER: str = Field(default="postgres", description="PostgreSQL user")
    PG_PASSWORD: str = Field(default="", description="PostgreSQL password")
    PG_SSLMODE: str = Field(default="require", description="PostgreSQL SSL mode (require/disable)")
    PG_SCHEMA: str = Field(default="public", description="PostgreSQL schema")
    PG_POOL_MAX: int = Field(default=10, description="Max pooled connections")

    # --- Storage (Supabase Storage, S3 protocol) ---
    STORAGE_BUCKET: str = Field(default="avatars", description="Bucket holding company logos")
    STORAGE_S3_ENDPOINT: str | None = Field(default=None, description="S3 endpoint (defaults to <SUPABASE_URL>/storage/v1/s3)")
    STORAGE_REGION: str = Field(default="us-east-1", description="Storage region")
    STORAGE_ACCESS_KEY: str = Field(default="", description="Storage S3 access key id")
    STORAGE_SECRET_KEY: str = Field(default="", description="Storage S3 secret key")
    LOGO_MAX_BYTES: int = Field(default=3 * 1024 * 1024, description="Max logo upload size in bytes")

    # --- Providers ---
    PROVIDER_TIMEOUT_S: float = Field(default=5.0, description="Timeout applied to each provider call")
    IDENTITY_PAGE_SIZE: int = Field(default=1000, description="Accounts fetched per identity directory page")

    # --- HTTP ---
    PORT: int = Field(default=5000, description="Listening port")
    AUTH_ENABLED: bool = Field(default=False, description="Derive role/company from the bearer token")
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="CORS allowed origins (comma-separated)",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def storage_endpoint(self) -> str:
        if self.STORAGE_S3_ENDPOINT:
            return self.STORAGE_S3_ENDPOINT.rstrip("/")
        return f"{self.SUPABASE_URL.rstrip('/')}/storage/v1/s3"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def missing_provider_settings(self) -> list[str]:
        """Names of the settings the provider clients cannot start without."""
        required = (
            "SUPABASE_URL",
            "SUPABASE_ANON_KEY",
            "SUPABASE_SERVICE_ROLE_KEY",
            "PG_HOST",
            "PG_PASSWORD",
        )
        return [name for name in required if not getattr(self, name)]


settings = Settings()
