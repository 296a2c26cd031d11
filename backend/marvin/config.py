"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Marvin"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Managed backend (Supabase)
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str | None = None
    # HS256 projects can verify tokens locally; otherwise tokens are checked against the auth API
    supabase_jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Postgres connection string of the managed backend (DATABASE_URL)
    database_url_override: str | None = Field(
        None, validation_alias=AliasChoices("database_url", "database_url_override")
    )
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "postgres"

    @computed_field
    @property
    def database_url(self) -> str:
        """Get async database URL. Uses override if provided, otherwise constructs from parts."""
        if self.database_url_override:
            url = self.database_url_override
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            # asyncpg doesn't accept query params via URL; SSL goes through connect_args
            if "?" in url:
                url = url.split("?")[0]
            return url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @computed_field
    @property
    def database_requires_ssl(self) -> bool:
        """Check if the database connection requires SSL (Supabase pooler, etc.)."""
        if self.database_url_override:
            return "sslmode=require" in self.database_url_override or "ssl=require" in self.database_url_override
        return False

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Object storage (Supabase Storage S3 endpoint)
    storage_access_key_id: str | None = None
    storage_secret_access_key: str | None = None
    storage_bucket: str = "documents"
    storage_region: str = "eu-central-1"
    storage_endpoint_url: str | None = None

    # Model API
    openai_api_key: str
    openai_api_base: str | None = None
    openai_max_retries: int = 2
    openai_timeout_seconds: float = 60.0

    # Completion defaults
    llm_model: str = "gpt-4o"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 800
    llm_frequency_penalty: float = 0.1
    llm_presence_penalty: float = 0.1
    embedding_model: str = "text-embedding-3-large"

    # Documents
    max_upload_size_bytes: int = 10 * 1024 * 1024  # 10MB
    chunk_size: int = 1000
    chunk_overlap: int = 100
    embed_documents: bool = True
    search_default_limit: int = 5

    # Sessions
    # Whether creating a session marks the user's other sessions inactive
    deactivate_previous_sessions: bool = False

    # Admin
    admin_emails: list[str] = []


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "Interner Serverfehler") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
