"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All deployment-specific values come from environment variables or .env
    - get_settings() is cached (lru_cache) — single instance per process
    - max_page_size bounds every paginated listing

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from expense_tracker.core.domain_types import DEFAULT_MAX_PAGE_SIZE


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://expenses:expenses@db:5432/expensetracker"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Listing
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    default_sort: str = "id"

    # Caller context (no authentication layer, see X-User-Id header)
    default_user_id: str = "https://expensetrackeridsrv3/embedded_1"

    # API
    cors_origins: list[str] = ["http://localhost:27470"]
    etag_caching: bool = True

    # Client
    api_base_url: str = "http://localhost:43321/"
    api_version: str | None = None
    client_timeout_seconds: float = 30.0

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
