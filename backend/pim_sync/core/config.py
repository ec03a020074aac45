"""Centralized application settings using pydantic settings."""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pim_sync.models.job import EnvironmentConfig

# Load environment variables from .env file
# Look for .env in the backend directory or project root
env_path = Path(__file__).parent.parent.parent / ".env"
if not env_path.exists():
    env_path = Path(__file__).parent.parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path, override=False)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]


class Settings(BaseSettings):
    """Environment-aware configuration (ERP credentials, queue and store settings)."""

    # Application settings
    app_name: str = "PIM Sync"
    log_level: str = "INFO"

    # Job store settings
    job_store_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Where job snapshots live: in-process dict or Redis",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (used when JOB_STORE_BACKEND=redis)",
    )
    job_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        gt=0,
        description="How long finished jobs stay queryable before eviction",
    )

    # Outbound ERP calls
    erp_timeout_seconds: float = Field(default=30.0, gt=0)
    record_type: str = "inventoryItem"
    price_field: str = "Base Price"
    price_level_marker: str = "pricelevel=1"
    field_map_path: str | None = Field(
        default=None,
        description="Optional JSON file overriding the built-in field map",
    )

    # Status streaming
    stream_interval_seconds: float = Field(default=2.0, ge=0)
    stream_idle_limit: int = Field(
        default=150,
        description="Unchanged snapshots tolerated before the stream gives up",
    )

    # NetSuite sandbox credentials
    netsuite_sandbox_account: str | None = None
    netsuite_sandbox_key: str | None = None
    netsuite_sandbox_secret: str | None = None
    netsuite_sandbox_url: str | None = None

    # NetSuite production credentials
    netsuite_prod_account: str | None = None
    netsuite_prod_key: str | None = None
    netsuite_prod_secret: str | None = None
    netsuite_prod_url: str | None = None

    # CORS settings - stored as string, converted to list via property
    cors_origins_raw: str | None = Field(
        default=None,
        validation_alias="CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins",
        exclude=True,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string to list."""
        if self.cors_origins_raw is None or not self.cors_origins_raw.strip():
            return list(DEFAULT_CORS_ORIGINS)
        origins = [
            origin.strip().rstrip("/")
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]
        return origins or list(DEFAULT_CORS_ORIGINS)

    @field_validator("netsuite_sandbox_url", "netsuite_prod_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """REST base URLs are joined with '/<record>/<id>', so drop trailing slashes."""
        if v is None:
            return None
        return v.strip().rstrip("/") or None

    def environment_config(self, name: str | None) -> EnvironmentConfig:
        """Map an environment name to its ERP config; anything but production is sandbox."""
        if str(name or "").strip().lower() == "production":
            return EnvironmentConfig(
                name="Production",
                account=self.netsuite_prod_account,
                consumer_key=self.netsuite_prod_key,
                consumer_secret=self.netsuite_prod_secret,
                rest_url=self.netsuite_prod_url,
            )
        return EnvironmentConfig(
            name="Sandbox",
            account=self.netsuite_sandbox_account,
            consumer_key=self.netsuite_sandbox_key,
            consumer_secret=self.netsuite_sandbox_secret,
            rest_url=self.netsuite_sandbox_url,
        )


@lru_cache
def get_settings() -> Settings:
    """Provide singleton-like access for dependency injection."""
    return Settings()
