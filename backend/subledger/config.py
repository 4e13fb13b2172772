"""Application Configuration — file + environment settings via pydantic-settings.

Invariants:
    - Priority: init kwargs > environment > .env > config.toml > defaults
    - get_settings() is cached (lru_cache): single instance per process
    - sqlalchemy_url() always yields an async driver URL

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env support
    - TOML config file read by pydantic-settings' own source (stdlib tomllib parser);
      path overridable with SUBLEDGER_CONFIG_FILE
    - DATABASE_URL wins over the db_* parts when set (hosted Postgres provides one)
"""

import os
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict,
    TomlConfigSettingsSource,
)
from sqlalchemy.engine import URL

CONFIG_FILE_ENV = "SUBLEDGER_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.toml"


class Settings(BaseSettings):
    """Application settings from config file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore",
    )

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8080

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "password"
    db_name: str = "subscriptions"
    db_sslmode: str = "disable"
    database_url: str | None = None

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str | None) -> str | None:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v or None

    database_pool_size: int = 20
    database_max_overflow: int = 10
    store_timeout_seconds: float | None = 10.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            file_secret_settings,
        )

    def sqlalchemy_url(self) -> str:
        """Explicit DATABASE_URL, else a postgresql+asyncpg URL built from db_*."""
        if self.database_url:
            return self.database_url
        query = {}
        if self.db_sslmode and self.db_sslmode != "disable":
            query["ssl"] = self.db_sslmode
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query=query,
        ).render_as_string(hide_password=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
