"""
Application configuration.

All settings come from the environment (or a ``.env`` file) and are parsed
once at startup into an ``AppSettings`` instance that is passed explicitly to
the components that need it.
"""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

from ..exceptions import ConfigurationError

DEFAULT_ENCRYPTION_KEY = "elasticscope-default-key-change-me!"


class AppSettings(BaseSettings):
    """Configuration for the ElasticScope server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Credential cipher secret, hashed to an AES-256 key
    encryption_key: str = Field(default=DEFAULT_ENCRYPTION_KEY, alias="ENCRYPTION_KEY")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, alias="PORT")
    environment: Literal["development", "production"] = Field(default="development", alias="APP_ENV")
    static_dir: str = Field(default="dist", alias="STATIC_DIR")
    cors_origins: Annotated[list[str], NoDecode] = Field(default=["*"], alias="CORS_ORIGINS")

    # Persistence
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_type: Literal["sqlite", "postgresql", "mysql"] = Field(default="sqlite", alias="DB_TYPE")
    db_path: str = Field(default="./data/connections.db", alias="DB_PATH")
    db_host: str | None = Field(default=None, alias="DB_HOST")
    db_port: int | None = Field(default=None, alias="DB_PORT")
    db_name: str | None = Field(default=None, alias="DB_NAME")
    db_user: str | None = Field(default=None, alias="DB_USER")
    db_password: str | None = Field(default=None, alias="DB_PASSWORD")
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_echo: bool = Field(default=False, alias="SQL_ECHO")

    # Upstream clients. Self-managed clusters commonly use self-signed
    # certificates, so verification is off unless explicitly enabled.
    verify_certs: bool = Field(default=False, alias="ES_VERIFY_CERTS")
    copy_concurrency: int = Field(default=8, ge=1, alias="COPY_CONCURRENCY")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="/tmp/elasticscope.log", alias="LOG_FILE")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    @field_validator("db_type", mode="before")
    @classmethod
    def normalize_db_type(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def _require(self, name: str, value: str | None, backend: str) -> str:
        if value is None or str(value).strip() == "":
            raise ConfigurationError(
                f'Missing required environment variable "{name}" for {backend} database. '
                f"Please set {name} in your .env file or environment.",
                variable=name,
            )
        return value

    def resolve_database_url(self) -> str:
        """
        Build the SQLAlchemy async URL for the profile store.

        ``DATABASE_URL`` wins when set; otherwise the URL is assembled from
        ``DB_TYPE`` and the matching ``DB_*`` variables.

        Raises:
            ConfigurationError: If a variable required by the backend is missing
        """
        if self.database_url:
            return self.database_url

        if self.db_type == "sqlite":
            return f"sqlite+aiosqlite:///{Path(self.db_path)}"

        if self.db_type == "postgresql":
            drivername, backend, default_port = "postgresql+asyncpg", "PostgreSQL", 5432
        else:
            drivername, backend, default_port = "mysql+aiomysql", "MySQL", 3306

        url = URL.create(
            drivername,
            username=self._require("DB_USER", self.db_user, backend),
            password=self._require("DB_PASSWORD", self.db_password, backend),
            host=self._require("DB_HOST", self.db_host, backend),
            port=self.db_port or default_port,
            database=self._require("DB_NAME", self.db_name, backend),
        )
        return url.render_as_string(hide_password=False)
