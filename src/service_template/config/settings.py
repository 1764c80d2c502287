from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import empty_to_none, split_csv, to_lowercase, to_uppercase


class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"
    SERVICE_NAME: str = "service-template"

    # Command (write) database
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "service_template"

    # Query (read) database; falls back to the command database when unset
    QUERY_POSTGRES_HOST: str | None = None
    QUERY_POSTGRES_DB: str | None = None

    # Full SQLAlchemy URL used for both engines when set (e.g. sqlite+aiosqlite:///:memory:)
    DATABASE_URL_OVERRIDE: str | None = None

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/service-template")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # Async command executor
    ASYNC_EXECUTOR_MAX_WORKERS: int = 10
    ASYNC_EXECUTOR_QUEUE_CAPACITY: int = 500
    ASYNC_EXECUTOR_THREAD_NAME_PREFIX: str = "async-command"
    COMMAND_ASYNC_TIMEOUT: float | None = None  # seconds; None waits indefinitely

    # i18n
    DEFAULT_LOCALE: str = "es"
    SUPPORTED_LOCALES: str = "es,en,pt"
    LOCALE_QUERY_PARAM: str = "lang"
    MESSAGES_DIR: Path | None = None

    # --- Derived settings ---
    def _postgres_url(self, host: str, db: str) -> str:
        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{host}:{self.POSTGRES_PORT}/"
            f"{db}"
        )

    @property
    def DATABASE_URL(self) -> str:
        """
        URL of the command (write) database.

        `DATABASE_URL_OVERRIDE` wins when provided, which is how tests and local
        runs point the service at SQLite without touching the Postgres fields.
        """
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return self._postgres_url(self.POSTGRES_HOST, self.POSTGRES_DB)

    @property
    def QUERY_DATABASE_URL(self) -> str:
        """
        URL of the query (read) database.

        Returns:
            str: the read replica URL built from QUERY_POSTGRES_HOST / QUERY_POSTGRES_DB,
                 or DATABASE_URL when neither is set.
        """
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        if not (self.QUERY_POSTGRES_HOST or self.QUERY_POSTGRES_DB):
            return self.DATABASE_URL
        return self._postgres_url(
            self.QUERY_POSTGRES_HOST or self.POSTGRES_HOST,
            self.QUERY_POSTGRES_DB or self.POSTGRES_DB,
        )

    @property
    def supported_locales(self) -> list[str]:
        return split_csv(self.SUPPORTED_LOCALES)

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_LEVEL value to uppercase so 'debug' and 'DEBUG' both pass
        the Literal check.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", "DEFAULT_LOCALE", mode="before")
    def normalize_lowercase(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    @field_validator("SUPPORTED_LOCALES", mode="before")
    def normalize_supported_locales(cls, v: str | list[str] | None) -> str:
        locales = [loc.lower() for loc in split_csv(v)]
        if not locales:
            raise ValueError("SUPPORTED_LOCALES must name at least one locale")
        return ",".join(locales)

    @field_validator(
        "COMMAND_ASYNC_TIMEOUT",
        "QUERY_POSTGRES_HOST",
        "QUERY_POSTGRES_DB",
        "DATABASE_URL_OVERRIDE",
        "MESSAGES_DIR",
        mode="before",
    )
    def blank_as_none(cls, v):
        return empty_to_none(v)

    @field_validator("ASYNC_EXECUTOR_MAX_WORKERS")
    def check_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("ASYNC_EXECUTOR_MAX_WORKERS must be >= 1")
        return v

    @field_validator("ASYNC_EXECUTOR_QUEUE_CAPACITY")
    def check_queue_capacity(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ASYNC_EXECUTOR_QUEUE_CAPACITY must be >= 0")
        return v

    # --- Settings config ---
    model_config = SettingsConfigDict(
        # Load environment variables from the .env file at the package root.
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings come from the environment only, so one cached instance per process is enough.
# Tests that change the environment call get_settings.cache_clear().
@lru_cache()
def get_settings() -> Settings:
    return Settings()
