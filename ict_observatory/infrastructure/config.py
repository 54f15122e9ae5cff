"""
Settings for the ICT observatory, read from the environment with pydantic-settings.

Each section has its own prefix:

* ``DB_`` - where assessments and the user directory are stored
* ``LOG_`` - log level, JSON or plain output, rotating log file
* ``SECURITY_`` - password policy and CORS for the JSON API
* ``APP_`` - environment, API metadata and the export / user-management switches

Logging defaults follow ``APP_ENVIRONMENT`` unless a ``LOG_`` variable says otherwise.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

Environment = Literal["development", "testing", "production"]


class DatabaseConfig(BaseSettings):
    """
    Storage backend for assessments and users.

    SQLite is the default; MySQL needs the ``mysql`` extra (pymysql).

    Example:
        >>> DatabaseConfig(sqlite_path="./data/observatory").get_connection_url()
        'sqlite:///data/observatory.db'
    """

    backend: Literal["sqlite", "mysql"] = Field("sqlite", description="Database backend")
    sqlite_path: str | None = Field("./ict_observatory.db", description="SQLite file")

    mysql_host: str | None = Field("localhost", description="MySQL host")
    mysql_port: int | None = Field(3306, ge=1, le=65535, description="MySQL port")
    mysql_user: str | None = Field("root", description="MySQL user")
    mysql_password: str | None = Field("", description="MySQL password")
    mysql_database: str | None = Field("ict_observatory", description="MySQL schema")
    mysql_charset: str = Field("utf8mb4", description="MySQL character set")

    pool_pre_ping: bool = Field(True, description="Check connections before use")
    pool_recycle: int = Field(3600, ge=60, description="Recycle pooled connections (seconds)")
    echo: bool = Field(False, description="Echo SQL statements")

    model_config = {"env_prefix": "DB_", "case_sensitive": False}

    @field_validator("sqlite_path")
    @classmethod
    def normalise_sqlite_path(cls, v):
        if v and v != ":memory:":
            path = Path(v)
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.suffix:
                v = str(path.with_suffix(".db"))
        return v

    @model_validator(mode="after")
    def require_mysql_target(self):
        if self.backend == "mysql":
            missing = [
                name
                for name in ("mysql_host", "mysql_user", "mysql_database")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"MySQL backend requires: {', '.join(missing)}")
        return self

    def get_connection_url(self) -> str:
        if self.backend == "mysql":
            password_part = f":{self.mysql_password}" if self.mysql_password else ""
            return (
                f"mysql+pymysql://{self.mysql_user}{password_part}@{self.mysql_host}:"
                f"{self.mysql_port}/{self.mysql_database}?charset={self.mysql_charset}"
            )
        return f"sqlite:///{self.sqlite_path}"

    def get_engine_options(self) -> dict[str, Any]:
        return {
            "echo": self.echo,
            "future": True,
            "pool_pre_ping": self.pool_pre_ping,
            "pool_recycle": self.pool_recycle,
        }


class LoggingConfig(BaseSettings):
    """Handlers and format for the ``ict_observatory`` logger tree."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Minimum level"
    )
    file_path: str | None = Field("./logs/ict_observatory.log", description="Rotating log file")
    max_bytes: int = Field(10 * 1024 * 1024, ge=1024, description="Rotate after this many bytes")
    backup_count: int = Field(5, ge=1, description="Rotated files to keep")
    structured: bool = Field(True, description="JSON lines instead of plain text")
    console_enabled: bool = Field(True, description="Also log to stdout")

    model_config = {"env_prefix": "LOG_", "case_sensitive": False}

    @field_validator("file_path")
    @classmethod
    def ensure_log_directory(cls, v):
        if v:
            Path(v).parent.mkdir(parents=True, exist_ok=True)
        return v

    def get_file_handler_config(self) -> dict[str, Any] | None:
        if not self.file_path:
            return None
        return {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": self.file_path,
            "maxBytes": self.max_bytes,
            "backupCount": self.backup_count,
            "encoding": "utf-8",
        }


# Per-environment logging defaults; an explicit LOG_* variable always wins.
ENVIRONMENT_LOGGING: dict[str, dict[str, Any]] = {
    "development": {"level": "DEBUG", "structured": False},
    "testing": {"level": "WARNING", "file_path": None, "console_enabled": False},
    "production": {"level": "INFO", "console_enabled": False},
}


class SecurityConfig(BaseSettings):
    """Password policy for the user directory and CORS for the JSON API."""

    min_password_length: int = Field(8, ge=6, description="Minimum password length")
    password_hash_iterations: int = Field(
        120_000, ge=1_000, description="PBKDF2 iterations for new password hashes"
    )
    cors_origins: list[str] = Field(["*"], description="Allowed CORS origins")
    cors_methods: list[str] = Field(
        ["GET", "POST", "PUT", "PATCH", "DELETE"], description="Allowed CORS methods"
    )

    model_config = {"env_prefix": "SECURITY_", "case_sensitive": False}


class ApplicationConfig(BaseSettings):
    environment: Environment = Field("development", description="Deployment environment")
    debug: bool = Field(False, description="FastAPI debug mode")
    title: str = Field("ICT Observatory", description="API title")
    version: str = Field("0.1.0", description="API version")

    enable_data_export: bool = Field(True, description="Allow CSV/JSON exports")
    enable_user_management: bool = Field(True, description="Allow user directory changes")

    model_config = {"env_prefix": "APP_", "case_sensitive": False}

    @model_validator(mode="after")
    def no_debug_in_production(self):
        if self.debug and self.environment == "production":
            raise ValueError("Debug mode cannot be enabled in production")
        return self


class Settings:
    """
    Lazily-built settings sections.

    Sections are only read from the environment on first access, so tests can
    adjust variables after import and call ``reset_settings``.
    """

    def __init__(self):
        self._app: ApplicationConfig | None = None
        self._database: DatabaseConfig | None = None
        self._logging: LoggingConfig | None = None
        self._security: SecurityConfig | None = None

    @property
    def app(self) -> ApplicationConfig:
        if self._app is None:
            self._app = ApplicationConfig()
        return self._app

    @property
    def database(self) -> DatabaseConfig:
        if self._database is None:
            self._database = DatabaseConfig()
        return self._database

    @property
    def logging(self) -> LoggingConfig:
        if self._logging is None:
            defaults = ENVIRONMENT_LOGGING[self.app.environment]
            self._logging = LoggingConfig(
                **{
                    key: value
                    for key, value in defaults.items()
                    if f"LOG_{key.upper()}" not in os.environ
                }
            )
        return self._logging

    @property
    def security(self) -> SecurityConfig:
        if self._security is None:
            self._security = SecurityConfig()
        return self._security

    def is_development(self) -> bool:
        return self.app.environment == "development"

    def is_testing(self) -> bool:
        return self.app.environment == "testing"

    def get_environment_info(self) -> dict[str, Any]:
        """Summary of the active configuration, logged when the server starts."""
        return {
            "environment": self.app.environment,
            "version": self.app.version,
            "debug": self.app.debug,
            "database_backend": self.database.backend,
            "logging_level": self.logging.level,
            "features": {
                "data_export": self.app.enable_data_export,
                "user_management": self.app.enable_user_management,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def override_settings(**kwargs) -> Settings:
    """
    Set environment variables and rebuild the cached settings.

    Keys use the section prefix, e.g. ``app_environment="testing"`` or
    ``db_sqlite_path=":memory:"``.
    """
    for key, value in kwargs.items():
        os.environ[key.upper()] = str(value)

    get_settings.cache_clear()
    return get_settings()


def reset_settings() -> None:
    get_settings.cache_clear()
