"""
Database engine and session factory built from the centralized configuration.

SQLite connections get foreign-key enforcement switched on so that deleting an
assessment cascades to its stored scores the same way it does on MySQL.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DatabaseConfig, get_settings
from .exceptions import ConfigurationError, handle_database_error
from .logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database_engine(config: DatabaseConfig | None = None, url: str | None = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        config: Database configuration (uses settings if None)
        url: Explicit connection URL, overriding ``config``

    Example:
        >>> engine = create_database_engine(url="sqlite:///:memory:")
    """
    if config is None:
        config = get_settings().database

    connection_url = url or config.get_connection_url()
    is_sqlite = connection_url.startswith("sqlite")

    if is_sqlite:
        options: dict = {"echo": config.echo, "future": True}
        if ":memory:" in connection_url or connection_url == "sqlite://":
            # one shared connection, otherwise every session sees an empty database
            options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        options = config.get_engine_options()

    logger.info(f"Creating database engine for {'sqlite' if is_sqlite else config.backend}")
    logger.debug(f"Connection URL: {connection_url.split('@')[-1]}")

    try:
        engine = create_engine(connection_url, **options)
    except Exception as e:
        logger.error(f"Failed to create database engine: {str(e)}")
        raise handle_database_error(e, "create engine") from e

    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine | None = None) -> sessionmaker:
    """
    Create the session factory used by the unit of work.

    Example:
        >>> SessionLocal = create_session_factory(create_database_engine())
        >>> with SessionLocal() as session:
        ...     pass
    """
    if engine is None:
        engine = create_database_engine()

    return sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
    )


def make_engine_and_session(connection_url: str | None = None) -> tuple[Engine, sessionmaker]:
    engine = create_database_engine(url=connection_url)
    return engine, create_session_factory(engine)


def get_database_url() -> str:
    try:
        return get_settings().database.get_connection_url()
    except ValueError as e:
        raise ConfigurationError(f"Invalid database settings: {e}", config_key="database") from e


def is_database_configured() -> bool:
    """Return True when the database settings produce a usable connection URL."""
    try:
        get_database_url()
        return True
    except ConfigurationError as e:
        logger.warning(f"Database configuration invalid: {e.message}")
        return False
