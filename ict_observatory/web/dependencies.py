from __future__ import annotations

from collections.abc import Callable, Generator

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session, sessionmaker

from ict_observatory.application import api as app_api
from ict_observatory.domain.models import User
from ict_observatory.infrastructure.config import DatabaseConfig, get_settings
from ict_observatory.infrastructure.db import create_database_engine, create_session_factory
from ict_observatory.infrastructure.exceptions import AuthenticationError, UserNotFoundError
from ict_observatory.infrastructure.logging import set_context


def get_db_config(request: Request) -> DatabaseConfig:
    config = getattr(request.app.state, "db_config", None)
    if config is None:
        config = get_settings().database
        request.app.state.db_config = config
    return config


def get_session_factory(request: Request) -> sessionmaker[Session]:
    config = get_db_config(request)
    cached_factory = getattr(request.app.state, "session_factory", None)
    cached_config = getattr(request.app.state, "session_factory_config", None)

    current_config = config.model_dump()
    if cached_factory is not None and cached_config == current_config:
        return cached_factory

    session_factory = create_session_factory(create_database_engine(config))
    request.app.state.session_factory = session_factory
    request.app.state.session_factory_config = current_config
    return session_factory


def get_db_session(request: Request) -> Generator[Session, None, None]:
    session_factory = get_session_factory(request)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: Session = Depends(get_db_session),
) -> User:
    """Resolve the acting user from the ``X-User-Id`` header."""
    if x_user_id is None:
        raise AuthenticationError("Missing X-User-Id header")
    try:
        user = app_api.get_user(db, x_user_id)
    except UserNotFoundError as exc:
        raise AuthenticationError(f"Unknown user {x_user_id}") from exc
    if not user.is_active:
        raise AuthenticationError("Account is inactive")
    set_context(user_id=user.id)
    return user


def require_permission(permission: str) -> Callable[..., User]:
    """
    Dependency factory: the current user, provided their role grants ``permission``.

    Example:
        >>> @router.get("/users")
        ... def users(user: User = Depends(require_permission("can_manage_users"))): ...
    """

    def dependency(user: User = Depends(get_current_user)) -> User:
        app_api.require_permission(user, permission)
        return user

    return dependency
