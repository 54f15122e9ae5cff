"""
Logging for the ICT observatory.

Everything logs under the ``ict_observatory`` logger tree. ``configure_logging``
turns a ``LoggingConfig`` into a ``dictConfig`` call: JSON lines or plain text,
stdout and/or a rotating file. Records pick up the current request context
(acting user, assessment or school, framework code, operation) from a shared filter.
"""

from __future__ import annotations

import json
import logging
import logging.config
import time
from collections.abc import Callable
from datetime import datetime, timezone
from functools import wraps
from types import TracebackType
from typing import Any, ParamSpec, TypeVar

from .config import LoggingConfig, get_settings

P = ParamSpec("P")
R = TypeVar("R")

ROOT_LOGGER = "ict_observatory"
CONTEXT_FIELDS = ("user_id", "assessment_id", "school_id", "framework_code", "operation")

# Third-party loggers kept quiet unless they have something to warn about.
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with any request context attached."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(
            {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}
        )

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextFilter(logging.Filter):
    """Copies the current request context onto every record it sees."""

    def __init__(self):
        super().__init__()
        self.context: dict[str, Any] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


context_filter = ContextFilter()


def _handlers(config: LoggingConfig) -> dict[str, dict[str, Any]]:
    formatter = "json" if config.structured else "plain"
    handlers: dict[str, dict[str, Any]] = {}

    if config.console_enabled:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": formatter,
        }

    file_handler = config.get_file_handler_config()
    if file_handler is not None:
        # Files are always JSON so they can be shipped and queried.
        handlers["file"] = {**file_handler, "formatter": "json"}

    if not handlers:
        handlers["null"] = {"class": "logging.NullHandler"}

    for handler in handlers.values():
        handler["level"] = config.level
        handler["filters"] = ["context"]
    return handlers


def configure_logging(config: LoggingConfig | None = None) -> None:
    """
    Apply ``config`` (default: the ``LOG_`` settings for the current environment).

    Example:
        >>> configure_logging(LoggingConfig(level="DEBUG", file_path=None))
    """
    config = config or get_settings().logging
    handlers = _handlers(config)
    names = list(handlers)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": StructuredFormatter},
                "plain": {
                    "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "filters": {"context": {"()": lambda: context_filter}},
            "handlers": handlers,
            "loggers": {
                ROOT_LOGGER: {"level": config.level, "handlers": names, "propagate": False},
                **{
                    name: {"level": "WARNING", "handlers": names, "propagate": False}
                    for name in QUIET_LOGGERS
                },
            },
            "root": {"level": "WARNING", "handlers": names},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``, placed under ``ict_observatory`` if it isn't already."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_context(**kwargs: Any) -> None:
    context_filter.context.update(kwargs)


def clear_context() -> None:
    context_filter.context.clear()


class LogContext:
    """Adds context for the duration of a ``with`` block, then restores the old context."""

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self._saved: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._saved = dict(context_filter.context)
        context_filter.context.update(self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        context_filter.context = self._saved


def _instrument(
    operation: str,
    get_target_logger: Callable[[Callable[..., Any]], logging.Logger],
    level: int,
    timed: bool,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            log = get_target_logger(func)
            started = time.perf_counter()
            with LogContext(operation=operation):
                log.log(level, f"Starting {operation}")
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    elapsed = f" after {time.perf_counter() - started:.3f}s" if timed else ""
                    log.error(f"Failed {operation}{elapsed}: {e}", exc_info=True)
                    raise
                elapsed = f" in {time.perf_counter() - started:.3f}s" if timed else ""
                log.log(level, f"Completed {operation}{elapsed}")
                return result

        return wrapper

    return decorator


def log_operation(
    operation: str, logger: logging.Logger | None = None
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Log the start, completion or failure of an application use case.

    Example:
        >>> @log_operation("complete_assessment")
        ... def complete_assessment(session, assessment_id):
        ...     ...
    """
    return _instrument(
        operation, lambda func: logger or get_logger(func.__module__), logging.INFO, timed=False
    )


def log_database_operation(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Like ``log_operation`` for repository calls: DEBUG level, with timing."""
    return _instrument(
        f"db_{operation}", lambda func: get_logger("database"), logging.DEBUG, timed=True
    )


if not logging.getLogger(ROOT_LOGGER).handlers:
    configure_logging()
