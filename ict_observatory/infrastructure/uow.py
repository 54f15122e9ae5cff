from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import handle_database_error


class UnitOfWork:
    """One transaction per ``begin()`` block: commit on success, rollback on any error."""

    def __init__(self, SessionLocal: sessionmaker):
        self.SessionLocal = SessionLocal

    @contextmanager
    def begin(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as e:
            s.rollback()
            raise handle_database_error(e, "commit transaction") from e
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()
