# ict_observatory/infrastructure/repositories_base.py
from __future__ import annotations

import builtins
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .exceptions import DatabaseError, handle_database_error

T = TypeVar("T")  # ORM model type


class BaseRepository(Generic[T]):
    """
    Generic repository with common CRUD + query helpers.

    Writes only flush; committing belongs to the unit of work. Subclasses set
    ``model`` and may override ``_not_found`` to raise their domain error.
    """

    model: type[T]  # must be set by subclasses

    def __init__(self, session: Session):
        if not hasattr(self, "model") or self.model is None:
            raise ValueError(f"{self.__class__.__name__}.model must be set to an ORM class.")
        self.s = session

    def _not_found(self, id_: Any) -> Exception:
        return DatabaseError(f"{self.model.__name__} with id {id_} not found", "get")

    def _flush(self, operation: str) -> None:
        try:
            self.s.flush()
        except SQLAlchemyError as e:
            self.s.rollback()
            raise handle_database_error(e, operation) from e

    # ---------- Read ----------
    def get(self, id_: Any) -> T | None:
        return self.s.get(self.model, id_)

    def get_by_id_required(self, id_: Any) -> T:
        obj = self.get(id_)
        if obj is None:
            raise self._not_found(id_)
        return obj

    def list(
        self,
        *filters: Any,
        order_by: Iterable[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> builtins.list[T]:
        q = self.s.query(self.model)
        for f in filters:
            q = q.filter(f)
        if order_by:
            for ob in order_by:
                q = q.order_by(ob)
        if offset:
            q = q.offset(offset)
        if limit:
            q = q.limit(limit)
        return list(q.all())

    def exists(self, *filters: Any) -> bool:
        q = self.s.query(self.model)
        for f in filters:
            q = q.filter(f)
        return bool(self.s.query(q.exists()).scalar())

    def count(self, *filters: Any) -> int:
        q = self.s.query(self.model)
        for f in filters:
            q = q.filter(f)
        return int(q.count())

    # ---------- Write ----------
    def create(self, **fields: Any) -> T:
        obj = self.model(**fields)
        self.s.add(obj)
        self._flush(f"create {self.model.__tablename__}")
        return obj

    def update(self, obj: T, **fields: Any) -> T:
        for k, v in fields.items():
            setattr(obj, k, v)
        self._flush(f"update {self.model.__tablename__}")
        return obj

    def delete(self, obj: T) -> None:
        self.s.delete(obj)
        self._flush(f"delete {self.model.__tablename__}")
