# ict_observatory/infrastructure/repositories_user.py
from __future__ import annotations

import builtins
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from ..domain.models import User, UserRole
from .exceptions import DuplicateEmailError, UserNotFoundError
from .logging import log_database_operation as log_op
from .models import UserORM
from .repositories_base import BaseRepository as GenericBaseRepository


def user_to_domain(row: UserORM) -> User:
    return User(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        role=UserRole(row.role),
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
        district=row.district,
        sub_county=row.sub_county,
        school_id=row.school_id,
        last_login=row.last_login,
    )


class UserRepo(GenericBaseRepository[UserORM]):
    model = UserORM

    def __init__(self, session: Session):
        super().__init__(session)

    def _not_found(self, id_: Any) -> Exception:
        return UserNotFoundError(id_)

    # -------- Read --------

    @log_op("user.get")
    def get(self, id_: Any) -> UserORM | None:
        return super().get(id_)

    @log_op("user.get_by_email")
    def get_by_email(self, email: str) -> UserORM | None:
        return self.s.query(UserORM).filter(UserORM.email == email.lower()).one_or_none()

    @log_op("user.list")
    def list_users(
        self,
        role: UserRole | str | None = None,
        district: str | None = None,
        is_active: bool | None = None,
    ) -> builtins.list[UserORM]:
        filters = []
        if role is not None:
            filters.append(UserORM.role == UserRole(role).value)
        if district is not None:
            filters.append(UserORM.district == district)
        if is_active is not None:
            filters.append(UserORM.is_active.is_(is_active))
        return self.list(*filters, order_by=[UserORM.last_name, UserORM.first_name, UserORM.id])

    # -------- Write --------

    @log_op("user.create")
    def create_user(self, password_hash: str, **fields: Any) -> UserORM:
        email = fields["email"].lower()
        if self.exists(UserORM.email == email):
            raise DuplicateEmailError(email)
        fields["email"] = email
        fields["role"] = UserRole(fields["role"]).value
        return self.create(password_hash=password_hash, **fields)

    @log_op("user.update")
    def update(self, obj: UserORM, **fields: Any) -> UserORM:
        if "role" in fields and fields["role"] is not None:
            fields["role"] = UserRole(fields["role"]).value
        fields["updated_at"] = datetime.utcnow()
        return super().update(obj, **fields)

    @log_op("user.record_login")
    def record_login(self, obj: UserORM) -> UserORM:
        return super().update(obj, last_login=datetime.utcnow())

    @log_op("user.delete")
    def delete(self, obj: UserORM) -> None:
        super().delete(obj)
