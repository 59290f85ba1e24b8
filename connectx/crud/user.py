"""CRUD operations for `User` model."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from connectx.core.exceptions import InternalConsistencyError
from connectx.crud.base import CRUDBase
from connectx.models.user import User
from connectx.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class CRUDUser(CRUDBase[User, UserCreate]):
    conflict_detail = "Username or email already registered"

    def _get_unique(self, db: Session, column, value: str) -> Optional[User]:
        # Case-insensitive exact match on a column backed by a unique lower() index
        stmt = select(User).where(func.lower(column) == value.lower()).limit(2)
        matches = db.scalars(stmt).all()
        if len(matches) > 1:
            logger.error(
                f"[STORAGE] Uniqueness broken: {len(matches)} users share {column.key}={value!r}"
            )
            raise InternalConsistencyError(f"Duplicate users for {column.key}")
        return matches[0] if matches else None

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        return self._get_unique(db, User.username, username)

    def get_by_email(self, db: Session, email: Optional[str]) -> Optional[User]:
        if not email:
            return None
        return self._get_unique(db, User.email, email)

    def get_many(self, db: Session, ids: Iterable[int]) -> Dict[int, User]:
        """Batch-load users keyed by id."""
        ids = set(ids)
        if not ids:
            return {}
        stmt = select(User).where(User.id.in_(ids))
        return {user.id: user for user in db.scalars(stmt)}

    def create_user(self, db: Session, *, user_in: UserCreate, password_hash: str) -> User:
        user_data = user_in.model_dump(exclude_unset=True)
        user_data.pop("password", None)
        user_data["password_hash"] = password_hash
        return self._persist(db, User(**user_data))

    def _conflict_detail(self, error: IntegrityError) -> str:
        message = str(error.orig).lower()
        if "username" in message:
            return "Username already exists"
        if "email" in message:
            return "Email already exists"
        return self.conflict_detail


# Singleton instance
crud_user = CRUDUser(User)
