"""Generic CRUD base class for SQLAlchemy models."""

from __future__ import annotations

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from connectx.core.exceptions import ConstraintViolation
from connectx.database import Base


logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType]):
	"""Reusable CRUD helper for SQLAlchemy models.

	All methods operate on model instances and return database objects, not schemas.
	Unique-key collisions surface as `ConstraintViolation`; the session is rolled
	back first, so a failed write leaves nothing behind.
	"""

	conflict_detail = "Record already exists"
	missing_reference_detail = "Referenced record does not exist"

	def __init__(self, model: Type[ModelType]):
		self.model = model

	# ----- Read -----
	def get(self, db: Session, id: Any) -> Optional[ModelType]:
		"""Get one record by primary key."""
		return db.get(self.model, id)

	# ----- Create -----
	def _persist(self, db: Session, db_obj: ModelType) -> ModelType:
		try:
			db.add(db_obj)
			db.commit()
			db.refresh(db_obj)
		except IntegrityError as e:
			db.rollback()
			logger.info(f"[STORAGE] {self.model.__name__} insert rejected: {e.orig}")
			if "foreign key" in str(e.orig).lower():
				raise ConstraintViolation(self.missing_reference_detail) from e
			raise ConstraintViolation(self._conflict_detail(e)) from e
		except Exception:
			db.rollback()
			raise
		return db_obj

	def _conflict_detail(self, error: IntegrityError) -> str:
		return self.conflict_detail

	# ----- Delete -----
	def delete(self, db: Session, *, db_obj: ModelType) -> None:
		"""Hard delete a record."""
		try:
			db.delete(db_obj)
			db.commit()
		except Exception:
			db.rollback()
			raise
