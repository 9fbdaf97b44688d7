"""
Declarative base shared by all planner tables.

Every table gets an integer primary key, a UUID for external references and
created/updated timestamps. Planner code reads rows into snapshot
dataclasses (see services/demand_service.py) rather than serializing models
directly, so the base stays minimal.
"""

import uuid as uuid_lib
from typing import Any

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base, validates

from batch_planner.utils.datetime_utils import utc_now

Base = declarative_base()


class BaseModel(Base):
    """Abstract base with id, uuid, created_at and updated_at."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Stored as string for SQLite compatibility
    uuid = Column(
        String(36), unique=True, nullable=False, default=lambda: str(uuid_lib.uuid4()), index=True
    )

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    @validates("uuid")
    def _validate_uuid(self, _key: str, value: Any) -> str:
        if value is None:
            return value
        return str(value)

    def __repr__(self) -> str:
        label = getattr(self, "code", None) or getattr(self, "name", None)
        if label is None:
            return f"{self.__class__.__name__}(id={self.id})"
        return f"{self.__class__.__name__}(id={self.id}, {label!r})"
