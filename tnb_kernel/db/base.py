"""
Module: tnb_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy models of the persistence
    adapter.  Provides the UUID primary key convention and the type annotation
    map for consistent column types.
Architecture position: Kernel > DB.  Lowest-level import target of the
    adapter.  MUST NOT import from models/, selectors/, domain/ or outer layers.

Invariants enforced:
    - UUID primary keys stored as String(36) for portability (SQLite in tests,
      any SQL backend in production).
    - Decimal maps to Numeric(18, 6) with asdecimal, so rates and shares are
      never read back as floats.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import Date, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all adapter models.

    Guarantees:
        - id is a uuid4-generated UUID.
        - Decimal maps to Numeric(18, 6); date to Date; datetime to a
          timezone-aware DateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 6, asdecimal=True),
        date: Date,
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )
