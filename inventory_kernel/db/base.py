"""
Module: inventory_kernel.db.base
Responsibility: Declarative base for the inventory schema: UUID keys stored as
    strings, the Python-type to column-type map, and the audit columns shared
    by every mutable table.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    every model imports from here and this module imports nothing above it.

Invariants enforced:
    - Every row is keyed by a uuid4, stored as String(36) so SQLite and
      PostgreSQL share one schema.
    - datetime columns are timezone-aware; Decimal columns are Numeric.
    - Tables built on TrackedBase always record their creating actor.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID persisted as its 36-character text form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """
    Root of every ORM model.

    Annotated columns pick their SQL type from ``type_annotation_map``:
    ``int`` becomes BigInteger (counters and ledger sequence numbers),
    ``datetime`` is always timezone-aware.
    """

    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        int: BigInteger,
        datetime: DateTime(timezone=True),
        Decimal: Numeric(38, 9),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base adding who/when audit columns.

    created_at and updated_at are filled by the database; created_by_id is
    mandatory, updated_by_id is stamped by the service that last wrote the row.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString())
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString())
