"""
Module: inventory_kernel.models.location
Responsibility: ORM persistence for storage locations and their occupancy.
Architecture position: Kernel > Models.

Invariants enforced:
    - 0 <= current_occupancy <= capacity (CHECK).
    - 1 <= capacity <= 10000 (CHECK).
    - At most one row has is_default = true (partial unique index).
"""

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase
from inventory_kernel.db.types import enum_type
from inventory_kernel.domain.states import LocationType

MIN_CAPACITY = 1
MAX_CAPACITY = 10000
DEFAULT_CAPACITY = 50


class Location(TrackedBase):
    """
    A place where stock is kept.

    Contract:
        current_occupancy is changed only by OccupancyService through
        atomic conditional UPDATE statements.
    """

    __tablename__ = "locations"

    __table_args__ = (
        CheckConstraint(
            f"capacity >= {MIN_CAPACITY} AND capacity <= {MAX_CAPACITY}",
            name="ck_locations_capacity_range",
        ),
        CheckConstraint(
            "current_occupancy >= 0 AND current_occupancy <= capacity",
            name="ck_locations_occupancy_bound",
        ),
        Index(
            "uq_locations_single_default",
            "is_default",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
        Index("idx_locations_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    building: Mapped[str | None] = mapped_column(String(100), nullable=True)
    floor: Mapped[str | None] = mapped_column(String(50), nullable=True)

    capacity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_CAPACITY
    )
    current_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    location_type: Mapped[LocationType] = mapped_column(
        enum_type(LocationType, "ck_locations_type"),
        nullable=False,
        default=LocationType.STORAGE,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Location {self.name} {self.current_occupancy}/{self.capacity}>"
