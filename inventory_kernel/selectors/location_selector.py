"""
Module: inventory_kernel.selectors.location_selector
Responsibility: Read-only location queries: the default location, locations
    with spare capacity, and aggregate occupancy statistics.
Architecture position: Kernel > Selectors.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.dtos import LocationInfo, LocationStatistics
from inventory_kernel.models.location import Location
from inventory_kernel.selectors.base import BaseSelector


class LocationSelector(BaseSelector[Location]):
    """Location queries returning LocationInfo DTOs."""

    def _infos(self, stmt) -> list[LocationInfo]:
        rows = (
            self.session.execute(stmt.execution_options(populate_existing=True))
            .scalars()
            .all()
        )
        return [LocationInfo.from_model(row) for row in rows]

    def get(self, location_id: UUID) -> LocationInfo | None:
        rows = self._infos(select(Location).where(Location.id == location_id))
        return rows[0] if rows else None

    def find_default(self) -> LocationInfo | None:
        """The active default location, if any."""
        rows = self._infos(
            select(Location).where(
                Location.is_default.is_(True), Location.is_active.is_(True)
            )
        )
        return rows[0] if rows else None

    def with_capacity(self, min_capacity: int = 1) -> list[LocationInfo]:
        """Active locations with at least ``min_capacity`` free slots, by name."""
        return self._infos(
            select(Location)
            .where(
                Location.is_active.is_(True),
                Location.capacity - Location.current_occupancy >= min_capacity,
            )
            .order_by(Location.name)
        )

    def statistics(self) -> LocationStatistics:
        total, active, total_capacity, total_occupancy = self.session.execute(
            select(
                func.count(Location.id),
                func.coalesce(func.sum(case((Location.is_active.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(Location.capacity), 0),
                func.coalesce(func.sum(Location.current_occupancy), 0),
            )
        ).one()

        total_capacity = int(total_capacity)
        total_occupancy = int(total_occupancy)
        if total:
            average = round_money(Decimal(total_occupancy) / Decimal(total))
        else:
            average = round_money(Decimal(0))
        if total_capacity:
            utilization = round_money(
                Decimal(total_occupancy) * 100 / Decimal(total_capacity)
            )
        else:
            utilization = round_money(Decimal(0))

        return LocationStatistics(
            total_locations=total,
            active_locations=int(active),
            inactive_locations=total - int(active),
            total_capacity=total_capacity,
            total_occupancy=total_occupancy,
            available_capacity=total_capacity - total_occupancy,
            average_occupancy=average,
            utilization_percentage=utilization,
        )
