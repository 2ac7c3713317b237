"""
Module: inventory_kernel.selectors.item_selector
Responsibility: Read-only item listings and aggregate inventory statistics.
Architecture position: Kernel > Selectors.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.dtos import InventoryStatistics, ItemSnapshot
from inventory_kernel.domain.states import ItemStatus
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.selectors.base import BaseSelector


class ItemSelector(BaseSelector[InventoryItem]):
    """Item queries returning ItemSnapshot DTOs."""

    def _snapshots(self, stmt) -> list[ItemSnapshot]:
        rows = (
            self.session.execute(stmt.execution_options(populate_existing=True))
            .scalars()
            .all()
        )
        return [ItemSnapshot.from_model(row) for row in rows]

    def get(self, item_id: UUID) -> ItemSnapshot | None:
        rows = self._snapshots(select(InventoryItem).where(InventoryItem.id == item_id))
        return rows[0] if rows else None

    def find_by_unique_id(self, unique_id: str) -> ItemSnapshot | None:
        rows = self._snapshots(
            select(InventoryItem).where(
                InventoryItem.unique_id == unique_id.strip().upper()
            )
        )
        return rows[0] if rows else None

    def available(self) -> list[ItemSnapshot]:
        """Items that can be issued right now, by asset name."""
        return self._snapshots(
            select(InventoryItem)
            .where(
                InventoryItem.status == ItemStatus.AVAILABLE,
                InventoryItem.balance_quantity_in_stock > 0,
            )
            .order_by(InventoryItem.asset_name, InventoryItem.unique_id)
        )

    def low_stock(self) -> list[ItemSnapshot]:
        """Available items at or below their minimum level, lowest stock first."""
        return self._snapshots(
            select(InventoryItem)
            .where(
                InventoryItem.status == ItemStatus.AVAILABLE,
                InventoryItem.balance_quantity_in_stock
                <= InventoryItem.minimum_stock_level,
            )
            .order_by(
                InventoryItem.balance_quantity_in_stock, InventoryItem.unique_id
            )
        )

    def issued(self) -> list[ItemSnapshot]:
        """Issued items, most recently issued first."""
        return self._snapshots(
            select(InventoryItem)
            .where(InventoryItem.status == ItemStatus.ISSUED)
            .order_by(InventoryItem.issued_date.desc(), InventoryItem.unique_id)
        )

    def overdue(self, as_of: datetime) -> list[ItemSnapshot]:
        """Issued items whose expected return date is before ``as_of``."""
        return self._snapshots(
            select(InventoryItem)
            .where(
                InventoryItem.status == ItemStatus.ISSUED,
                InventoryItem.expected_return_date.is_not(None),
                InventoryItem.expected_return_date < as_of,
            )
            .order_by(InventoryItem.expected_return_date)
        )

    def inventory_statistics(self) -> InventoryStatistics:
        """Counts by status plus total value and quantity of all items."""
        by_status_rows = self.session.execute(
            select(InventoryItem.status, func.count(InventoryItem.id)).group_by(
                InventoryItem.status
            )
        ).all()
        total_items, total_value, total_quantity = self.session.execute(
            select(
                func.count(InventoryItem.id),
                func.coalesce(func.sum(InventoryItem.total_cost), 0),
                func.coalesce(func.sum(InventoryItem.balance_quantity_in_stock), 0),
            )
        ).one()
        low_stock_count = self.session.execute(
            select(func.count(InventoryItem.id)).where(
                InventoryItem.status == ItemStatus.AVAILABLE,
                InventoryItem.balance_quantity_in_stock
                <= InventoryItem.minimum_stock_level,
            )
        ).scalar_one()

        return InventoryStatistics(
            total_items=total_items,
            total_value=round_money(Decimal(str(total_value))),
            total_quantity=int(total_quantity),
            by_status={ItemStatus(status).value: count for status, count in by_status_rows},
            low_stock_count=low_stock_count,
        )
