"""
Module: inventory_kernel.models.inventory_item
Responsibility: ORM persistence for inventory items -- the mutable stock
    record whose every change is mirrored by a ledger entry.
Architecture position: Kernel > Models.  May import from db/base.py,
    db/types.py, and domain/states.py only.

Invariants enforced:
    - balance_quantity_in_stock >= 0 (CHECK).
    - unique_id is unique and immutable after creation (unique constraint
      plus ORM listener in db/immutability.py).
    - version is bumped on every UPDATE (version_id_col); a writer holding a
      stale row fails with StaleDataError instead of overwriting.

Failure modes:
    - IntegrityError on duplicate unique_id or product_serial_number.
    - IntegrityError on CHECK violation (negative stock).
    - StaleDataError on concurrent modification.

Audit relevance:
    last_modified_by / last_modified_date are stamped by the lifecycle
    service on every mutation; created_by_id / updated_by_id come from
    TrackedBase.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import (
    LONG_TEXT_LENGTH,
    NAME_LENGTH,
    UNIQUE_ID_LENGTH,
    enum_type,
    money_type,
)
from inventory_kernel.domain.states import (
    AssetCondition,
    ItemStatus,
    StockStatus,
    classify_stock,
)


class InventoryItem(TrackedBase):
    """
    A stocked asset line.

    Contract:
        status == ISSUED exactly when issued_to, issued_by and issued_date
        are populated.  Only the lifecycle service writes status and stock.

    Guarantees:
        - Stock never negative (database CHECK).
        - Optimistic concurrency via the version column.

    Non-goals:
        - location_id and asset_category_id are weak references; no FK is
          declared because locations and categories are owned elsewhere.
    """

    __tablename__ = "inventory_items"

    __table_args__ = (
        CheckConstraint(
            "balance_quantity_in_stock >= 0",
            name="ck_inventory_items_balance_non_negative",
        ),
        CheckConstraint(
            "minimum_stock_level >= 0",
            name="ck_inventory_items_minimum_non_negative",
        ),
        CheckConstraint(
            "quantity_per_item >= 1",
            name="ck_inventory_items_quantity_per_item",
        ),
        CheckConstraint(
            "total_cost IS NULL OR total_cost >= 0",
            name="ck_inventory_items_total_cost",
        ),
        Index("idx_inventory_items_status", "status"),
        Index("idx_inventory_items_location", "location_id"),
        Index("idx_inventory_items_category", "asset_category_id"),
    )

    unique_id: Mapped[str] = mapped_column(
        String(UNIQUE_ID_LENGTH),
        nullable=False,
        unique=True,
    )

    # Descriptive attributes
    financial_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    asset_category: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    asset_category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    asset_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    asset_name: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    specification: Mapped[str | None] = mapped_column(String(LONG_TEXT_LENGTH), nullable=True)
    make_model: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    product_serial_number: Mapped[str | None] = mapped_column(
        String(NAME_LENGTH),
        nullable=True,
        unique=True,
    )
    vendor_name: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    description: Mapped[str | None] = mapped_column(String(LONG_TEXT_LENGTH), nullable=True)
    unit_of_measurement: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Pieces"
    )
    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    purchase_order_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    warranty_information: Mapped[str | None] = mapped_column(
        String(LONG_TEXT_LENGTH), nullable=True
    )

    # Cost
    quantity_per_item: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rate_inclusive_tax: Mapped[Decimal | None] = mapped_column(money_type(), nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(money_type(), nullable=True)

    # Placement
    location_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Stock
    balance_quantity_in_stock: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    minimum_stock_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    condition_of_asset: Mapped[AssetCondition] = mapped_column(
        enum_type(AssetCondition, "ck_inventory_items_condition"),
        nullable=False,
        default=AssetCondition.EXCELLENT,
    )

    status: Mapped[ItemStatus] = mapped_column(
        enum_type(ItemStatus, "ck_inventory_items_status"),
        nullable=False,
        default=ItemStatus.AVAILABLE,
    )

    # Issuance -- populated only while status == ISSUED
    issued_to: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    issued_by: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    issued_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expected_return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    last_modified_by: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    last_modified_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<InventoryItem {self.unique_id} status={self.status} "
            f"stock={self.balance_quantity_in_stock}>"
        )

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock(self.balance_quantity_in_stock, self.minimum_stock_level)

    @property
    def is_issued(self) -> bool:
        return self.status == ItemStatus.ISSUED

    def clear_issuance(self) -> None:
        """Drop the issuance fields after a return."""
        self.issued_to = None
        self.issued_by = None
        self.issued_date = None
        self.expected_return_date = None
