"""
Module: inventory_kernel.models.inventory_transaction
Responsibility: ORM persistence for ledger entries -- one row per
    stock-affecting event on an inventory item.
Architecture position: Kernel > Models.  May import from db/base.py,
    db/types.py, and domain/states.py only.

Invariants enforced:
    - Immutable from creation (ORM listeners in db/immutability.py).
    - seq is unique and allocated from the "ledger_entry" counter, giving a
      total order that breaks ties between equal transaction_date values.
    - previous_quantity, new_quantity, quantity >= 0 (CHECK).

Failure modes:
    - ImmutabilityViolationError on any ORM update or delete.
    - IntegrityError if inventory_item_id does not reference an item.

Audit relevance:
    Ordered by (transaction_date, seq), an item's entries form a chain in
    which each previous_quantity equals the prior new_quantity and the last
    new_quantity equals the item's balance.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT_LENGTH, NAME_LENGTH, enum_type, money_type
from inventory_kernel.domain.states import (
    AssetCondition,
    TransactionStatus,
    TransactionType,
)


class InventoryTransaction(TrackedBase):
    """
    Immutable ledger entry.

    Contract:
        Written once by LedgerService.append and never modified.  Removed
        only by the cascade deletion of its item.

    Guarantees:
        - new_quantity - previous_quantity reflects the stock change of the
          event (negative for issue and disposal).
    """

    __tablename__ = "inventory_transactions"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_transactions_quantity"),
        CheckConstraint(
            "previous_quantity >= 0", name="ck_inventory_transactions_previous"
        ),
        CheckConstraint("new_quantity >= 0", name="ck_inventory_transactions_new"),
        Index(
            "idx_inventory_transactions_item_order",
            "inventory_item_id",
            "transaction_date",
            "seq",
        ),
        Index("idx_inventory_transactions_type", "transaction_type"),
        Index("idx_inventory_transactions_date", "transaction_date"),
        Index("idx_inventory_transactions_request", "request_id"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    inventory_item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )

    transaction_type: Mapped[TransactionType] = mapped_column(
        enum_type(TransactionType, "ck_inventory_transactions_type"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[TransactionStatus] = mapped_column(
        enum_type(TransactionStatus, "ck_inventory_transactions_status"),
        nullable=False,
        default=TransactionStatus.COMPLETED,
    )

    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Descriptive
    issued_to: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    issued_by: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    purpose: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(LONG_TEXT_LENGTH), nullable=True)

    # Weak reference: the request that drove this entry, if any
    request_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    condition: Mapped[AssetCondition | None] = mapped_column(
        enum_type(AssetCondition, "ck_inventory_transactions_condition"),
        nullable=True,
    )
    expected_return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    actual_return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    unit_cost: Mapped[Decimal | None] = mapped_column(money_type(), nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(money_type(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction seq={self.seq} {self.transaction_type} "
            f"{self.previous_quantity}->{self.new_quantity}>"
        )

    @property
    def delta(self) -> int:
        return self.new_quantity - self.previous_quantity
