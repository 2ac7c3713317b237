"""
Module: inventory_kernel.models.request
Responsibility: ORM persistence for the employee request and return request
    records that the approval workflow drives through the lifecycle engine.
Architecture position: Kernel > Models.

Invariants enforced:
    - Review is one-way: PENDING -> APPROVED | REJECTED.
    - At most one PENDING return request per item (partial unique index).
    - Both reference inventory_items by FK; cascade deletion of an item
      removes them first.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT_LENGTH, NAME_LENGTH, enum_type, money_type
from inventory_kernel.domain.states import AssetCondition, RequestPriority, RequestStatus


class Request(TrackedBase):
    """Employee request for an item."""

    __tablename__ = "employee_requests"

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_employee_requests_quantity"),
        CheckConstraint(
            "approved_quantity IS NULL OR approved_quantity >= 1",
            name="ck_employee_requests_approved_quantity",
        ),
        Index("idx_employee_requests_status", "status"),
        Index("idx_employee_requests_item", "inventory_item_id"),
        Index("idx_employee_requests_employee", "employee_id"),
    )

    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)
    item_type: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    purpose: Mapped[str] = mapped_column(String(500), nullable=False)
    justification: Mapped[str] = mapped_column(String(LONG_TEXT_LENGTH), nullable=False)

    status: Mapped[RequestStatus] = mapped_column(
        enum_type(RequestStatus, "ck_employee_requests_status"),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    priority: Mapped[RequestPriority] = mapped_column(
        enum_type(RequestPriority, "ck_employee_requests_priority"),
        nullable=False,
        default=RequestPriority.MEDIUM,
    )
    department: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    project: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    estimated_cost: Mapped[Decimal | None] = mapped_column(money_type(), nullable=True)
    expected_return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    inventory_item_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=True,
    )

    # Review stamps
    reviewed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    reviewed_by_name: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
    approved_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Request {self.id} {self.item_type} status={self.status}>"

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


class ReturnRequest(TrackedBase):
    """Employee request to hand an issued item back."""

    __tablename__ = "return_requests"

    __table_args__ = (
        Index(
            "uq_return_requests_pending_item",
            "inventory_item_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("idx_return_requests_status", "status"),
    )

    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(NAME_LENGTH), nullable=False)
    inventory_item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_items.id"),
        nullable=False,
    )
    asset_name: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    return_reason: Mapped[str] = mapped_column(String(500), nullable=False)
    condition_on_return: Mapped[AssetCondition] = mapped_column(
        enum_type(AssetCondition, "ck_return_requests_condition"),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(String(LONG_TEXT_LENGTH), nullable=True)

    status: Mapped[RequestStatus] = mapped_column(
        enum_type(RequestStatus, "ck_return_requests_status"),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    reviewed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    reviewed_by_name: Mapped[str | None] = mapped_column(String(NAME_LENGTH), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approval_remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<ReturnRequest {self.id} item={self.inventory_item_id} status={self.status}>"

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
