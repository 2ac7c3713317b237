"""
DTOs -- immutable data crossing the kernel boundary.

Responsibility:
    Defines the inputs (Actor, ItemSpec) and read-side results (ItemSnapshot,
    LedgerEntryView, LifecycleResult, CascadeResult, SerialPreview, report
    rows) exchanged between the orchestrator and its callers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from the
    service and selector layers, never from domain logic.

Invariants enforced:
    - Callers never receive live ORM instances; every result is frozen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from inventory_kernel.domain.clock import ensure_utc
from inventory_kernel.domain.states import (
    AssetCondition,
    ItemStatus,
    RequestStatus,
    StockStatus,
    TransactionStatus,
    TransactionType,
    classify_stock,
)

if TYPE_CHECKING:
    from inventory_kernel.models.inventory_item import InventoryItem
    from inventory_kernel.models.inventory_transaction import InventoryTransaction
    from inventory_kernel.models.location import Location
    from inventory_kernel.models.request import Request, ReturnRequest


@dataclass(frozen=True)
class Actor:
    """
    Already-authenticated principal performing an operation.

    Contract:
        Authentication happens outside the kernel.  ``name`` is what lands in
        human-readable stamps (issued_by, last_modified_by); ``actor_id`` is
        what lands in audit columns.
    """

    actor_id: UUID
    name: str


@dataclass(frozen=True)
class ItemSpec:
    """
    Caller-supplied attributes of a new inventory item.

    ``unique_id`` is optional: blank or placeholder values are replaced by an
    allocated identifier.  ``balance_quantity_in_stock`` is the opening stock
    recorded by the purchase ledger entry.
    """

    asset_name: str | None = None
    unique_id: str | None = None
    financial_year: str | None = None
    asset_category: str | None = None
    asset_category_id: UUID | None = None
    asset_id: UUID | None = None
    specification: str | None = None
    make_model: str | None = None
    product_serial_number: str | None = None
    vendor_name: str | None = None
    quantity_per_item: int = 1
    rate_inclusive_tax: Decimal | None = None
    total_cost: Decimal | None = None
    location_id: UUID | None = None
    location_name: str | None = None
    balance_quantity_in_stock: int = 0
    minimum_stock_level: int = 0
    description: str | None = None
    unit_of_measurement: str = "Pieces"
    condition_of_asset: AssetCondition = AssetCondition.EXCELLENT
    invoice_number: str | None = None
    purchase_order_number: str | None = None
    warranty_information: str | None = None


@dataclass(frozen=True)
class ItemSnapshot:
    """Read-side view of an inventory item."""

    id: UUID
    unique_id: str
    asset_name: str | None
    status: ItemStatus
    balance_quantity_in_stock: int
    minimum_stock_level: int
    quantity_per_item: int
    condition_of_asset: AssetCondition
    location_id: UUID | None
    location_name: str | None
    asset_category_id: UUID | None
    issued_to: str | None
    issued_by: str | None
    issued_date: datetime | None
    expected_return_date: datetime | None
    last_modified_by: str | None
    last_modified_date: datetime | None
    total_cost: Decimal | None
    version: int

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock(self.balance_quantity_in_stock, self.minimum_stock_level)

    @property
    def is_issued(self) -> bool:
        return self.status == ItemStatus.ISSUED

    @classmethod
    def from_model(cls, model: InventoryItem) -> ItemSnapshot:
        return cls(
            id=model.id,
            unique_id=model.unique_id,
            asset_name=model.asset_name,
            status=ItemStatus(model.status),
            balance_quantity_in_stock=model.balance_quantity_in_stock,
            minimum_stock_level=model.minimum_stock_level,
            quantity_per_item=model.quantity_per_item,
            condition_of_asset=AssetCondition(model.condition_of_asset),
            location_id=model.location_id,
            location_name=model.location_name,
            asset_category_id=model.asset_category_id,
            issued_to=model.issued_to,
            issued_by=model.issued_by,
            issued_date=ensure_utc(model.issued_date),
            expected_return_date=ensure_utc(model.expected_return_date),
            last_modified_by=model.last_modified_by,
            last_modified_date=ensure_utc(model.last_modified_date),
            total_cost=model.total_cost,
            version=model.version,
        )


@dataclass(frozen=True)
class LedgerEntryView:
    """Read-side view of one ledger entry."""

    id: UUID
    seq: int
    inventory_item_id: UUID
    transaction_type: TransactionType
    quantity: int
    previous_quantity: int
    new_quantity: int
    status: TransactionStatus
    transaction_date: datetime
    issued_to: str | None = None
    issued_by: str | None = None
    purpose: str | None = None
    notes: str | None = None
    request_id: UUID | None = None
    condition: AssetCondition | None = None
    total_cost: Decimal | None = None

    @classmethod
    def from_model(cls, model: InventoryTransaction) -> LedgerEntryView:
        return cls(
            id=model.id,
            seq=model.seq,
            inventory_item_id=model.inventory_item_id,
            transaction_type=TransactionType(model.transaction_type),
            quantity=model.quantity,
            previous_quantity=model.previous_quantity,
            new_quantity=model.new_quantity,
            status=TransactionStatus(model.status),
            transaction_date=ensure_utc(model.transaction_date),
            issued_to=model.issued_to,
            issued_by=model.issued_by,
            purpose=model.purpose,
            notes=model.notes,
            request_id=model.request_id,
            condition=AssetCondition(model.condition) if model.condition else None,
            total_cost=model.total_cost,
        )


@dataclass(frozen=True)
class LifecycleResult:
    """Outcome of a stock-affecting operation: the item after, and its entry."""

    item: ItemSnapshot
    entry: LedgerEntryView


@dataclass(frozen=True)
class CascadeResult:
    """Rows removed by a cascade deletion."""

    item_id: UUID
    unique_id: str
    ledger_entries_deleted: int
    requests_deleted: int
    return_requests_deleted: int
    occupancy_released: int

    @property
    def total_rows_deleted(self) -> int:
        return (
            1
            + self.ledger_entries_deleted
            + self.requests_deleted
            + self.return_requests_deleted
        )


@dataclass(frozen=True)
class SerialPreview:
    """Next serial a creation would receive, without consuming it."""

    current_sequence: int
    next_serial: int
    next_serial_formatted: str


@dataclass(frozen=True)
class TypeStatistics:
    transaction_type: TransactionType
    count: int
    total_quantity: int
    total_value: Decimal


@dataclass(frozen=True)
class LedgerStatistics:
    """Ledger totals over an optional date window."""

    total: int
    pending: int
    completed: int
    by_type: tuple[TypeStatistics, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AuditTrailPage:
    """One page of the ledger-wide audit trail; total ignores paging."""

    entries: tuple[LedgerEntryView, ...]
    total: int
    limit: int | None
    offset: int


@dataclass(frozen=True)
class MonthlyReportRow:
    transaction_type: TransactionType
    day: int
    count: int
    total_quantity: int
    total_value: Decimal


@dataclass(frozen=True)
class ChainBreak:
    """A ledger entry whose previous_quantity disagrees with its predecessor."""

    entry_id: UUID
    seq: int
    expected_previous: int
    actual_previous: int


@dataclass(frozen=True)
class ChainVerification:
    """Result of replaying an item's ledger."""

    item_id: UUID
    entries_checked: int
    breaks: tuple[ChainBreak, ...]
    final_quantity: int | None
    current_balance: int | None

    @property
    def is_consistent(self) -> bool:
        return not self.breaks and (
            self.final_quantity is None or self.final_quantity == self.current_balance
        )


@dataclass(frozen=True)
class InventoryStatistics:
    total_items: int
    total_value: Decimal
    total_quantity: int
    by_status: dict[str, int]
    low_stock_count: int


@dataclass(frozen=True)
class LocationInfo:
    id: UUID
    name: str
    capacity: int
    current_occupancy: int
    is_active: bool
    is_default: bool

    @property
    def available_capacity(self) -> int:
        return max(0, self.capacity - self.current_occupancy)

    @classmethod
    def from_model(cls, model: Location) -> LocationInfo:
        return cls(
            id=model.id,
            name=model.name,
            capacity=model.capacity,
            current_occupancy=model.current_occupancy,
            is_active=model.is_active,
            is_default=model.is_default,
        )


@dataclass(frozen=True)
class LocationStatistics:
    total_locations: int
    active_locations: int
    inactive_locations: int
    total_capacity: int
    total_occupancy: int
    available_capacity: int
    average_occupancy: Decimal
    utilization_percentage: Decimal


@dataclass(frozen=True)
class RequestView:
    id: UUID
    employee_name: str
    item_type: str
    quantity: int
    status: RequestStatus
    inventory_item_id: UUID | None
    approved_quantity: int | None
    reviewed_by_name: str | None
    reviewed_at: datetime | None
    remarks: str | None
    rejection_reason: str | None

    @classmethod
    def from_model(cls, model: Request) -> RequestView:
        return cls(
            id=model.id,
            employee_name=model.employee_name,
            item_type=model.item_type,
            quantity=model.quantity,
            status=RequestStatus(model.status),
            inventory_item_id=model.inventory_item_id,
            approved_quantity=model.approved_quantity,
            reviewed_by_name=model.reviewed_by_name,
            reviewed_at=ensure_utc(model.reviewed_at),
            remarks=model.remarks,
            rejection_reason=model.rejection_reason,
        )


@dataclass(frozen=True)
class ReturnRequestView:
    id: UUID
    employee_name: str
    inventory_item_id: UUID
    asset_name: str | None
    return_reason: str
    condition_on_return: AssetCondition
    status: RequestStatus
    reviewed_by_name: str | None
    reviewed_at: datetime | None
    approval_remarks: str | None
    rejection_reason: str | None

    @classmethod
    def from_model(cls, model: ReturnRequest) -> ReturnRequestView:
        return cls(
            id=model.id,
            employee_name=model.employee_name,
            inventory_item_id=model.inventory_item_id,
            asset_name=model.asset_name,
            return_reason=model.return_reason,
            condition_on_return=AssetCondition(model.condition_on_return),
            status=RequestStatus(model.status),
            reviewed_by_name=model.reviewed_by_name,
            reviewed_at=ensure_utc(model.reviewed_at),
            approval_remarks=model.approval_remarks,
            rejection_reason=model.rejection_reason,
        )


@dataclass(frozen=True)
class ApprovalResult:
    """Outcome of approving an employee request."""

    request: RequestView
    issue: LifecycleResult | None = None


@dataclass(frozen=True)
class ReturnApprovalResult:
    """Outcome of approving a return request."""

    return_request: ReturnRequestView
    result: LifecycleResult
