"""
States -- closed enumerations for items, ledger entries, and requests.

Responsibility:
    Names every state and category the lifecycle engine understands.  All
    enums derive from ``str`` so their values persist as plain strings.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ItemStatus is closed: issue/return/status-change logic switches over it
      exhaustively with ``typing.assert_never``.
    - StockStatus is derived, never persisted.
"""

from enum import Enum
from typing import assert_never


class ItemStatus(str, Enum):
    """Availability state of an inventory item.

    Contract: Only the lifecycle engine moves an item into or out of ISSUED.
    MAINTENANCE and RETIRED are flags set externally through set_status.
    """

    AVAILABLE = "available"
    ISSUED = "issued"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class TransactionType(str, Enum):
    """Kind of stock-affecting event recorded in the ledger."""

    ISSUE = "issue"
    RETURN = "return"
    ADJUSTMENT = "adjustment"
    PURCHASE = "purchase"
    DISPOSAL = "disposal"
    MAINTENANCE = "maintenance"


class TransactionStatus(str, Enum):
    """Status of a ledger entry.  Entries written by the engine are COMPLETED."""

    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssetCondition(str, Enum):
    """Physical condition of an asset."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class RequestStatus(str, Enum):
    """Review state of an employee request or return request.

    Contract: PENDING -> APPROVED or PENDING -> REJECTED; both are terminal.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class LocationType(str, Enum):
    STORAGE = "storage"
    OFFICE = "office"
    WAREHOUSE = "warehouse"
    LAB = "lab"
    WORKSHOP = "workshop"
    OTHER = "other"


class StockStatus(str, Enum):
    """Derived stock classification of an item."""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


def classify_stock(balance: int, minimum_stock_level: int) -> StockStatus:
    """
    Derive the stock status of an item.

    Out of stock when the balance is zero or below, low stock when it is at
    or below the minimum level, otherwise in stock.
    """
    if balance <= 0:
        return StockStatus.OUT_OF_STOCK
    if balance <= minimum_stock_level:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def is_issuable_status(status: ItemStatus) -> bool:
    """
    Whether an item in ``status`` passes the state precondition of issue.

    Only ISSUED is refused.  Items flagged for maintenance or retired can
    still be handed out; the stock check is separate.
    """
    match status:
        case ItemStatus.ISSUED:
            return False
        case ItemStatus.AVAILABLE | ItemStatus.MAINTENANCE | ItemStatus.RETIRED:
            return True
        case _:
            assert_never(status)


def is_externally_settable(status: ItemStatus) -> bool:
    """Whether ``status`` may be requested through set_status."""
    match status:
        case ItemStatus.ISSUED:
            return False
        case ItemStatus.AVAILABLE | ItemStatus.MAINTENANCE | ItemStatus.RETIRED:
            return True
        case _:
            assert_never(status)
