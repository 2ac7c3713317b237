"""
Pure domain layer.

States, stock-transition planning, identifier formatting, and DTOs with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (except SystemClock)
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    Actor,
    CascadeResult,
    ItemSnapshot,
    ItemSpec,
    LedgerEntryView,
    LifecycleResult,
    SerialPreview,
)
from inventory_kernel.domain.lifecycle import StockTransition
from inventory_kernel.domain.states import (
    AssetCondition,
    ItemStatus,
    StockStatus,
    TransactionStatus,
    TransactionType,
    classify_stock,
)
from inventory_kernel.domain.uniqueid import IdentifierFormat, format_unique_id

__all__ = [
    "Actor",
    "AssetCondition",
    "CascadeResult",
    "Clock",
    "DeterministicClock",
    "IdentifierFormat",
    "ItemSnapshot",
    "ItemSpec",
    "ItemStatus",
    "LedgerEntryView",
    "LifecycleResult",
    "SerialPreview",
    "StockStatus",
    "StockTransition",
    "SystemClock",
    "TransactionStatus",
    "TransactionType",
    "classify_stock",
    "format_unique_id",
]
