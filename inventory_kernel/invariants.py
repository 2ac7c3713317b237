"""
Kernel Invariants Contract.

These invariants are structural law. They are hardcoded in the lifecycle
services, the counter table and the database constraints. No configuration
file may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across sequence_service, lifecycle_service,
ledger_service, occupancy_service, cascade_service and db/immutability.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally. Configuration may influence *how* identifiers look or
    *whether* occupancy is released, but never *whether* these rules apply.
    """

    SEQUENCE_MONOTONICITY = "sequence_monotonicity"
    """Serial numbers are strictly increasing and never reused. Enforced by
    SequenceService with a single atomic increment-and-fetch statement."""

    STOCK_NON_NEGATIVE = "stock_non_negative"
    """balance_quantity_in_stock is never below zero. Enforced by the
    lifecycle planner and a CHECK constraint."""

    ISSUANCE_CONSISTENCY = "issuance_consistency"
    """status == issued iff the issuance fields are populated. Enforced by
    LifecycleService, which is the only writer of those fields."""

    LEDGER_CHAIN = "ledger_chain"
    """Per item, each ledger entry's previous_quantity equals the prior
    entry's new_quantity. Enforced by LedgerService reading the locked item."""

    LEDGER_IMMUTABILITY = "ledger_immutability"
    """Ledger entries are append-only. Enforced by ORM listeners in
    inventory_kernel.db.immutability."""

    OCCUPANCY_BOUND = "occupancy_bound"
    """0 <= current_occupancy <= capacity. Enforced by conditional UPDATEs in
    OccupancyService and a CHECK constraint."""

    CASCADE_ATOMICITY = "cascade_atomicity"
    """An item is removed together with every row referencing it, or not at
    all. Enforced by CascadeService inside one transaction."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "inventory_services",
    "inventory_config",
)
