"""
ORM-Level Immutability Enforcement for the inventory ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

Every stock-affecting event is recorded as an InventoryTransaction row. The
ledger is the audit trail for an item's balance: if an entry could be edited,
the chain previous_quantity -> new_quantity could no longer be trusted.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _check_ledger_entry_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_ledger_entry_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                | When Immutable            | Why
----------------------|---------------------------|------------------------------
InventoryTransaction  | ALWAYS (from creation)    | Ledger chain must be verifiable
InventoryItem         | unique_id after creation  | Identifier printed on labels

===============================================================================
SANCTIONED REMOVAL
===============================================================================

Ledger entries disappear only when their item is deleted. The cascade service
removes them with a Core bulk DELETE statement, which does not pass through
the unit of work and therefore never triggers these listeners.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm import attributes

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_ledger_entry_immutability(mapper, connection, target):
    """Ledger entries are immutable from creation."""
    logger.error(
        "immutability_violation_blocked",
        extra={"entity_type": "InventoryTransaction", "entity_id": str(target.id)},
    )
    raise ImmutabilityViolationError(
        entity_type="InventoryTransaction",
        entity_id=str(target.id),
        reason="Ledger entries are immutable and cannot be modified",
    )


def _check_ledger_entry_delete(mapper, connection, target):
    """Ledger entries can only be removed by cascade deletion of their item."""
    logger.error(
        "immutability_violation_blocked",
        extra={"entity_type": "InventoryTransaction", "entity_id": str(target.id)},
    )
    raise ImmutabilityViolationError(
        entity_type="InventoryTransaction",
        entity_id=str(target.id),
        reason="Ledger entries cannot be deleted individually",
    )


def _check_item_identifier_immutability(mapper, connection, target):
    """The unique_id of a persisted item never changes."""
    history = attributes.get_history(target, "unique_id")
    if history.has_changes() and history.deleted:
        raise ImmutabilityViolationError(
            entity_type="InventoryItem",
            entity_id=str(target.id),
            reason=(
                f"unique_id cannot change from {history.deleted[0]} "
                f"to {target.unique_id}"
            ),
        )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already present are not registered twice.
    """
    from inventory_kernel.models.inventory_item import InventoryItem
    from inventory_kernel.models.inventory_transaction import InventoryTransaction

    for target, event_name, fn in _listeners(InventoryItem, InventoryTransaction):
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def _listeners(item_cls, transaction_cls):
    return (
        (transaction_cls, "before_update", _check_ledger_entry_immutability),
        (transaction_cls, "before_delete", _check_ledger_entry_delete),
        (item_cls, "before_update", _check_item_identifier_immutability),
    )


def _safe_remove_listener(target, event_name, listener_fn):
    """
    Safely remove an event listener, ignoring if not registered.
    """
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from inventory_kernel.models.inventory_item import InventoryItem
    from inventory_kernel.models.inventory_transaction import InventoryTransaction

    for target, event_name, fn in _listeners(InventoryItem, InventoryTransaction):
        _safe_remove_listener(target, event_name, fn)
