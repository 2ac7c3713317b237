"""
LedgerService -- append-only writer for inventory ledger entries.

Responsibility:
    Turns a planned StockTransition into an InventoryTransaction row with a
    ledger-wide sequence number and a transaction date from the injected
    clock.  This is the ONLY place ledger rows are created.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by LifecycleService for every stock-affecting operation.

Invariants enforced:
    - Append-only: this service has no update or delete method.  The ORM
      listeners in db/immutability.py reject any attempt elsewhere.
    - Ordering: seq comes from the "ledger_entry" counter, so entries with
      equal transaction_date still have a total order.

Failure modes:
    - IntegrityError if the item row has not been flushed yet (FK).

Audit relevance:
    Each append logs ``ledger_entry_appended`` with the item, type, and the
    previous -> new quantities.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import Actor
from inventory_kernel.domain.lifecycle import StockTransition
from inventory_kernel.domain.states import AssetCondition, TransactionStatus
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.ledger")


class LedgerService(BaseService[InventoryTransaction]):
    """
    Append ledger entries within the caller's transaction.

    Contract:
        ``append`` is called after the item mutation it records has been
        applied; previous_quantity/new_quantity come from the plan, not from
        re-reading the item.

    Non-goals:
        - Does NOT validate the transition (domain/lifecycle.py does).
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        sequence_service: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequence_service or SequenceService(session)

    def append(
        self,
        item: InventoryItem,
        transition: StockTransition,
        actor: Actor,
        *,
        issued_to: str | None = None,
        issued_by: str | None = None,
        purpose: str | None = None,
        notes: str | None = None,
        request_id: UUID | None = None,
        condition: AssetCondition | None = None,
        expected_return_date: datetime | None = None,
        actual_return_date: datetime | None = None,
        unit_cost: Decimal | None = None,
    ) -> InventoryTransaction:
        """
        Record one stock transition.

        Args:
            item: The item the transition was applied to (already flushed).
            transition: The applied plan.
            actor: Who performed the operation.
            unit_cost: Cost per unit; defaults to the item's rate.

        Returns:
            The flushed InventoryTransaction.
        """
        if unit_cost is None:
            unit_cost = item.rate_inclusive_tax
        total_cost = (
            round_money(unit_cost * transition.quantity) if unit_cost is not None else None
        )

        entry = InventoryTransaction(
            seq=self._sequences.next_value(SequenceService.LEDGER_ENTRY),
            inventory_item_id=item.id,
            transaction_type=transition.transaction_type,
            quantity=transition.quantity,
            previous_quantity=transition.previous_quantity,
            new_quantity=transition.new_quantity,
            status=TransactionStatus.COMPLETED,
            transaction_date=self._clock.now(),
            issued_to=issued_to,
            issued_by=issued_by or actor.name,
            purpose=purpose,
            notes=notes,
            request_id=request_id,
            location=item.location_name,
            condition=condition,
            expected_return_date=expected_return_date,
            actual_return_date=actual_return_date,
            unit_cost=unit_cost,
            total_cost=total_cost,
            created_by_id=actor.actor_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "ledger_entry_appended",
            extra={
                "entry_id": str(entry.id),
                "seq": entry.seq,
                "inventory_item_id": str(item.id),
                "transaction_type": transition.transaction_type.value,
                "previous_quantity": transition.previous_quantity,
                "new_quantity": transition.new_quantity,
            },
        )
        return entry
