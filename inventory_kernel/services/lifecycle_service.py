"""
LifecycleService -- persistence of item state transitions.

Responsibility:
    Creates items, and applies issue / return / adjust / dispose / status
    changes to a locked item row.  Each stock-affecting operation writes
    exactly one ledger entry and adjusts location occupancy where the stock
    in a location changes.

Architecture position:
    Kernel > Services -- imperative shell.
    Planning (what is allowed, what the quantities become) is delegated to
    domain/lifecycle.py; this service loads, applies, and flushes.

Invariants enforced:
    - Stock non-negative: quantities come from a StockTransition, which never
      yields a negative balance.  A database CHECK backs this up.
    - Issuance consistency: status == ISSUED exactly when the issuance fields
      are populated; return clears them.
    - Ledger chain: the entry's previous_quantity is the balance read under
      the row lock, and its new_quantity is the balance written.
    - Serialized writers: items are loaded SELECT ... FOR UPDATE and carry a
      version column; a writer that raced past the lock fails with
      StaleDataError instead of overwriting.

Failure modes:
    - ItemNotFoundError, AlreadyIssuedError, OutOfStockError, NotIssuedError,
      InsufficientStockError, ItemCurrentlyIssuedError,
      InvalidStatusTransitionError, InvalidQuantityError.
    - DuplicateUniqueIdError on a caller-supplied id that already exists,
      including when the unique constraint detects a concurrent insert.
    - InvalidLocationError / CapacityExceededError from OccupancyService.

Audit relevance:
    last_modified_by / last_modified_date and updated_by_id are stamped on
    every mutation.  Transitions are logged as item_created, item_issued,
    item_returned, item_adjusted, item_disposed, item_status_changed.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import Actor, ItemSpec
from inventory_kernel.domain.lifecycle import (
    StockTransition,
    plan_adjustment,
    plan_disposal,
    plan_issue,
    plan_purchase,
    plan_return,
    plan_status_change,
)
from inventory_kernel.domain.states import AssetCondition, ItemStatus
from inventory_kernel.domain.uniqueid import (
    DEFAULT_FORMAT,
    IdentifierFormat,
    format_unique_id,
    is_placeholder,
    normalize_unique_id,
)
from inventory_kernel.exceptions import (
    DuplicateUniqueIdError,
    InvalidQuantityError,
    ItemNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.occupancy_service import OccupancyService
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.lifecycle")


class LifecycleService(BaseService[InventoryItem]):
    """
    Apply lifecycle transitions to inventory items.

    Contract:
        Every public mutating method returns the item and, for
        stock-affecting operations, the ledger entry it appended.  Nothing
        is committed; the caller owns the transaction.

    Guarantees:
        - An operation that raises has flushed nothing the caller must keep;
          rolling back the transaction restores the pre-operation state.
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        identifier_format: IdentifierFormat = DEFAULT_FORMAT,
        sequence_service: SequenceService | None = None,
        ledger_service: LedgerService | None = None,
        occupancy_service: OccupancyService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._format = identifier_format
        self._sequences = sequence_service or SequenceService(session)
        self._ledger = ledger_service or LedgerService(
            session, clock=self._clock, sequence_service=self._sequences
        )
        self._occupancy = occupancy_service or OccupancyService(session)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_for_update(self, item_id: UUID) -> InventoryItem:
        """
        Load an item with a row lock for the rest of the transaction.

        Raises:
            ItemNotFoundError: No item with this id.
        """
        item = self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(str(item_id))
        return item

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self, spec: ItemSpec, actor: Actor
    ) -> tuple[InventoryItem, InventoryTransaction]:
        """
        Create an item with its opening purchase entry.

        Preconditions:
            - spec.balance_quantity_in_stock >= 0, spec.quantity_per_item >= 1.
            - spec.location_id, when given, names an active location with
              room for the opening stock.

        Postconditions:
            - The item exists with status AVAILABLE and a unique_id.
            - One PURCHASE entry 0 -> opening stock exists.
            - The location's occupancy grew by the opening stock.

        Raises:
            InvalidQuantityError, InvalidLocationError, CapacityExceededError,
            DuplicateUniqueIdError.
        """
        plan = plan_purchase(spec.balance_quantity_in_stock)
        if spec.quantity_per_item < 1:
            raise InvalidQuantityError(
                spec.quantity_per_item, "quantity per item must be at least 1"
            )
        if spec.minimum_stock_level < 0:
            raise InvalidQuantityError(
                spec.minimum_stock_level, "minimum stock level cannot be negative"
            )

        if spec.location_id is not None:
            self._occupancy.reserve(spec.location_id, plan.new_quantity)

        unique_id = self._resolve_unique_id(spec)
        now = self._clock.now()
        serial_number = (spec.product_serial_number or "").strip() or None

        item = InventoryItem(
            unique_id=unique_id,
            financial_year=spec.financial_year,
            asset_category=spec.asset_category,
            asset_category_id=spec.asset_category_id,
            asset_id=spec.asset_id,
            asset_name=spec.asset_name,
            specification=spec.specification,
            make_model=spec.make_model,
            product_serial_number=serial_number,
            vendor_name=spec.vendor_name,
            description=spec.description,
            unit_of_measurement=spec.unit_of_measurement,
            invoice_number=spec.invoice_number,
            purchase_order_number=spec.purchase_order_number,
            warranty_information=spec.warranty_information,
            quantity_per_item=spec.quantity_per_item,
            rate_inclusive_tax=spec.rate_inclusive_tax,
            total_cost=spec.total_cost,
            location_id=spec.location_id,
            location_name=spec.location_name,
            balance_quantity_in_stock=plan.new_quantity,
            minimum_stock_level=spec.minimum_stock_level,
            condition_of_asset=spec.condition_of_asset,
            status=plan.resulting_status,
            last_modified_by=actor.name,
            last_modified_date=now,
            created_by_id=actor.actor_id,
        )
        self.session.add(item)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if "unique_id" in str(exc.orig):
                raise DuplicateUniqueIdError(unique_id) from exc
            raise

        entry = self._ledger.append(
            item,
            plan,
            actor,
            issued_by=actor.name,
            purpose="Initial Purchase",
            notes="Item added to inventory",
        )

        logger.info(
            "item_created",
            extra={
                "item_id": str(item.id),
                "unique_id": unique_id,
                "opening_stock": plan.new_quantity,
            },
        )
        return item, entry

    def _resolve_unique_id(self, spec: ItemSpec) -> str:
        if is_placeholder(spec.unique_id, self._format):
            serial = self._sequences.next_item_serial()
            return format_unique_id(
                serial,
                financial_year=spec.financial_year,
                asset_name=spec.asset_name,
                location_name=spec.location_name,
                fmt=self._format,
            )

        unique_id = normalize_unique_id(spec.unique_id)
        existing = self.session.execute(
            select(InventoryItem.id).where(InventoryItem.unique_id == unique_id)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateUniqueIdError(unique_id)
        return unique_id

    # ------------------------------------------------------------------
    # Issue / return
    # ------------------------------------------------------------------

    def issue(
        self,
        item_id: UUID,
        issued_to: str,
        actor: Actor,
        expected_return_date: datetime | None = None,
        *,
        purpose: str | None = None,
        notes: str | None = None,
        request_id: UUID | None = None,
    ) -> tuple[InventoryItem, InventoryTransaction]:
        """
        Hand one unit of an item to ``issued_to``.

        Postconditions:
            - balance decreased by exactly 1; status ISSUED; issuance stamped.
            - One ISSUE entry bracketing the decrement.

        Raises:
            ItemNotFoundError, AlreadyIssuedError, OutOfStockError.
        """
        if not issued_to or not issued_to.strip():
            raise ValueError("issued_to is required")

        item = self.load_for_update(item_id)
        plan = plan_issue(str(item.id), item.status, item.balance_quantity_in_stock)
        now = self._clock.now()

        self._apply(item, plan, actor, now)
        item.issued_to = issued_to.strip()
        item.issued_by = actor.name
        item.issued_date = now
        item.expected_return_date = expected_return_date
        self.session.flush()

        entry = self._ledger.append(
            item,
            plan,
            actor,
            issued_to=item.issued_to,
            issued_by=actor.name,
            purpose=purpose or "Direct Issue",
            notes=notes or "Item issued to employee",
            request_id=request_id,
            expected_return_date=expected_return_date,
        )
        logger.info(
            "item_issued",
            extra={
                "item_id": str(item.id),
                "issued_to": item.issued_to,
                "balance": item.balance_quantity_in_stock,
            },
        )
        return item, entry

    def return_item(
        self,
        item_id: UUID,
        actor: Actor,
        condition: AssetCondition | None = None,
        *,
        notes: str | None = None,
        request_id: UUID | None = None,
    ) -> tuple[InventoryItem, InventoryTransaction]:
        """
        Take an issued unit back into stock.

        Postconditions:
            - balance increased by exactly 1; status AVAILABLE; issuance
              fields cleared; condition updated when given.
            - One RETURN entry bracketing the increment.

        Raises:
            ItemNotFoundError, NotIssuedError.
        """
        item = self.load_for_update(item_id)
        plan = plan_return(str(item.id), item.status, item.balance_quantity_in_stock)
        now = self._clock.now()
        holder = item.issued_to

        self._apply(item, plan, actor, now)
        item.clear_issuance()
        if condition is not None:
            item.condition_of_asset = condition
        self.session.flush()

        entry = self._ledger.append(
            item,
            plan,
            actor,
            issued_to=holder,
            issued_by=actor.name,
            purpose="Item Return",
            notes=notes or "Item returned to inventory",
            request_id=request_id,
            condition=item.condition_of_asset,
            actual_return_date=now,
        )
        logger.info(
            "item_returned",
            extra={
                "item_id": str(item.id),
                "returned_by": holder,
                "balance": item.balance_quantity_in_stock,
            },
        )
        return item, entry

    # ------------------------------------------------------------------
    # Stock corrections
    # ------------------------------------------------------------------

    def adjust(
        self,
        item_id: UUID,
        new_quantity: int,
        actor: Actor,
        reason: str | None = None,
    ) -> tuple[InventoryItem, InventoryTransaction]:
        """
        Correct an item's stock to an absolute quantity.

        Occupancy of the item's location follows the delta: an increase is
        reserved (and may fail with CapacityExceededError), a decrease is
        released.

        Raises:
            ItemNotFoundError, ItemCurrentlyIssuedError, InvalidQuantityError,
            CapacityExceededError.
        """
        item = self.load_for_update(item_id)
        plan = plan_adjustment(
            str(item.id), item.status, item.balance_quantity_in_stock, new_quantity
        )
        if item.location_id is not None:
            if plan.delta > 0:
                self._occupancy.reserve(item.location_id, plan.delta)
            else:
                self._occupancy.release(item.location_id, -plan.delta)

        self._apply(item, plan, actor, self._clock.now())
        self.session.flush()

        entry = self._ledger.append(
            item,
            plan,
            actor,
            purpose="Stock Adjustment",
            notes=reason,
        )
        logger.info(
            "item_adjusted",
            extra={
                "item_id": str(item.id),
                "previous_quantity": plan.previous_quantity,
                "new_quantity": plan.new_quantity,
            },
        )
        return item, entry

    def dispose(
        self,
        item_id: UUID,
        quantity: int,
        actor: Actor,
        reason: str | None = None,
    ) -> tuple[InventoryItem, InventoryTransaction]:
        """
        Permanently remove ``quantity`` units from stock.

        Raises:
            ItemNotFoundError, ItemCurrentlyIssuedError, InvalidQuantityError,
            OutOfStockError, InsufficientStockError.
        """
        item = self.load_for_update(item_id)
        plan = plan_disposal(
            str(item.id), item.status, item.balance_quantity_in_stock, quantity
        )
        if item.location_id is not None:
            self._occupancy.release(item.location_id, plan.quantity)

        self._apply(item, plan, actor, self._clock.now())
        self.session.flush()

        entry = self._ledger.append(
            item,
            plan,
            actor,
            purpose="Disposal",
            notes=reason,
            condition=item.condition_of_asset,
        )
        logger.info(
            "item_disposed",
            extra={"item_id": str(item.id), "quantity": plan.quantity},
        )
        return item, entry

    def set_status(
        self, item_id: UUID, status: ItemStatus, actor: Actor
    ) -> InventoryItem:
        """
        Set an externally managed status flag (maintenance, retired, available).

        No ledger entry is written: stock does not change.

        Raises:
            ItemNotFoundError, InvalidStatusTransitionError.
        """
        item = self.load_for_update(item_id)
        previous = item.status
        item.status = plan_status_change(str(item.id), item.status, ItemStatus(status))
        self._stamp(item, actor, self._clock.now())
        self.session.flush()
        logger.info(
            "item_status_changed",
            extra={
                "item_id": str(item.id),
                "from_status": ItemStatus(previous).value,
                "to_status": item.status.value,
            },
        )
        return item

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        item: InventoryItem,
        plan: StockTransition,
        actor: Actor,
        now: datetime,
    ) -> None:
        item.balance_quantity_in_stock = plan.new_quantity
        item.status = plan.resulting_status
        self._stamp(item, actor, now)

    @staticmethod
    def _stamp(item: InventoryItem, actor: Actor, now: datetime) -> None:
        item.last_modified_by = actor.name
        item.last_modified_date = now
        item.updated_by_id = actor.actor_id
