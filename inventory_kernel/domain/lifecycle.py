"""
Lifecycle -- pure planning of stock transitions.

Responsibility:
    Decides whether a lifecycle operation is allowed for an item in a given
    state and computes the exact stock transition (previous -> new) it
    produces.  The service layer persists the plan; it never re-derives
    quantities itself.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Consumed by
    services/lifecycle_service.py.

Invariants enforced:
    - Stock never goes negative: every plan yields new_quantity >= 0.
    - Issue and return move exactly one unit, regardless of the item's
      quantity_per_item.
    - Precondition order for issue: the ISSUED check runs before the stock
      check, so a repeated issue always reports AlreadyIssuedError.

Failure modes:
    - AlreadyIssuedError, OutOfStockError, NotIssuedError,
      InsufficientStockError, ItemCurrentlyIssuedError,
      InvalidQuantityError, InvalidStatusTransitionError.

Audit relevance:
    Each StockTransition becomes exactly one ledger entry.  Keeping the
    arithmetic here makes the ledger chain a function of the plan alone.
"""

from dataclasses import dataclass

from inventory_kernel.domain.states import (
    ItemStatus,
    TransactionType,
    is_externally_settable,
    is_issuable_status,
)
from inventory_kernel.exceptions import (
    AlreadyIssuedError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStatusTransitionError,
    ItemCurrentlyIssuedError,
    NotIssuedError,
    OutOfStockError,
)

# Units moved by a single issue or return.
ISSUE_UNIT = 1


@dataclass(frozen=True)
class StockTransition:
    """
    Planned change to an item's stock.

    Guarantees:
        - previous_quantity and new_quantity are both >= 0.
        - quantity is the absolute number of units moved.
    """

    transaction_type: TransactionType
    quantity: int
    previous_quantity: int
    new_quantity: int
    resulting_status: ItemStatus

    @property
    def delta(self) -> int:
        return self.new_quantity - self.previous_quantity


def plan_issue(item_id: str, status: ItemStatus, balance: int) -> StockTransition:
    """
    Plan handing one unit of an item to a person.

    Raises:
        AlreadyIssuedError: The item is already issued.
        OutOfStockError: The balance is zero.
    """
    if not is_issuable_status(status):
        raise AlreadyIssuedError(item_id)
    if balance <= 0:
        raise OutOfStockError(item_id)
    return StockTransition(
        transaction_type=TransactionType.ISSUE,
        quantity=ISSUE_UNIT,
        previous_quantity=balance,
        new_quantity=balance - ISSUE_UNIT,
        resulting_status=ItemStatus.ISSUED,
    )


def plan_return(item_id: str, status: ItemStatus, balance: int) -> StockTransition:
    """
    Plan taking an issued unit back into stock.

    Raises:
        NotIssuedError: The item is not issued.
    """
    if status != ItemStatus.ISSUED:
        raise NotIssuedError(item_id, ItemStatus(status).value)
    return StockTransition(
        transaction_type=TransactionType.RETURN,
        quantity=ISSUE_UNIT,
        previous_quantity=balance,
        new_quantity=balance + ISSUE_UNIT,
        resulting_status=ItemStatus.AVAILABLE,
    )


def plan_purchase(initial_quantity: int) -> StockTransition:
    """
    Plan the opening entry of a newly created item.

    Raises:
        InvalidQuantityError: initial_quantity is negative.
    """
    if initial_quantity < 0:
        raise InvalidQuantityError(initial_quantity, "initial stock cannot be negative")
    return StockTransition(
        transaction_type=TransactionType.PURCHASE,
        quantity=initial_quantity,
        previous_quantity=0,
        new_quantity=initial_quantity,
        resulting_status=ItemStatus.AVAILABLE,
    )


def plan_adjustment(
    item_id: str,
    status: ItemStatus,
    balance: int,
    new_quantity: int,
) -> StockTransition:
    """
    Plan a stock correction to an absolute quantity.

    Raises:
        ItemCurrentlyIssuedError: The item is issued.
        InvalidQuantityError: new_quantity is negative or equals the balance.
    """
    if status == ItemStatus.ISSUED:
        raise ItemCurrentlyIssuedError(item_id, operation="adjust")
    if new_quantity < 0:
        raise InvalidQuantityError(new_quantity, "stock cannot be negative")
    if new_quantity == balance:
        raise InvalidQuantityError(new_quantity, "adjustment does not change stock")
    return StockTransition(
        transaction_type=TransactionType.ADJUSTMENT,
        quantity=abs(new_quantity - balance),
        previous_quantity=balance,
        new_quantity=new_quantity,
        resulting_status=status,
    )


def plan_disposal(
    item_id: str,
    status: ItemStatus,
    balance: int,
    quantity: int,
) -> StockTransition:
    """
    Plan removing units from stock permanently.

    Raises:
        ItemCurrentlyIssuedError: The item is issued.
        InvalidQuantityError: quantity is below one.
        OutOfStockError: The balance is zero.
        InsufficientStockError: quantity exceeds the balance.
    """
    if status == ItemStatus.ISSUED:
        raise ItemCurrentlyIssuedError(item_id, operation="dispose")
    if quantity < 1:
        raise InvalidQuantityError(quantity, "at least one unit must be disposed")
    if balance <= 0:
        raise OutOfStockError(item_id)
    if quantity > balance:
        raise InsufficientStockError(item_id, requested=quantity, available=balance)
    return StockTransition(
        transaction_type=TransactionType.DISPOSAL,
        quantity=quantity,
        previous_quantity=balance,
        new_quantity=balance - quantity,
        resulting_status=status,
    )


def plan_status_change(
    item_id: str,
    current: ItemStatus,
    target: ItemStatus,
) -> ItemStatus:
    """
    Validate an externally requested status flag.

    Raises:
        InvalidStatusTransitionError: The item is issued, or the target is
            ISSUED (which only issue may set).
    """
    if current == ItemStatus.ISSUED or not is_externally_settable(target):
        raise InvalidStatusTransitionError(
            item_id, ItemStatus(current).value, ItemStatus(target).value
        )
    return target
