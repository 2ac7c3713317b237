"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure of the ledger engine is a recoverable, caller-visible outcome
that the route layer turns into a specific response. Callers catch by type
and read structured attributes instead of parsing messages:

    try:
        orchestrator.issue_item(item_id, issued_to="Bob", actor=admin)
    except AlreadyIssuedError as e:
        api_response(code=e.code, item=e.item_id)

Every exception has:
  1. a TYPED class (catch by type, not message)
  2. a CODE attribute (machine-readable, API-safe)
  3. structured DATA attributes (serialised by the JSON log formatter)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- ItemError
    |   +-- ItemNotFoundError
    |   +-- DuplicateUniqueIdError
    |   +-- InvalidQuantityError
    |
    +-- LifecycleError
    |   +-- OutOfStockError
    |   +-- AlreadyIssuedError
    |   +-- NotIssuedError
    |   +-- InsufficientStockError
    |   +-- ItemCurrentlyIssuedError
    |   +-- InvalidStatusTransitionError
    |
    +-- LocationError
    |   +-- InvalidLocationError
    |   +-- CapacityExceededError
    |
    +-- RequestError
    |   +-- RequestNotFoundError
    |   +-- RequestAlreadyReviewedError
    |   +-- DuplicateReturnRequestError
    |   +-- RejectionReasonRequiredError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- TransactionError
        +-- TransactionFailedError
        +-- CascadeFailureError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                       | When Raised
--------------|----------------------------|------------------------------------
Item          | ITEM_NOT_FOUND             | Item id doesn't exist
              | DUPLICATE_UNIQUE_ID        | Caller-supplied uniqueid collides
              | INVALID_QUANTITY           | Negative / no-op stock quantity
--------------|----------------------------|------------------------------------
Lifecycle     | OUT_OF_STOCK               | Issue with zero stock
              | ALREADY_ISSUED             | Issue on an issued item
              | NOT_ISSUED                 | Return on an item not issued
              | INSUFFICIENT_STOCK         | More units requested than held
              | ITEM_CURRENTLY_ISSUED      | Delete/adjust an issued item
              | INVALID_STATUS_TRANSITION  | Flag change not allowed
--------------|----------------------------|------------------------------------
Location      | INVALID_LOCATION           | Location missing or inactive
              | CAPACITY_EXCEEDED          | Reservation would exceed capacity
--------------|----------------------------|------------------------------------
Request       | REQUEST_NOT_FOUND          | Request id doesn't exist
              | REQUEST_ALREADY_REVIEWED   | Request no longer pending
              | DUPLICATE_RETURN_REQUEST   | Pending return already exists
              | REJECTION_REASON_REQUIRED  | Return rejected without reason
--------------|----------------------------|------------------------------------
Concurrency   | OPTIMISTIC_LOCK_CONFLICT   | Competing writer changed the row
Immutability  | IMMUTABILITY_VIOLATION     | Ledger entry modified or deleted
Transaction   | TRANSACTION_FAILED         | Storage failure, rolled back
              | CASCADE_FAILURE            | Cascade deletion failed, rolled back

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError/RuntimeError, so domain errors are
   catchable as a group without catching programming errors.

2. Every error is raised BEFORE or INSTEAD OF a commit. The orchestrator rolls
   the transaction back, so an error never leaves partial state.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Item-related exceptions


class ItemError(InventoryKernelError):
    """Base exception for item-related errors."""

    code: str = "ITEM_ERROR"


class ItemNotFoundError(ItemError):
    """Inventory item with given ID was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Inventory item not found: {item_id}")


class DuplicateUniqueIdError(ItemError):
    """A caller-supplied uniqueid is already used by another item."""

    code: str = "DUPLICATE_UNIQUE_ID"

    def __init__(self, unique_id: str):
        self.unique_id = unique_id
        super().__init__(
            f"uniqueid already exists: {unique_id}. Please use a different unique ID."
        )


class InvalidQuantityError(ItemError):
    """A stock quantity argument is out of range for the operation."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: int, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity}: {reason}")


# Lifecycle-related exceptions


class LifecycleError(InventoryKernelError):
    """Base exception for state machine violations."""

    code: str = "LIFECYCLE_ERROR"


class OutOfStockError(LifecycleError):
    """Issue attempted with zero available stock."""

    code: str = "OUT_OF_STOCK"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item is out of stock: {item_id}")


class AlreadyIssuedError(LifecycleError):
    """Issue attempted on an item already in the issued state."""

    code: str = "ALREADY_ISSUED"

    def __init__(self, item_id: str, issued_to: str | None = None):
        self.item_id = item_id
        self.issued_to = issued_to
        super().__init__(f"Item is already issued: {item_id}")


class NotIssuedError(LifecycleError):
    """Return attempted on an item that is not issued."""

    code: str = "NOT_ISSUED"

    def __init__(self, item_id: str, status: str):
        self.item_id = item_id
        self.status = status
        super().__init__(
            f"Item is not currently issued: {item_id} (status={status})"
        )


class InsufficientStockError(LifecycleError):
    """More units were requested than the item holds."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock available for {item_id}: "
            f"requested {requested}, available {available}"
        )


class ItemCurrentlyIssuedError(LifecycleError):
    """Operation refused because the item is issued."""

    code: str = "ITEM_CURRENTLY_ISSUED"

    def __init__(self, item_id: str, operation: str = "delete"):
        self.item_id = item_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} item that is currently issued: {item_id}"
        )


class InvalidStatusTransitionError(LifecycleError):
    """Externally requested status change is not allowed."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, item_id: str, from_status: str, to_status: str):
        self.item_id = item_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot change status of {item_id} from {from_status} to {to_status}"
        )


# Location-related exceptions


class LocationError(InventoryKernelError):
    """Base exception for location errors."""

    code: str = "LOCATION_ERROR"


class InvalidLocationError(LocationError):
    """Referenced location is missing or inactive."""

    code: str = "INVALID_LOCATION"

    def __init__(self, location_id: str, reason: str):
        self.location_id = location_id
        self.reason = reason
        super().__init__(f"Invalid location {location_id}: {reason}")


class CapacityExceededError(LocationError):
    """Occupancy reservation would exceed the location capacity."""

    code: str = "CAPACITY_EXCEEDED"

    def __init__(
        self,
        location_id: str,
        requested: int,
        current_occupancy: int,
        capacity: int,
    ):
        self.location_id = location_id
        self.requested = requested
        self.current_occupancy = current_occupancy
        self.capacity = capacity
        super().__init__(
            f"Cannot add {requested} items to location {location_id}: "
            f"occupancy {current_occupancy}/{capacity}"
        )


# Request-related exceptions


class RequestError(InventoryKernelError):
    """Base exception for approval workflow errors."""

    code: str = "REQUEST_ERROR"


class RequestNotFoundError(RequestError):
    """Request (or return request) with given ID was not found."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: str, kind: str = "request"):
        self.request_id = request_id
        self.kind = kind
        super().__init__(f"{kind.replace('_', ' ').capitalize()} not found: {request_id}")


class RequestAlreadyReviewedError(RequestError):
    """Request is no longer pending."""

    code: str = "REQUEST_ALREADY_REVIEWED"

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f"Request {request_id} has already been reviewed (status={status})"
        )


class DuplicateReturnRequestError(RequestError):
    """A pending return request already exists for the item."""

    code: str = "DUPLICATE_RETURN_REQUEST"

    def __init__(self, item_id: str, existing_request_id: str):
        self.item_id = item_id
        self.existing_request_id = existing_request_id
        super().__init__(
            f"A return request for item {item_id} is already pending: "
            f"{existing_request_id}"
        )


class RejectionReasonRequiredError(RequestError):
    """Return request rejected without a reason."""

    code: str = "REJECTION_REASON_REQUIRED"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Rejection reason is required for {request_id}")


# Concurrency-related exceptions


class ConcurrencyError(InventoryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability-related exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Ledger entries are immutable from creation; they disappear only through
    cascade deletion of their item.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Transaction-related exceptions


class TransactionError(InventoryKernelError):
    """Base exception for aborted units of work."""

    code: str = "TRANSACTION_ERROR"


class TransactionFailedError(TransactionError):
    """
    A storage-layer failure aborted an atomic operation.

    The transaction was rolled back; no partial effect is visible.
    """

    code: str = "TRANSACTION_FAILED"

    def __init__(self, operation: str, cause: str):
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Operation {operation} failed and was rolled back: {cause}"
        )


class CascadeFailureError(TransactionError):
    """Cascade deletion of an item failed; nothing was deleted."""

    code: str = "CASCADE_FAILURE"

    def __init__(self, item_id: str, cause: str):
        self.item_id = item_id
        self.cause = cause
        super().__init__(
            f"Error deleting inventory item {item_id} and related records: {cause}"
        )
