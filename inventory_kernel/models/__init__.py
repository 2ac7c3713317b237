"""ORM models.  Importing this package registers every table on Base.metadata."""

from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.models.location import Location
from inventory_kernel.models.request import Request, ReturnRequest
from inventory_kernel.models.sequence_counter import SequenceCounter

__all__ = [
    "InventoryItem",
    "InventoryTransaction",
    "Location",
    "Request",
    "ReturnRequest",
    "SequenceCounter",
]
