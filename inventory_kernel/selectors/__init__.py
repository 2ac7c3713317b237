"""Read-only selectors.  Selectors never flush or commit."""

from inventory_kernel.selectors.item_selector import ItemSelector
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.location_selector import LocationSelector

__all__ = ["ItemSelector", "LedgerSelector", "LocationSelector"]
