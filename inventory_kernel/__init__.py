"""
Inventory Kernel - ledger and lifecycle engine

The stock-accounting core of the inventory tracker:
- Globally unique item identifiers from an atomic counter
- available <-> issued state machine with single-unit stock movement
- Append-only ledger of every stock-affecting event
- Location occupancy bookkeeping
- Atomic cascade deletion of an item and everything that references it
"""

__version__ = "0.1.0"
