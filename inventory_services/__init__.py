"""
inventory_services -- transactional orchestration over the inventory kernel.

``InventoryOrchestrator`` is the public API invoked by the route layer.
"""

from inventory_services.inventory_orchestrator import InventoryOrchestrator

__all__ = ["InventoryOrchestrator"]
