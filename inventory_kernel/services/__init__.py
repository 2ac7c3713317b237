"""Write-side kernel services.  Services flush; callers commit."""

from inventory_kernel.services.approval_service import ApprovalService
from inventory_kernel.services.cascade_service import CascadeService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.lifecycle_service import LifecycleService
from inventory_kernel.services.occupancy_service import OccupancyService
from inventory_kernel.services.sequence_service import SequenceService

__all__ = [
    "ApprovalService",
    "CascadeService",
    "LedgerService",
    "LifecycleService",
    "OccupancyService",
    "SequenceService",
]
