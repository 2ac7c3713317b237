"""
CascadeService -- atomic removal of an item and everything referencing it.

Responsibility:
    Deletes an item together with its ledger entries, employee requests and
    return requests, and releases the stock it held from its location.

Architecture position:
    Kernel > Services -- imperative shell.  The ONLY sanctioned path by
    which ledger entries disappear.

Invariants enforced:
    - Cascade atomicity: all deletions run inside one savepoint of the
      caller's transaction.  Either every referencing row and the item are
      gone, or none is.
    - Referencing rows are deleted before the item, so foreign keys are
      satisfied at every statement.

Failure modes:
    - ItemNotFoundError: no such item.
    - ItemCurrentlyIssuedError: the item is issued.
    - CascadeFailureError: any failure during the deletion; the
      savepoint is rolled back and nothing was deleted.

Audit relevance:
    Logs ``cascade_delete_completed`` with the per-table row counts.  Ledger
    rows are removed with a Core DELETE that bypasses the ORM immutability
    listeners on purpose.
"""

from uuid import UUID

from sqlalchemy import delete, select

from inventory_kernel.domain.dtos import Actor, CascadeResult
from inventory_kernel.exceptions import (
    CascadeFailureError,
    ItemCurrentlyIssuedError,
    ItemNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.models.request import Request, ReturnRequest
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.occupancy_service import OccupancyService

logger = get_logger("services.cascade")


class CascadeService(BaseService[InventoryItem]):
    """
    Delete an item and its dependents in one unit of work.

    Contract:
        The item's stock (balance_quantity_in_stock) is released from its
        location, mirroring the reservation made at creation and kept
        current by adjust/dispose.
    """

    def __init__(self, session, occupancy_service: OccupancyService | None = None):
        super().__init__(session)
        self._occupancy = occupancy_service or OccupancyService(session)

    def delete_item(self, item_id: UUID, actor: Actor) -> CascadeResult:
        """
        Remove an item and every row that references it.

        Raises:
            ItemNotFoundError, ItemCurrentlyIssuedError, CascadeFailureError.
        """
        item = self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(str(item_id))
        if item.is_issued:
            raise ItemCurrentlyIssuedError(str(item_id), operation="delete")

        unique_id = item.unique_id
        location_id = item.location_id
        held = item.balance_quantity_in_stock

        savepoint = self.session.begin_nested()
        try:
            ledger_deleted = self._delete_where(
                InventoryTransaction, InventoryTransaction.inventory_item_id == item_id
            )
            requests_deleted = self._delete_where(
                Request, Request.inventory_item_id == item_id
            )
            return_requests_deleted = self._delete_where(
                ReturnRequest, ReturnRequest.inventory_item_id == item_id
            )
            self._delete_where(InventoryItem, InventoryItem.id == item_id)

            released = 0
            if location_id is not None and held > 0:
                self._occupancy.release(location_id, held)
                released = held
            savepoint.commit()
        except Exception as exc:
            savepoint.rollback()
            logger.error(
                "cascade_delete_failed",
                extra={"item_id": str(item_id), "error": str(exc)},
            )
            raise CascadeFailureError(str(item_id), str(exc)) from exc

        self.session.expunge(item)

        result = CascadeResult(
            item_id=item_id,
            unique_id=unique_id,
            ledger_entries_deleted=ledger_deleted,
            requests_deleted=requests_deleted,
            return_requests_deleted=return_requests_deleted,
            occupancy_released=released,
        )
        logger.info(
            "cascade_delete_completed",
            extra={
                "item_id": str(item_id),
                "unique_id": unique_id,
                "deleted_by": str(actor.actor_id),
                "ledger_entries_deleted": ledger_deleted,
                "requests_deleted": requests_deleted,
                "return_requests_deleted": return_requests_deleted,
                "occupancy_released": released,
            },
        )
        return result

    def _delete_where(self, model, criterion) -> int:
        result = self.session.execute(
            delete(model)
            .where(criterion)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
