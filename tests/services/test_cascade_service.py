"""
CascadeService tests.

Deleting an item removes its ledger entries, requests and return requests
and releases the stock it held from its location.
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from inventory_kernel.domain.states import AssetCondition
from inventory_kernel.exceptions import ItemCurrentlyIssuedError, ItemNotFoundError
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.models.request import Request, ReturnRequest
from inventory_kernel.selectors import LocationSelector


def _count(session, model, column, value) -> int:
    return session.execute(
        select(func.count()).select_from(model).where(column == value)
    ).scalar_one()


class TestDeleteItem:
    def test_removes_item_and_ledger(
        self, session, cascade_service, lifecycle_service, create_item, actor
    ):
        item = create_item()
        item_id = item.id
        lifecycle_service.issue(item_id, "Bob", actor)
        lifecycle_service.return_item(item_id, actor)

        result = cascade_service.delete_item(item_id, actor)

        assert result.ledger_entries_deleted == 3
        assert result.unique_id.startswith("IHUB/")
        assert _count(session, InventoryItem, InventoryItem.id, item_id) == 0
        assert (
            _count(
                session,
                InventoryTransaction,
                InventoryTransaction.inventory_item_id,
                item_id,
            )
            == 0
        )

    def test_removes_requests_and_return_requests(
        self,
        session,
        cascade_service,
        approval_service,
        create_item,
        actor,
        employee,
    ):
        item = create_item()
        request = approval_service.submit_request(employee, "Laptop", "work", "needed")
        approval_service.approve_request(request.id, actor, inventory_item_id=item.id)
        return_request = approval_service.submit_return_request(
            employee, item.id, "done", AssetCondition.GOOD
        )
        approval_service.approve_return_request(return_request.id, actor)

        result = cascade_service.delete_item(item.id, actor)

        assert result.requests_deleted == 1
        assert result.return_requests_deleted == 1
        assert result.ledger_entries_deleted == 3
        assert result.total_rows_deleted == 6
        assert _count(session, Request, Request.inventory_item_id, item.id) == 0
        assert _count(session, ReturnRequest, ReturnRequest.inventory_item_id, item.id) == 0

    def test_releases_location_stock(
        self, session, cascade_service, lifecycle_service, create_location, make_spec, actor
    ):
        location = create_location(capacity=20)
        item, _ = lifecycle_service.create(
            make_spec(location_id=location.id, balance_quantity_in_stock=7), actor
        )
        other, _ = lifecycle_service.create(
            make_spec(location_id=location.id, balance_quantity_in_stock=3), actor
        )

        result = cascade_service.delete_item(item.id, actor)

        assert result.occupancy_released == 7
        assert LocationSelector(session).get(location.id).current_occupancy == 3

    def test_other_items_untouched(
        self, session, cascade_service, create_item, actor
    ):
        doomed = create_item(asset_name="Desk")
        kept = create_item(asset_name="Chair")
        cascade_service.delete_item(doomed.id, actor)
        assert (
            _count(
                session,
                InventoryTransaction,
                InventoryTransaction.inventory_item_id,
                kept.id,
            )
            == 1
        )

    def test_issued_item_cannot_be_deleted(
        self, session, cascade_service, lifecycle_service, create_item, actor
    ):
        item = create_item()
        lifecycle_service.issue(item.id, "Bob", actor)
        with pytest.raises(ItemCurrentlyIssuedError) as exc_info:
            cascade_service.delete_item(item.id, actor)
        assert exc_info.value.operation == "delete"
        assert _count(session, InventoryItem, InventoryItem.id, item.id) == 1

    def test_missing_item(self, cascade_service, actor):
        with pytest.raises(ItemNotFoundError):
            cascade_service.delete_item(uuid4(), actor)

    def test_logs_completion(self, cascade_service, create_item, actor, captured_logs):
        item = create_item()
        cascade_service.delete_item(item.id, actor)
        completed = [r for r in captured_logs() if r["message"] == "cascade_delete_completed"]
        assert len(completed) == 1
        assert completed[0]["ledger_entries_deleted"] == 1
