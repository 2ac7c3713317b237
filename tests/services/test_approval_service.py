"""
ApprovalService tests: employee requests drive issues, return requests
drive returns, and a failed approval changes nothing.
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from inventory_kernel.domain.states import AssetCondition, ItemStatus, RequestStatus
from inventory_kernel.exceptions import (
    AlreadyIssuedError,
    DuplicateReturnRequestError,
    InsufficientStockError,
    InvalidQuantityError,
    ItemNotFoundError,
    NotIssuedError,
    RejectionReasonRequiredError,
    RequestAlreadyReviewedError,
    RequestNotFoundError,
)
from inventory_kernel.models.inventory_transaction import InventoryTransaction


@pytest.fixture
def pending_request(approval_service, employee):
    def _submit(**kwargs):
        return approval_service.submit_request(
            employee, "Laptop", "Project work", "Old one broke", **kwargs
        )

    return _submit


class TestSubmitRequest:
    def test_submit(self, pending_request, employee):
        request = pending_request(quantity=2)
        assert request.status == RequestStatus.PENDING
        assert request.employee_name == employee.name
        assert request.quantity == 2

    def test_quantity_must_be_positive(self, pending_request):
        with pytest.raises(InvalidQuantityError):
            pending_request(quantity=0)


class TestApproveRequest:
    def test_approve_issues_item(
        self, session, approval_service, pending_request, create_item, actor, clock
    ):
        item = create_item(balance_quantity_in_stock=5)
        request = pending_request()

        approved, (issued, entry) = approval_service.approve_request(
            request.id, actor, remarks="ok", inventory_item_id=item.id
        )

        assert approved.status == RequestStatus.APPROVED
        assert approved.inventory_item_id == item.id
        assert approved.approved_quantity == 1
        assert approved.reviewed_by_name == "Admin"
        assert approved.reviewed_at == clock.now()
        assert issued.status == ItemStatus.ISSUED
        assert issued.issued_to == "Bob"
        assert issued.balance_quantity_in_stock == 4
        assert entry.request_id == request.id
        assert entry.notes == f"Approved request: {request.id}"

    def test_ledger_records_single_unit_for_multi_unit_approval(
        self, approval_service, pending_request, create_item, actor
    ):
        item = create_item(balance_quantity_in_stock=5)
        request = pending_request(quantity=3)
        approved, (issued, entry) = approval_service.approve_request(
            request.id, actor, inventory_item_id=item.id
        )
        assert approved.approved_quantity == 3
        assert entry.quantity == 1
        assert issued.balance_quantity_in_stock == 4

    def test_approve_without_item(self, approval_service, pending_request, actor):
        request = pending_request()
        approved, issued = approval_service.approve_request(request.id, actor)
        assert approved.status == RequestStatus.APPROVED
        assert issued is None

    def test_insufficient_stock_changes_nothing(
        self, session, approval_service, pending_request, create_item, actor
    ):
        item = create_item(balance_quantity_in_stock=2)
        request = pending_request()

        with pytest.raises(InsufficientStockError) as exc_info:
            approval_service.approve_request(
                request.id, actor, approved_quantity=3, inventory_item_id=item.id
            )

        assert (exc_info.value.requested, exc_info.value.available) == (3, 2)
        assert request.status == RequestStatus.PENDING
        assert item.status == ItemStatus.AVAILABLE
        assert item.balance_quantity_in_stock == 2

    @pytest.mark.parametrize("approved_quantity", [0, -1])
    def test_approved_quantity_below_one_is_rejected(
        self, approval_service, pending_request, create_item, actor, approved_quantity
    ):
        item = create_item(balance_quantity_in_stock=2)
        request = pending_request(quantity=5)

        with pytest.raises(InvalidQuantityError):
            approval_service.approve_request(
                request.id,
                actor,
                approved_quantity=approved_quantity,
                inventory_item_id=item.id,
            )

        assert request.status == RequestStatus.PENDING
        assert request.approved_quantity is None
        assert item.balance_quantity_in_stock == 2

    def test_unknown_item(self, approval_service, pending_request, actor):
        request = pending_request()
        with pytest.raises(ItemNotFoundError):
            approval_service.approve_request(request.id, actor, inventory_item_id=uuid4())

    def test_item_already_issued(
        self, approval_service, lifecycle_service, pending_request, create_item, actor
    ):
        item = create_item()
        lifecycle_service.issue(item.id, "Carol", actor)
        request = pending_request()
        with pytest.raises(AlreadyIssuedError):
            approval_service.approve_request(request.id, actor, inventory_item_id=item.id)

    def test_unknown_request(self, approval_service, actor):
        with pytest.raises(RequestNotFoundError):
            approval_service.approve_request(uuid4(), actor)

    def test_already_reviewed(self, approval_service, pending_request, actor):
        request = pending_request()
        approval_service.reject_request(request.id, actor, "no budget")
        with pytest.raises(RequestAlreadyReviewedError) as exc_info:
            approval_service.approve_request(request.id, actor)
        assert exc_info.value.status == "rejected"


class TestRejectRequest:
    def test_reject(self, session, approval_service, pending_request, create_item, actor):
        item = create_item()
        request = pending_request()
        rejected = approval_service.reject_request(request.id, actor, "no budget")
        assert rejected.status == RequestStatus.REJECTED
        assert rejected.rejection_reason == "no budget"
        assert item.balance_quantity_in_stock == 5

    def test_reject_twice(self, approval_service, pending_request, actor):
        request = pending_request()
        approval_service.reject_request(request.id, actor)
        with pytest.raises(RequestAlreadyReviewedError):
            approval_service.reject_request(request.id, actor)


class TestReturnRequests:
    @pytest.fixture
    def issued_item(self, lifecycle_service, create_item, actor, employee):
        item = create_item(balance_quantity_in_stock=5)
        lifecycle_service.issue(item.id, employee.name, actor)
        return item

    def test_submit_and_approve(
        self, session, approval_service, issued_item, employee, actor
    ):
        return_request = approval_service.submit_return_request(
            employee, issued_item.id, "Project finished", AssetCondition.FAIR
        )
        assert return_request.asset_name == issued_item.asset_name

        approved, (item, entry) = approval_service.approve_return_request(
            return_request.id, actor, remarks="received"
        )

        assert approved.status == RequestStatus.APPROVED
        assert approved.approval_remarks == "received"
        assert item.status == ItemStatus.AVAILABLE
        assert item.balance_quantity_in_stock == 5
        assert item.condition_of_asset == AssetCondition.FAIR
        assert entry.request_id == return_request.id
        assert "Project finished" in entry.notes

    def test_only_holder_may_request_return(
        self, approval_service, issued_item
    ):
        from inventory_kernel.domain.dtos import Actor

        stranger = Actor(actor_id=uuid4(), name="Mallory")
        with pytest.raises(NotIssuedError):
            approval_service.submit_return_request(
                stranger, issued_item.id, "mine now", AssetCondition.GOOD
            )

    def test_item_not_issued(self, approval_service, create_item, employee):
        item = create_item()
        with pytest.raises(NotIssuedError):
            approval_service.submit_return_request(
                employee, item.id, "why not", AssetCondition.GOOD
            )

    def test_one_pending_per_item(self, approval_service, issued_item, employee):
        first = approval_service.submit_return_request(
            employee, issued_item.id, "done", AssetCondition.GOOD
        )
        with pytest.raises(DuplicateReturnRequestError) as exc_info:
            approval_service.submit_return_request(
                employee, issued_item.id, "done again", AssetCondition.GOOD
            )
        assert exc_info.value.existing_request_id == str(first.id)

    def test_reject_requires_reason(self, approval_service, issued_item, employee, actor):
        return_request = approval_service.submit_return_request(
            employee, issued_item.id, "done", AssetCondition.GOOD
        )
        with pytest.raises(RejectionReasonRequiredError):
            approval_service.reject_return_request(return_request.id, actor, "  ")

    def test_reject_keeps_item_issued(
        self, session, approval_service, issued_item, employee, actor
    ):
        return_request = approval_service.submit_return_request(
            employee, issued_item.id, "done", AssetCondition.GOOD
        )
        rejected = approval_service.reject_return_request(
            return_request.id, actor, "still needed"
        )
        assert rejected.status == RequestStatus.REJECTED
        assert issued_item.status == ItemStatus.ISSUED
        entries = session.execute(
            select(func.count(InventoryTransaction.id)).where(
                InventoryTransaction.inventory_item_id == issued_item.id
            )
        ).scalar_one()
        assert entries == 2

    def test_new_request_allowed_after_rejection(
        self, approval_service, issued_item, employee, actor
    ):
        first = approval_service.submit_return_request(
            employee, issued_item.id, "done", AssetCondition.GOOD
        )
        approval_service.reject_return_request(first.id, actor, "not yet")
        second = approval_service.submit_return_request(
            employee, issued_item.id, "done now", AssetCondition.GOOD
        )
        assert second.status == RequestStatus.PENDING
