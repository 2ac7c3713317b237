"""
ApprovalService -- employee request workflow bridged onto the lifecycle engine.

Responsibility:
    Records employee requests and return requests, and turns their approval
    into LifecycleService.issue / return_item calls on the reviewer's behalf.

Architecture position:
    Kernel > Services -- imperative shell.  Sits above LifecycleService and
    never touches stock or ledger rows directly.

Invariants enforced:
    - Review is one-way: only PENDING requests can be approved or rejected.
    - No state change on failure: stock, request status and ledger change
      together inside the caller's transaction or not at all.
    - At most one pending return request per item.

Failure modes:
    - RequestNotFoundError, RequestAlreadyReviewedError.
    - ItemNotFoundError, InsufficientStockError, AlreadyIssuedError,
      OutOfStockError (approval); NotIssuedError (return approval).
    - DuplicateReturnRequestError, RejectionReasonRequiredError.

Audit relevance:
    Every decision stamps reviewed_by_id, reviewed_by_name and reviewed_at
    and is logged (request_approved, request_rejected,
    return_request_approved, return_request_rejected).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import Actor
from inventory_kernel.domain.states import (
    AssetCondition,
    ItemStatus,
    RequestPriority,
    RequestStatus,
)
from inventory_kernel.exceptions import (
    DuplicateReturnRequestError,
    InsufficientStockError,
    InvalidQuantityError,
    NotIssuedError,
    RejectionReasonRequiredError,
    RequestAlreadyReviewedError,
    RequestNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.models.request import Request, ReturnRequest
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.lifecycle_service import LifecycleService

logger = get_logger("services.approval")


class ApprovalService(BaseService[Request]):
    """
    Review employee requests and return requests.

    Contract:
        Approving a request with an item issues one unit of that item to the
        requesting employee.  The ledger entry records the single unit that
        moved; the approved quantity is kept on the request.
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        lifecycle_service: LifecycleService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._lifecycle = lifecycle_service or LifecycleService(session, clock=self._clock)

    # ------------------------------------------------------------------
    # Employee requests
    # ------------------------------------------------------------------

    def submit_request(
        self,
        employee: Actor,
        item_type: str,
        purpose: str,
        justification: str,
        *,
        quantity: int = 1,
        priority: RequestPriority = RequestPriority.MEDIUM,
        department: str | None = None,
        project: str | None = None,
        estimated_cost: Decimal | None = None,
        expected_return_date: datetime | None = None,
    ) -> Request:
        if quantity < 1:
            raise InvalidQuantityError(quantity, "quantity must be at least 1")
        request = Request(
            employee_id=employee.actor_id,
            employee_name=employee.name,
            item_type=item_type,
            quantity=quantity,
            purpose=purpose,
            justification=justification,
            status=RequestStatus.PENDING,
            priority=priority,
            department=department,
            project=project,
            estimated_cost=estimated_cost,
            expected_return_date=expected_return_date,
            created_by_id=employee.actor_id,
        )
        self.session.add(request)
        self.session.flush()
        logger.info(
            "request_submitted",
            extra={"request_id": str(request.id), "item_type": item_type},
        )
        return request

    def approve_request(
        self,
        request_id: UUID,
        reviewer: Actor,
        remarks: str | None = None,
        approved_quantity: int | None = None,
        inventory_item_id: UUID | None = None,
    ) -> tuple[Request, tuple[InventoryItem, InventoryTransaction] | None]:
        """
        Approve a pending request, issuing the given item when one is named.

        Preconditions:
            - The request exists and is PENDING.
            - When inventory_item_id is given, the item exists and holds at
              least the approved quantity (request quantity if not given).

        Postconditions:
            - Request APPROVED, stamped, linked to the item.
            - When an item is named: the item is ISSUED to the employee with
              one ISSUE entry carrying request_id.

        Raises:
            RequestNotFoundError, RequestAlreadyReviewedError,
            ItemNotFoundError, InsufficientStockError, AlreadyIssuedError,
            OutOfStockError, InvalidQuantityError.
        """
        request = self._load_pending(Request, request_id, kind="request")
        if approved_quantity is not None and approved_quantity < 1:
            raise InvalidQuantityError(approved_quantity, "approved quantity must be at least 1")
        quantity = request.quantity if approved_quantity is None else approved_quantity

        issued = None
        if inventory_item_id is not None:
            item = self._lifecycle.load_for_update(inventory_item_id)
            if item.balance_quantity_in_stock < quantity:
                raise InsufficientStockError(
                    str(item.id),
                    requested=quantity,
                    available=item.balance_quantity_in_stock,
                )
            issued = self._lifecycle.issue(
                item.id,
                issued_to=request.employee_name,
                actor=reviewer,
                expected_return_date=request.expected_return_date,
                purpose=request.purpose,
                notes=f"Approved request: {request.id}",
                request_id=request.id,
            )
            request.inventory_item_id = item.id

        request.status = RequestStatus.APPROVED
        request.approved_quantity = quantity
        request.remarks = remarks
        self._stamp_review(request, reviewer)
        self.session.flush()

        logger.info(
            "request_approved",
            extra={
                "request_id": str(request.id),
                "inventory_item_id": str(inventory_item_id) if inventory_item_id else None,
                "approved_quantity": quantity,
            },
        )
        return request, issued

    def reject_request(
        self,
        request_id: UUID,
        reviewer: Actor,
        rejection_reason: str | None = None,
    ) -> Request:
        """
        Reject a pending request.  Stock is untouched.

        Raises:
            RequestNotFoundError, RequestAlreadyReviewedError.
        """
        request = self._load_pending(Request, request_id, kind="request")
        request.status = RequestStatus.REJECTED
        request.rejection_reason = rejection_reason
        self._stamp_review(request, reviewer)
        self.session.flush()
        logger.info("request_rejected", extra={"request_id": str(request.id)})
        return request

    # ------------------------------------------------------------------
    # Return requests
    # ------------------------------------------------------------------

    def submit_return_request(
        self,
        employee: Actor,
        inventory_item_id: UUID,
        return_reason: str,
        condition_on_return: AssetCondition,
        *,
        asset_name: str | None = None,
        notes: str | None = None,
    ) -> ReturnRequest:
        """
        Ask to hand back an item issued to ``employee``.

        Raises:
            ItemNotFoundError: No such item.
            NotIssuedError: The item is not issued, or is issued to someone else.
            DuplicateReturnRequestError: A return request is already pending.
        """
        item = self._lifecycle.load_for_update(inventory_item_id)
        if item.status != ItemStatus.ISSUED or item.issued_to != employee.name:
            raise NotIssuedError(str(item.id), ItemStatus(item.status).value)

        existing = self.session.execute(
            select(ReturnRequest.id).where(
                ReturnRequest.inventory_item_id == item.id,
                ReturnRequest.status == RequestStatus.PENDING,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateReturnRequestError(str(item.id), str(existing))

        return_request = ReturnRequest(
            employee_id=employee.actor_id,
            employee_name=employee.name,
            inventory_item_id=item.id,
            asset_name=asset_name or item.asset_name,
            return_reason=return_reason,
            condition_on_return=condition_on_return,
            notes=notes,
            status=RequestStatus.PENDING,
            created_by_id=employee.actor_id,
        )
        self.session.add(return_request)
        self.session.flush()
        logger.info(
            "return_request_submitted",
            extra={
                "return_request_id": str(return_request.id),
                "inventory_item_id": str(item.id),
            },
        )
        return return_request

    def approve_return_request(
        self,
        return_request_id: UUID,
        reviewer: Actor,
        remarks: str | None = None,
    ) -> tuple[ReturnRequest, tuple[InventoryItem, InventoryTransaction]]:
        """
        Approve a pending return request and take the item back.

        The item's condition becomes the condition reported on return.

        Raises:
            RequestNotFoundError, RequestAlreadyReviewedError,
            ItemNotFoundError, NotIssuedError.
        """
        return_request = self._load_pending(
            ReturnRequest, return_request_id, kind="return_request"
        )
        returned = self._lifecycle.return_item(
            return_request.inventory_item_id,
            actor=reviewer,
            condition=AssetCondition(return_request.condition_on_return),
            notes=(
                f"Approved return request: {return_request.id}. "
                f"Reason: {return_request.return_reason}. "
                f"Condition: {AssetCondition(return_request.condition_on_return).value}"
            ),
            request_id=return_request.id,
        )

        return_request.status = RequestStatus.APPROVED
        return_request.approval_remarks = remarks
        self._stamp_review(return_request, reviewer)
        self.session.flush()

        logger.info(
            "return_request_approved",
            extra={"return_request_id": str(return_request.id)},
        )
        return return_request, returned

    def reject_return_request(
        self,
        return_request_id: UUID,
        reviewer: Actor,
        rejection_reason: str,
    ) -> ReturnRequest:
        """
        Reject a pending return request.  The item stays issued.

        Raises:
            RejectionReasonRequiredError, RequestNotFoundError,
            RequestAlreadyReviewedError.
        """
        if not rejection_reason or not rejection_reason.strip():
            raise RejectionReasonRequiredError(str(return_request_id))
        return_request = self._load_pending(
            ReturnRequest, return_request_id, kind="return_request"
        )
        return_request.status = RequestStatus.REJECTED
        return_request.rejection_reason = rejection_reason.strip()
        self._stamp_review(return_request, reviewer)
        self.session.flush()
        logger.info(
            "return_request_rejected",
            extra={"return_request_id": str(return_request.id)},
        )
        return return_request

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_pending(self, model, request_id: UUID, kind: str):
        record = self.session.execute(
            select(model)
            .where(model.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if record is None:
            raise RequestNotFoundError(str(request_id), kind=kind)
        if record.status != RequestStatus.PENDING:
            raise RequestAlreadyReviewedError(
                str(request_id), RequestStatus(record.status).value
            )
        return record

    def _stamp_review(self, record, reviewer: Actor) -> None:
        record.reviewed_by_id = reviewer.actor_id
        record.reviewed_by_name = reviewer.name
        record.reviewed_at = self._clock.now()
        record.updated_by_id = reviewer.actor_id
