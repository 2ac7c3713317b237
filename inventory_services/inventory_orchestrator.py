"""
inventory_services.inventory_orchestrator -- Transactional entrypoint.

Responsibility:
    The public API of the inventory engine.  Each operation opens its own
    session, composes kernel services inside one database transaction,
    commits on success and rolls back on any failure.  Results are returned
    as frozen DTOs; ORM instances never leave this module.

Architecture position:
    Services -- stateful orchestration over the kernel.  The ONLY place that
    commits.  Kernel services flush; selectors only read.

Invariants enforced:
    - Atomicity: a multi-step operation (issue + ledger append, create +
      reservation + purchase entry, cascade delete) is either fully
      committed or fully rolled back.
    - Domain errors (``InventoryKernelError``) propagate unchanged after
      rollback.
    - ``StaleDataError`` from the item version column surfaces as
      ``OptimisticLockError``.
    - Any other ``SQLAlchemyError`` surfaces as ``TransactionFailedError``.

Audit relevance:
    Every operation runs inside ``LogContext.bind`` with a fresh
    correlation_id, the actor id and the operation name, and logs
    ``<operation>_committed`` or ``<operation>_failed`` with ``duration_ms``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    Actor,
    ApprovalResult,
    AuditTrailPage,
    CascadeResult,
    ChainVerification,
    InventoryStatistics,
    ItemSnapshot,
    ItemSpec,
    LedgerEntryView,
    LedgerStatistics,
    LifecycleResult,
    LocationInfo,
    LocationStatistics,
    MonthlyReportRow,
    RequestView,
    ReturnApprovalResult,
    ReturnRequestView,
    SerialPreview,
)
from inventory_kernel.domain.states import (
    AssetCondition,
    ItemStatus,
    LocationType,
    RequestPriority,
    TransactionStatus,
    TransactionType,
)
from inventory_kernel.domain.uniqueid import DEFAULT_FORMAT, IdentifierFormat
from inventory_kernel.exceptions import (
    InventoryKernelError,
    OptimisticLockError,
    TransactionFailedError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.location import DEFAULT_CAPACITY
from inventory_kernel.selectors import ItemSelector, LedgerSelector, LocationSelector
from inventory_kernel.services import (
    ApprovalService,
    CascadeService,
    LedgerService,
    LifecycleService,
    OccupancyService,
    SequenceService,
)

if TYPE_CHECKING:
    from decimal import Decimal

    from inventory_config.schema import EngineConfig

logger = get_logger("services.orchestrator")

T = TypeVar("T")


@dataclass
class _UnitOfWork:
    """Kernel services bound to one session."""

    session: Session
    sequences: SequenceService
    ledger: LedgerService
    occupancy: OccupancyService
    lifecycle: LifecycleService
    cascade: CascadeService
    approvals: ApprovalService
    items: ItemSelector
    entries: LedgerSelector
    locations: LocationSelector


def _result(pair) -> LifecycleResult:
    item, entry = pair
    return LifecycleResult(
        item=ItemSnapshot.from_model(item), entry=LedgerEntryView.from_model(entry)
    )


class InventoryOrchestrator:
    """
    Transactional facade over the inventory kernel.

    Usage:
        orchestrator = InventoryOrchestrator(get_session_factory())
        result = orchestrator.create_item(ItemSpec(asset_name="Laptop",
                                                   balance_quantity_in_stock=5),
                                          actor=admin)
        orchestrator.issue_item(result.item.id, "Bob", actor=admin)
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | Callable[[], Session],
        clock: Clock | None = None,
        identifier_format: IdentifierFormat = DEFAULT_FORMAT,
        default_location_capacity: int = DEFAULT_CAPACITY,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._format = identifier_format
        self._default_capacity = default_location_capacity

    @classmethod
    def from_config(
        cls, config: EngineConfig, clock: Clock | None = None
    ) -> InventoryOrchestrator:
        """Build an orchestrator over the engine described by ``config``."""
        from inventory_config.bridges import (
            build_identifier_format,
            engine_kwargs,
            log_level,
        )
        from inventory_kernel.db.engine import get_session_factory, init_engine_from_url
        from inventory_kernel.db.immutability import register_immutability_listeners
        from inventory_kernel.logging_config import configure_logging

        configure_logging(level=log_level(config))
        init_engine_from_url(**engine_kwargs(config))
        register_immutability_listeners()
        return cls(
            get_session_factory(),
            clock=clock,
            identifier_format=build_identifier_format(config),
            default_location_capacity=config.occupancy.default_capacity,
        )

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    def _unit_of_work(self, session: Session) -> _UnitOfWork:
        sequences = SequenceService(session)
        ledger = LedgerService(session, clock=self._clock, sequence_service=sequences)
        occupancy = OccupancyService(session)
        lifecycle = LifecycleService(
            session,
            clock=self._clock,
            identifier_format=self._format,
            sequence_service=sequences,
            ledger_service=ledger,
            occupancy_service=occupancy,
        )
        return _UnitOfWork(
            session=session,
            sequences=sequences,
            ledger=ledger,
            occupancy=occupancy,
            lifecycle=lifecycle,
            cascade=CascadeService(session, occupancy_service=occupancy),
            approvals=ApprovalService(
                session, clock=self._clock, lifecycle_service=lifecycle
            ),
            items=ItemSelector(session),
            entries=LedgerSelector(session),
            locations=LocationSelector(session),
        )

    def _execute(
        self,
        operation: str,
        work: Callable[[_UnitOfWork], T],
        *,
        actor: Actor | None = None,
        item_id: UUID | None = None,
        request_id: UUID | None = None,
        read_only: bool = False,
    ) -> T:
        """
        Run ``work`` in a fresh session and transaction.

        Commits unless ``read_only``; any exception rolls back first.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor.actor_id) if actor else None,
            operation=operation,
            item_id=str(item_id) if item_id else None,
            request_id=str(request_id) if request_id else None,
        ):
            t0 = time.monotonic()
            session = self._session_factory()
            try:
                result = work(self._unit_of_work(session))
                if read_only:
                    session.rollback()
                else:
                    session.commit()
            except InventoryKernelError as exc:
                session.rollback()
                logger.warning(
                    f"{operation}_rejected",
                    extra={
                        "error_code": exc.code,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                )
                raise
            except StaleDataError as exc:
                session.rollback()
                logger.warning(
                    f"{operation}_conflict",
                    extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
                )
                raise OptimisticLockError(
                    "InventoryItem", str(item_id) if item_id else "unknown"
                ) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error(
                    f"{operation}_failed",
                    extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
                    exc_info=True,
                )
                raise TransactionFailedError(operation, str(exc)) from exc
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

            if not read_only:
                logger.info(
                    f"{operation}_committed",
                    extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
                )
            return result

    # ------------------------------------------------------------------
    # Item lifecycle
    # ------------------------------------------------------------------

    def create_item(self, spec: ItemSpec, actor: Actor) -> LifecycleResult:
        return self._execute(
            "create_item",
            lambda uow: _result(uow.lifecycle.create(spec, actor)),
            actor=actor,
        )

    def issue_item(
        self,
        item_id: UUID,
        issued_to: str,
        actor: Actor,
        expected_return_date: datetime | None = None,
        *,
        purpose: str | None = None,
        notes: str | None = None,
    ) -> LifecycleResult:
        return self._execute(
            "issue_item",
            lambda uow: _result(
                uow.lifecycle.issue(
                    item_id,
                    issued_to,
                    actor,
                    expected_return_date,
                    purpose=purpose,
                    notes=notes,
                )
            ),
            actor=actor,
            item_id=item_id,
        )

    def return_item(
        self,
        item_id: UUID,
        actor: Actor,
        condition: AssetCondition | None = None,
        *,
        notes: str | None = None,
    ) -> LifecycleResult:
        return self._execute(
            "return_item",
            lambda uow: _result(
                uow.lifecycle.return_item(item_id, actor, condition, notes=notes)
            ),
            actor=actor,
            item_id=item_id,
        )

    def adjust_item(
        self, item_id: UUID, new_quantity: int, actor: Actor, reason: str | None = None
    ) -> LifecycleResult:
        return self._execute(
            "adjust_item",
            lambda uow: _result(uow.lifecycle.adjust(item_id, new_quantity, actor, reason)),
            actor=actor,
            item_id=item_id,
        )

    def dispose_item(
        self, item_id: UUID, quantity: int, actor: Actor, reason: str | None = None
    ) -> LifecycleResult:
        return self._execute(
            "dispose_item",
            lambda uow: _result(uow.lifecycle.dispose(item_id, quantity, actor, reason)),
            actor=actor,
            item_id=item_id,
        )

    def set_item_status(
        self, item_id: UUID, status: ItemStatus, actor: Actor
    ) -> ItemSnapshot:
        return self._execute(
            "set_item_status",
            lambda uow: ItemSnapshot.from_model(
                uow.lifecycle.set_status(item_id, status, actor)
            ),
            actor=actor,
            item_id=item_id,
        )

    def delete_item(self, item_id: UUID, actor: Actor) -> CascadeResult:
        """Delete an item and every row referencing it, atomically."""
        return self._execute(
            "delete_item",
            lambda uow: uow.cascade.delete_item(item_id, actor),
            actor=actor,
            item_id=item_id,
        )

    # ------------------------------------------------------------------
    # Serials
    # ------------------------------------------------------------------

    def preview_next_serial(self) -> SerialPreview:
        return self._execute(
            "preview_next_serial",
            lambda uow: uow.sequences.preview_next_serial(self._format),
            read_only=True,
        )

    def sync_item_serial_counter(self) -> tuple[int, int]:
        """Raise the item-serial counter to the item count.  Returns (before, after)."""
        return self._execute(
            "sync_item_serial_counter",
            lambda uow: uow.sequences.sync_item_serial_to_item_count(),
        )

    # ------------------------------------------------------------------
    # Ledger queries
    # ------------------------------------------------------------------

    def list_ledger_for_item(
        self,
        item_id: UUID,
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[LedgerEntryView]:
        return self._execute(
            "list_ledger_for_item",
            lambda uow: uow.entries.entries_for_item(
                item_id, newest_first=newest_first, limit=limit, offset=offset
            ),
            item_id=item_id,
            read_only=True,
        )

    def ledger_statistics(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> LedgerStatistics:
        return self._execute(
            "ledger_statistics",
            lambda uow: uow.entries.statistics(start, end),
            read_only=True,
        )

    def monthly_report(self, year: int, month: int) -> list[MonthlyReportRow]:
        return self._execute(
            "monthly_report",
            lambda uow: uow.entries.monthly_report(year, month),
            read_only=True,
        )

    def verify_ledger_chain(self, item_id: UUID) -> ChainVerification:
        return self._execute(
            "verify_ledger_chain",
            lambda uow: uow.entries.verify_chain(item_id),
            item_id=item_id,
            read_only=True,
        )

    def list_ledger_for_request(self, request_id: UUID) -> list[LedgerEntryView]:
        return self._execute(
            "list_ledger_for_request",
            lambda uow: uow.entries.entries_for_request(request_id),
            request_id=request_id,
            read_only=True,
        )

    def audit_trail(
        self,
        *,
        transaction_type: TransactionType | None = None,
        status: TransactionStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        issued_to: str | None = None,
        user: str | None = None,
        newest_first: bool = True,
        limit: int | None = 50,
        offset: int = 0,
    ) -> AuditTrailPage:
        """
        Filtered, paged ledger entries across every item, newest first by
        default, with the total number of matches.
        """
        filters = {
            "transaction_type": transaction_type,
            "status": status,
            "start": start,
            "end": end,
            "issued_to": issued_to,
            "user": user,
        }

        def work(uow: _UnitOfWork) -> AuditTrailPage:
            entries = uow.entries.audit_trail(
                **filters, newest_first=newest_first, limit=limit, offset=offset
            )
            return AuditTrailPage(
                entries=tuple(entries),
                total=uow.entries.count_audit_trail(**filters),
                limit=limit,
                offset=offset,
            )

        return self._execute("audit_trail", work, read_only=True)

    # ------------------------------------------------------------------
    # Item queries
    # ------------------------------------------------------------------

    def get_item(self, item_id: UUID) -> ItemSnapshot | None:
        return self._execute(
            "get_item", lambda uow: uow.items.get(item_id), read_only=True
        )

    def find_item_by_unique_id(self, unique_id: str) -> ItemSnapshot | None:
        return self._execute(
            "find_item_by_unique_id",
            lambda uow: uow.items.find_by_unique_id(unique_id),
            read_only=True,
        )

    def low_stock_items(self) -> list[ItemSnapshot]:
        return self._execute(
            "low_stock_items", lambda uow: uow.items.low_stock(), read_only=True
        )

    def overdue_items(self, as_of: datetime | None = None) -> list[ItemSnapshot]:
        as_of = as_of or self._clock.now()
        return self._execute(
            "overdue_items", lambda uow: uow.items.overdue(as_of), read_only=True
        )

    def inventory_statistics(self) -> InventoryStatistics:
        return self._execute(
            "inventory_statistics",
            lambda uow: uow.items.inventory_statistics(),
            read_only=True,
        )

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    def create_location(
        self,
        name: str,
        actor: Actor,
        *,
        capacity: int | None = None,
        location_type: LocationType = LocationType.STORAGE,
        description: str | None = None,
        is_active: bool = True,
        is_default: bool = False,
    ) -> LocationInfo:
        return self._execute(
            "create_location",
            lambda uow: LocationInfo.from_model(
                uow.occupancy.create_location(
                    name,
                    actor,
                    capacity=self._default_capacity if capacity is None else capacity,
                    location_type=location_type,
                    description=description,
                    is_active=is_active,
                    is_default=is_default,
                )
            ),
            actor=actor,
        )

    def set_default_location(self, location_id: UUID, actor: Actor) -> LocationInfo:
        def work(uow: _UnitOfWork) -> LocationInfo:
            uow.occupancy.set_default(location_id, actor)
            return uow.locations.get(location_id)

        return self._execute("set_default_location", work, actor=actor)

    def get_location(self, location_id: UUID) -> LocationInfo | None:
        return self._execute(
            "get_location", lambda uow: uow.locations.get(location_id), read_only=True
        )

    def locations_with_capacity(self, min_capacity: int = 1) -> list[LocationInfo]:
        return self._execute(
            "locations_with_capacity",
            lambda uow: uow.locations.with_capacity(min_capacity),
            read_only=True,
        )

    def location_statistics(self) -> LocationStatistics:
        return self._execute(
            "location_statistics",
            lambda uow: uow.locations.statistics(),
            read_only=True,
        )

    # ------------------------------------------------------------------
    # Approval workflow
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
    ) -> RequestView:
        return self._execute(
            "submit_request",
            lambda uow: RequestView.from_model(
                uow.approvals.submit_request(
                    employee,
                    item_type,
                    purpose,
                    justification,
                    quantity=quantity,
                    priority=priority,
                    department=department,
                    project=project,
                    estimated_cost=estimated_cost,
                    expected_return_date=expected_return_date,
                )
            ),
            actor=employee,
        )

    def approve_request(
        self,
        request_id: UUID,
        reviewer: Actor,
        remarks: str | None = None,
        approved_quantity: int | None = None,
        inventory_item_id: UUID | None = None,
    ) -> ApprovalResult:
        def work(uow: _UnitOfWork) -> ApprovalResult:
            request, issued = uow.approvals.approve_request(
                request_id,
                reviewer,
                remarks=remarks,
                approved_quantity=approved_quantity,
                inventory_item_id=inventory_item_id,
            )
            return ApprovalResult(
                request=RequestView.from_model(request),
                issue=_result(issued) if issued is not None else None,
            )

        return self._execute(
            "approve_request",
            work,
            actor=reviewer,
            item_id=inventory_item_id,
            request_id=request_id,
        )

    def reject_request(
        self, request_id: UUID, reviewer: Actor, rejection_reason: str | None = None
    ) -> RequestView:
        return self._execute(
            "reject_request",
            lambda uow: RequestView.from_model(
                uow.approvals.reject_request(request_id, reviewer, rejection_reason)
            ),
            actor=reviewer,
            request_id=request_id,
        )

    def submit_return_request(
        self,
        employee: Actor,
        inventory_item_id: UUID,
        return_reason: str,
        condition_on_return: AssetCondition,
        *,
        notes: str | None = None,
    ) -> ReturnRequestView:
        return self._execute(
            "submit_return_request",
            lambda uow: ReturnRequestView.from_model(
                uow.approvals.submit_return_request(
                    employee,
                    inventory_item_id,
                    return_reason,
                    condition_on_return,
                    notes=notes,
                )
            ),
            actor=employee,
            item_id=inventory_item_id,
        )

    def approve_return_request(
        self, return_request_id: UUID, reviewer: Actor, remarks: str | None = None
    ) -> ReturnApprovalResult:
        def work(uow: _UnitOfWork) -> ReturnApprovalResult:
            return_request, returned = uow.approvals.approve_return_request(
                return_request_id, reviewer, remarks
            )
            return ReturnApprovalResult(
                return_request=ReturnRequestView.from_model(return_request),
                result=_result(returned),
            )

        return self._execute(
            "approve_return_request",
            work,
            actor=reviewer,
            request_id=return_request_id,
        )

    def reject_return_request(
        self, return_request_id: UUID, reviewer: Actor, rejection_reason: str
    ) -> ReturnRequestView:
        return self._execute(
            "reject_return_request",
            lambda uow: ReturnRequestView.from_model(
                uow.approvals.reject_return_request(
                    return_request_id, reviewer, rejection_reason
                )
            ),
            actor=reviewer,
            request_id=return_request_id,
        )
