"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read-only ledger queries: per-item history, the filtered
    ledger-wide audit trail, statistics over a date
    window, monthly per-day breakdowns, and chain verification.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Ordering: an item's entries are ordered by (transaction_date, seq);
      seq breaks ties so the order is total.
    - Chain consistency check: verify_chain() replays the ordered entries and
      reports every entry whose previous_quantity differs from the prior
      entry's new_quantity.

Audit relevance:
    verify_chain() is the auditor's tool for the ledger: a consistent chain
    whose last new_quantity equals the item balance proves that no stock
    change bypassed the ledger.
"""

from calendar import monthrange
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, or_, select

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.dtos import (
    ChainBreak,
    ChainVerification,
    LedgerEntryView,
    LedgerStatistics,
    MonthlyReportRow,
    TypeStatistics,
)
from inventory_kernel.domain.states import TransactionStatus, TransactionType
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.selectors.base import BaseSelector


def _window(start: datetime | None, end: datetime | None) -> list:
    filters = []
    if start is not None:
        filters.append(InventoryTransaction.transaction_date >= start)
    if end is not None:
        filters.append(InventoryTransaction.transaction_date <= end)
    return filters


def _chain_order(newest_first: bool) -> tuple:
    if newest_first:
        return (
            InventoryTransaction.transaction_date.desc(),
            InventoryTransaction.seq.desc(),
        )
    return (
        InventoryTransaction.transaction_date.asc(),
        InventoryTransaction.seq.asc(),
    )


def _audit_filters(
    transaction_type: TransactionType | None,
    status: TransactionStatus | None,
    start: datetime | None,
    end: datetime | None,
    issued_to: str | None,
    user: str | None,
) -> list:
    filters = _window(start, end)
    if transaction_type is not None:
        filters.append(InventoryTransaction.transaction_type == transaction_type)
    if status is not None:
        filters.append(InventoryTransaction.status == status)
    if issued_to is not None:
        filters.append(InventoryTransaction.issued_to == issued_to)
    if user is not None:
        filters.append(
            or_(
                InventoryTransaction.issued_to == user,
                InventoryTransaction.issued_by == user,
            )
        )
    return filters


class LedgerSelector(BaseSelector[InventoryTransaction]):
    """
    Selector for ledger queries.

    Guarantees:
        - All monetary totals are Decimal rounded to two places.
        - Aggregates over an empty window are zero, never None.
    """

    def entries_for_item(
        self,
        item_id: UUID,
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[LedgerEntryView]:
        """
        Ledger entries of one item in chain order.

        Args:
            item_id: The item.
            newest_first: Reverse the chain order.
            limit: Page size; None for all.
            offset: Entries to skip.
        """
        stmt = (
            select(InventoryTransaction)
            .where(InventoryTransaction.inventory_item_id == item_id)
            .order_by(*_chain_order(newest_first))
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        rows = self.session.execute(stmt).scalars().all()
        return [LedgerEntryView.from_model(row) for row in rows]

    def count_for_item(self, item_id: UUID) -> int:
        return self.session.execute(
            select(func.count(InventoryTransaction.id)).where(
                InventoryTransaction.inventory_item_id == item_id
            )
        ).scalar_one()

    def entries_for_request(self, request_id: UUID) -> list[LedgerEntryView]:
        """Entries written on behalf of a request or return request."""
        rows = (
            self.session.execute(
                select(InventoryTransaction)
                .where(InventoryTransaction.request_id == request_id)
                .order_by(InventoryTransaction.seq)
            )
            .scalars()
            .all()
        )
        return [LedgerEntryView.from_model(row) for row in rows]

    def audit_trail(
        self,
        transaction_type: TransactionType | None = None,
        status: TransactionStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        issued_to: str | None = None,
        user: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[LedgerEntryView]:
        """
        Ledger-wide entries across all items, filtered and paged.

        Args:
            transaction_type: Only entries of this type.
            status: Only entries in this status.
            start: Inclusive lower bound on transaction_date.
            end: Inclusive upper bound on transaction_date.
            issued_to: Only entries issued to this person.
            user: Entries where this person is either recipient or issuer.
            newest_first: Reverse the (transaction_date, seq) order.
            limit: Page size; None for all.
            offset: Entries to skip.
        """
        stmt = (
            select(InventoryTransaction)
            .where(*_audit_filters(transaction_type, status, start, end, issued_to, user))
            .order_by(*_chain_order(newest_first))
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        rows = self.session.execute(stmt).scalars().all()
        return [LedgerEntryView.from_model(row) for row in rows]

    def count_audit_trail(
        self,
        transaction_type: TransactionType | None = None,
        status: TransactionStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        issued_to: str | None = None,
        user: str | None = None,
    ) -> int:
        """Total matching audit_trail() with the same filters, ignoring paging."""
        return self.session.execute(
            select(func.count(InventoryTransaction.id)).where(
                *_audit_filters(transaction_type, status, start, end, issued_to, user)
            )
        ).scalar_one()

    def statistics(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> LedgerStatistics:
        """
        Totals and per-type aggregates over an optional date window.

        Per-type rows are sorted by count, highest first.
        """
        filters = _window(start, end)

        totals = self.session.execute(
            select(
                func.count(InventoryTransaction.id),
                func.coalesce(
                    func.sum(
                        case(
                            (InventoryTransaction.status == TransactionStatus.PENDING, 1),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.coalesce(
                    func.sum(
                        case(
                            (InventoryTransaction.status == TransactionStatus.COMPLETED, 1),
                            else_=0,
                        )
                    ),
                    0,
                ),
            ).where(*filters)
        ).one()

        count_col = func.count(InventoryTransaction.id).label("count")
        by_type_rows = self.session.execute(
            select(
                InventoryTransaction.transaction_type,
                count_col,
                func.coalesce(func.sum(InventoryTransaction.quantity), 0),
                func.coalesce(func.sum(InventoryTransaction.total_cost), 0),
            )
            .where(*filters)
            .group_by(InventoryTransaction.transaction_type)
            .order_by(count_col.desc(), InventoryTransaction.transaction_type)
        ).all()

        return LedgerStatistics(
            total=totals[0],
            pending=int(totals[1]),
            completed=int(totals[2]),
            by_type=tuple(
                TypeStatistics(
                    transaction_type=TransactionType(tx_type),
                    count=count,
                    total_quantity=int(quantity),
                    total_value=round_money(Decimal(str(value))),
                )
                for tx_type, count, quantity, value in by_type_rows
            ),
        )

    def monthly_report(self, year: int, month: int) -> list[MonthlyReportRow]:
        """
        Per (type, day-of-month) aggregates for one calendar month (UTC).

        Rows are ordered by day, then type.
        """
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        last_day = monthrange(year, month)[1]
        end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)

        day = func.extract("day", InventoryTransaction.transaction_date)
        rows = self.session.execute(
            select(
                InventoryTransaction.transaction_type,
                day.label("day"),
                func.count(InventoryTransaction.id),
                func.coalesce(func.sum(InventoryTransaction.quantity), 0),
                func.coalesce(func.sum(InventoryTransaction.total_cost), 0),
            )
            .where(
                InventoryTransaction.transaction_date >= start,
                InventoryTransaction.transaction_date <= end,
            )
            .group_by(InventoryTransaction.transaction_type, day)
            .order_by(day, InventoryTransaction.transaction_type)
        ).all()

        return [
            MonthlyReportRow(
                transaction_type=TransactionType(tx_type),
                day=int(day_of_month),
                count=count,
                total_quantity=int(quantity),
                total_value=round_money(Decimal(str(value))),
            )
            for tx_type, day_of_month, count, quantity, value in rows
        ]

    def verify_chain(self, item_id: UUID) -> ChainVerification:
        """
        Replay an item's entries and check previous/new continuity.

        The first entry is expected to start from 0 (the purchase entry).
        The last new_quantity is compared with the item's current balance.
        """
        rows = self.session.execute(
            select(
                InventoryTransaction.id,
                InventoryTransaction.seq,
                InventoryTransaction.previous_quantity,
                InventoryTransaction.new_quantity,
            )
            .where(InventoryTransaction.inventory_item_id == item_id)
            .order_by(InventoryTransaction.transaction_date, InventoryTransaction.seq)
        ).all()

        breaks: list[ChainBreak] = []
        expected = 0
        for entry_id, seq, previous, new in rows:
            if previous != expected:
                breaks.append(
                    ChainBreak(
                        entry_id=entry_id,
                        seq=seq,
                        expected_previous=expected,
                        actual_previous=previous,
                    )
                )
            expected = new

        balance = self.session.execute(
            select(InventoryItem.balance_quantity_in_stock).where(
                InventoryItem.id == item_id
            )
        ).scalar_one_or_none()

        return ChainVerification(
            item_id=item_id,
            entries_checked=len(rows),
            breaks=tuple(breaks),
            final_quantity=rows[-1].new_quantity if rows else None,
            current_balance=balance,
        )
