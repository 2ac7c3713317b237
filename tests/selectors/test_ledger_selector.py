"""
LedgerSelector tests: ordering, the ledger-wide audit trail, statistics,
monthly report and chain verification.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update

from inventory_kernel.domain.dtos import Actor
from inventory_kernel.domain.states import TransactionStatus, TransactionType
from inventory_kernel.models.inventory_transaction import InventoryTransaction
from inventory_kernel.selectors import LedgerSelector


@pytest.fixture
def ledger_selector(session) -> LedgerSelector:
    return LedgerSelector(session)


@pytest.fixture
def cycled_item(lifecycle_service, create_item, actor, clock):
    """Item with purchase, issue and return entries an hour apart."""
    item = create_item(balance_quantity_in_stock=5)
    clock.advance(3600)
    lifecycle_service.issue(item.id, "Bob", actor)
    clock.advance(3600)
    lifecycle_service.return_item(item.id, actor)
    return item


class TestEntriesForItem:
    def test_chain_order(self, ledger_selector, cycled_item):
        entries = ledger_selector.entries_for_item(cycled_item.id)
        assert [e.transaction_type for e in entries] == [
            TransactionType.PURCHASE,
            TransactionType.ISSUE,
            TransactionType.RETURN,
        ]
        assert [(e.previous_quantity, e.new_quantity) for e in entries] == [
            (0, 5),
            (5, 4),
            (4, 5),
        ]

    def test_newest_first(self, ledger_selector, cycled_item):
        entries = ledger_selector.entries_for_item(cycled_item.id, newest_first=True)
        assert entries[0].transaction_type == TransactionType.RETURN

    def test_paging(self, ledger_selector, cycled_item):
        page = ledger_selector.entries_for_item(cycled_item.id, limit=1, offset=1)
        assert len(page) == 1
        assert page[0].transaction_type == TransactionType.ISSUE

    def test_count(self, ledger_selector, cycled_item):
        assert ledger_selector.count_for_item(cycled_item.id) == 3

    def test_dates_are_utc(self, ledger_selector, cycled_item, clock):
        entries = ledger_selector.entries_for_item(cycled_item.id)
        assert entries[-1].transaction_date == clock.now()
        assert entries[-1].transaction_date.tzinfo is not None

    def test_entries_for_request(
        self, ledger_selector, approval_service, create_item, actor, employee
    ):
        item = create_item()
        request = approval_service.submit_request(employee, "Laptop", "work", "needed")
        approval_service.approve_request(request.id, actor, inventory_item_id=item.id)
        entries = ledger_selector.entries_for_request(request.id)
        assert [e.transaction_type for e in entries] == [TransactionType.ISSUE]


class TestAuditTrail:
    @pytest.fixture
    def two_items(self, lifecycle_service, cycled_item, create_item, clock):
        """cycled_item handled by Admin, plus a second item issued by Dana."""
        keeper = Actor(actor_id=uuid4(), name="Dana")
        clock.advance(3600)
        other = create_item(asset_name="Projector", balance_quantity_in_stock=2)
        clock.advance(3600)
        lifecycle_service.issue(other.id, "Carol", keeper)
        return cycled_item, other

    def test_spans_all_items_in_chain_order(self, ledger_selector, two_items):
        cycled, other = two_items
        entries = ledger_selector.audit_trail()
        assert [(e.inventory_item_id, e.transaction_type) for e in entries] == [
            (cycled.id, TransactionType.PURCHASE),
            (cycled.id, TransactionType.ISSUE),
            (cycled.id, TransactionType.RETURN),
            (other.id, TransactionType.PURCHASE),
            (other.id, TransactionType.ISSUE),
        ]
        seqs = [e.seq for e in entries]
        assert seqs == sorted(seqs)

    def test_newest_first_and_paging(self, ledger_selector, two_items):
        _, other = two_items
        page = ledger_selector.audit_trail(newest_first=True, limit=2, offset=0)
        assert [(e.inventory_item_id, e.transaction_type) for e in page] == [
            (other.id, TransactionType.ISSUE),
            (other.id, TransactionType.PURCHASE),
        ]
        assert len(ledger_selector.audit_trail(limit=2, offset=4)) == 1

    def test_filter_by_type(self, ledger_selector, two_items):
        issues = ledger_selector.audit_trail(transaction_type=TransactionType.ISSUE)
        assert [e.issued_to for e in issues] == ["Bob", "Carol"]
        assert ledger_selector.count_audit_trail(transaction_type=TransactionType.ISSUE) == 2

    def test_filter_by_status(self, ledger_selector, two_items):
        assert ledger_selector.count_audit_trail(status=TransactionStatus.COMPLETED) == 5
        assert ledger_selector.audit_trail(status=TransactionStatus.PENDING) == []

    def test_filter_by_window(self, ledger_selector, two_items, clock):
        # only the second item's purchase and issue fall after start
        start = clock.now() - timedelta(minutes=90)
        entries = ledger_selector.audit_trail(start=start)
        assert [e.transaction_type for e in entries] == [
            TransactionType.PURCHASE,
            TransactionType.ISSUE,
        ]
        end = clock.now() - timedelta(minutes=90)
        assert ledger_selector.count_audit_trail(end=end) == 3

    def test_filter_by_recipient(self, ledger_selector, two_items):
        entries = ledger_selector.audit_trail(issued_to="Bob")
        assert [e.transaction_type for e in entries] == [
            TransactionType.ISSUE,
            TransactionType.RETURN,
        ]

    def test_filter_by_user_matches_issuer_or_recipient(self, ledger_selector, two_items):
        by_dana = ledger_selector.audit_trail(user="Dana")
        assert [(e.transaction_type, e.issued_to) for e in by_dana] == [
            (TransactionType.ISSUE, "Carol")
        ]
        assert ledger_selector.count_audit_trail(user="Carol") == 1
        assert ledger_selector.count_audit_trail(user="Admin") == 4

    def test_empty(self, ledger_selector):
        assert ledger_selector.audit_trail() == []
        assert ledger_selector.count_audit_trail() == 0


class TestStatistics:
    def test_totals_and_types(self, ledger_selector, cycled_item, create_item):
        create_item(balance_quantity_in_stock=2, rate_inclusive_tax=Decimal("10.005"))

        stats = ledger_selector.statistics()

        assert stats.total == 4
        assert stats.completed == 4
        assert stats.pending == 0
        by_type = {row.transaction_type: row for row in stats.by_type}
        assert by_type[TransactionType.PURCHASE].count == 2
        assert by_type[TransactionType.PURCHASE].total_quantity == 7
        assert by_type[TransactionType.PURCHASE].total_value == Decimal("6020.01")
        assert stats.by_type[0].transaction_type == TransactionType.PURCHASE

    def test_window(self, ledger_selector, cycled_item, clock):
        start = clock.now() - timedelta(minutes=30)
        stats = ledger_selector.statistics(start=start)
        assert stats.total == 1
        assert stats.by_type[0].transaction_type == TransactionType.RETURN

    def test_empty(self, ledger_selector):
        stats = ledger_selector.statistics()
        assert (stats.total, stats.pending, stats.completed) == (0, 0, 0)
        assert stats.by_type == ()


class TestMonthlyReport:
    def test_groups_by_type_and_day(self, ledger_selector, lifecycle_service, create_item, actor, clock):
        clock.set_time(datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc))
        item = create_item(balance_quantity_in_stock=3)
        clock.set_time(datetime(2024, 3, 6, 9, 0, tzinfo=timezone.utc))
        lifecycle_service.issue(item.id, "Bob", actor)
        clock.set_time(datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc))
        lifecycle_service.return_item(item.id, actor)

        rows = ledger_selector.monthly_report(2024, 3)

        assert [(r.transaction_type, r.day, r.count) for r in rows] == [
            (TransactionType.PURCHASE, 5, 1),
            (TransactionType.ISSUE, 6, 1),
        ]

    def test_bad_month(self, ledger_selector):
        with pytest.raises(ValueError):
            ledger_selector.monthly_report(2024, 13)


class TestVerifyChain:
    def test_consistent_chain(self, ledger_selector, cycled_item):
        result = ledger_selector.verify_chain(cycled_item.id)
        assert result.is_consistent
        assert result.entries_checked == 3
        assert result.final_quantity == result.current_balance == 5

    def test_detects_tampering(self, session, ledger_selector, cycled_item):
        # Bulk UPDATE bypasses the ORM immutability listeners.
        session.execute(
            update(InventoryTransaction)
            .where(
                InventoryTransaction.inventory_item_id == cycled_item.id,
                InventoryTransaction.transaction_type == TransactionType.RETURN,
            )
            .values(previous_quantity=3)
            .execution_options(synchronize_session=False)
        )

        result = ledger_selector.verify_chain(cycled_item.id)

        assert not result.is_consistent
        assert len(result.breaks) == 1
        assert (result.breaks[0].expected_previous, result.breaks[0].actual_previous) == (4, 3)
