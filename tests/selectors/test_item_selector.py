"""ItemSelector tests."""

from datetime import timedelta
from decimal import Decimal

import pytest

from inventory_kernel.domain.states import StockStatus
from inventory_kernel.selectors import ItemSelector


@pytest.fixture
def item_selector(session) -> ItemSelector:
    return ItemSelector(session)


class TestLookups:
    def test_get(self, item_selector, create_item):
        item = create_item()
        snapshot = item_selector.get(item.id)
        assert snapshot.unique_id == item.unique_id
        assert snapshot.stock_status == StockStatus.IN_STOCK

    def test_find_by_unique_id_is_case_insensitive(self, item_selector, create_item):
        item = create_item(unique_id="ASSET-7")
        assert item_selector.find_by_unique_id(" asset-7 ").id == item.id

    def test_missing(self, item_selector):
        assert item_selector.find_by_unique_id("NOPE") is None


class TestListings:
    def test_available(self, item_selector, lifecycle_service, create_item, actor):
        create_item(asset_name="Desk")
        create_item(asset_name="Chair")
        create_item(asset_name="Empty", balance_quantity_in_stock=0)
        issued = create_item(asset_name="Ball")
        lifecycle_service.issue(issued.id, "Bob", actor)

        names = [s.asset_name for s in item_selector.available()]
        assert names == ["Chair", "Desk"]

    def test_low_stock(self, item_selector, create_item):
        create_item(asset_name="Plenty", balance_quantity_in_stock=10, minimum_stock_level=2)
        create_item(asset_name="Low", balance_quantity_in_stock=2, minimum_stock_level=2)
        create_item(asset_name="Empty", balance_quantity_in_stock=0, minimum_stock_level=1)

        low = item_selector.low_stock()
        assert [s.asset_name for s in low] == ["Empty", "Low"]
        assert low[0].stock_status == StockStatus.OUT_OF_STOCK

    def test_issued_and_overdue(
        self, item_selector, lifecycle_service, create_item, actor, clock
    ):
        late = create_item(asset_name="Late")
        on_time = create_item(asset_name="OnTime")
        lifecycle_service.issue(late.id, "Bob", actor, clock.now() + timedelta(days=1))
        clock.advance(60)
        lifecycle_service.issue(on_time.id, "Carol", actor, clock.now() + timedelta(days=30))

        assert [s.asset_name for s in item_selector.issued()] == ["OnTime", "Late"]
        overdue = item_selector.overdue(clock.now() + timedelta(days=2))
        assert [s.asset_name for s in overdue] == ["Late"]
        assert overdue[0].is_issued


class TestInventoryStatistics:
    def test_statistics(self, item_selector, lifecycle_service, create_item, actor):
        create_item(balance_quantity_in_stock=5, total_cost=Decimal("100.50"))
        create_item(balance_quantity_in_stock=1, minimum_stock_level=3, total_cost=Decimal("20"))
        issued = create_item(balance_quantity_in_stock=4)
        lifecycle_service.issue(issued.id, "Bob", actor)

        stats = item_selector.inventory_statistics()

        assert stats.total_items == 3
        assert stats.total_quantity == 9
        assert stats.total_value == Decimal("120.50")
        assert stats.by_status == {"available": 2, "issued": 1}
        assert stats.low_stock_count == 1

    def test_empty(self, item_selector):
        stats = item_selector.inventory_statistics()
        assert stats.total_items == 0
        assert stats.total_value == Decimal("0.00")
        assert stats.by_status == {}
