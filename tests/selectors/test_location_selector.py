"""LocationSelector tests."""

from decimal import Decimal

import pytest

from inventory_kernel.selectors import LocationSelector


@pytest.fixture
def location_selector(session) -> LocationSelector:
    return LocationSelector(session)


class TestLocationQueries:
    def test_find_default_ignores_inactive(self, location_selector, create_location):
        create_location("Closed", is_default=True, is_active=False)
        assert location_selector.find_default() is None

    def test_find_default(self, location_selector, create_location):
        create_location("Main", is_default=True)
        assert location_selector.find_default().name == "Main"

    def test_with_capacity(self, location_selector, occupancy_service, create_location):
        full = create_location("Full", capacity=5)
        roomy = create_location("Roomy", capacity=5)
        create_location("Inactive", capacity=5, is_active=False)
        occupancy_service.reserve(full.id, 5)
        occupancy_service.reserve(roomy.id, 2)

        assert [loc.name for loc in location_selector.with_capacity()] == ["Roomy"]
        assert location_selector.with_capacity(min_capacity=4) == []
        assert location_selector.get(roomy.id).available_capacity == 3


class TestLocationStatistics:
    def test_statistics(self, location_selector, occupancy_service, create_location):
        a = create_location("A", capacity=10)
        b = create_location("B", capacity=30)
        create_location("C", capacity=60, is_active=False)
        occupancy_service.reserve(a.id, 5)
        occupancy_service.reserve(b.id, 10)

        stats = location_selector.statistics()

        assert stats.total_locations == 3
        assert stats.active_locations == 2
        assert stats.inactive_locations == 1
        assert stats.total_capacity == 100
        assert stats.total_occupancy == 15
        assert stats.available_capacity == 85
        assert stats.average_occupancy == Decimal("5.00")
        assert stats.utilization_percentage == Decimal("15.00")

    def test_empty(self, location_selector):
        stats = location_selector.statistics()
        assert stats.total_locations == 0
        assert stats.utilization_percentage == Decimal("0.00")
        assert stats.average_occupancy == Decimal("0.00")
