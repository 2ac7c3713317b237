"""
OccupancyService tests.

Occupancy never exceeds capacity and never drops below zero, and at most one
location is the default.
"""

from uuid import uuid4

import pytest

from inventory_kernel.exceptions import (
    CapacityExceededError,
    InvalidLocationError,
    InvalidQuantityError,
)
from inventory_kernel.selectors import LocationSelector


def _info(session, location_id):
    return LocationSelector(session).get(location_id)


class TestCreateLocation:
    def test_defaults(self, create_location):
        location = create_location("Main Store")
        assert location.capacity == 50
        assert location.current_occupancy == 0
        assert location.is_active
        assert not location.is_default

    @pytest.mark.parametrize("capacity", [0, 10_001])
    def test_capacity_range(self, create_location, capacity):
        with pytest.raises(InvalidQuantityError):
            create_location(capacity=capacity)

    def test_new_default_replaces_old(self, session, create_location):
        first = create_location(is_default=True)
        second = create_location(is_default=True)
        assert not _info(session, first.id).is_default
        assert _info(session, second.id).is_default


class TestReserve:
    def test_reserve_within_capacity(self, occupancy_service, create_location):
        location = create_location(capacity=10)
        assert occupancy_service.reserve(location.id, 4) == 4
        assert occupancy_service.reserve(location.id, 6) == 10

    def test_reserve_beyond_capacity(self, session, occupancy_service, create_location):
        location = create_location(capacity=10)
        occupancy_service.reserve(location.id, 8)

        with pytest.raises(CapacityExceededError) as exc_info:
            occupancy_service.reserve(location.id, 3)

        err = exc_info.value
        assert (err.requested, err.current_occupancy, err.capacity) == (3, 8, 10)
        assert err.code == "CAPACITY_EXCEEDED"
        assert _info(session, location.id).current_occupancy == 8

    def test_reserve_zero_validates_only(self, occupancy_service, create_location):
        location = create_location(capacity=10)
        assert occupancy_service.reserve(location.id, 0) == 0

    def test_reserve_negative(self, occupancy_service, create_location):
        location = create_location()
        with pytest.raises(InvalidQuantityError):
            occupancy_service.reserve(location.id, -1)

    def test_reserve_missing_location(self, occupancy_service):
        with pytest.raises(InvalidLocationError) as exc_info:
            occupancy_service.reserve(uuid4(), 1)
        assert exc_info.value.reason == "location not found"

    def test_reserve_inactive_location(self, occupancy_service, create_location):
        location = create_location(is_active=False)
        with pytest.raises(InvalidLocationError):
            occupancy_service.reserve(location.id, 1)


class TestRelease:
    def test_release(self, occupancy_service, create_location):
        location = create_location(capacity=10)
        occupancy_service.reserve(location.id, 5)
        assert occupancy_service.release(location.id, 2) == 3

    def test_release_floors_at_zero(self, occupancy_service, create_location):
        location = create_location(capacity=10)
        occupancy_service.reserve(location.id, 2)
        assert occupancy_service.release(location.id, 7) == 0

    def test_release_missing_location_is_tolerated(self, occupancy_service, captured_logs):
        assert occupancy_service.release(uuid4(), 3) is None
        assert any(r["message"] == "location_release_missing" for r in captured_logs())

    def test_available_capacity(self, occupancy_service, create_location):
        location = create_location(capacity=10)
        occupancy_service.reserve(location.id, 7)
        assert occupancy_service.available_capacity(location.id) == 3


class TestDefault:
    def test_set_default(self, session, occupancy_service, create_location, actor):
        first = create_location(is_default=True)
        second = create_location()

        occupancy_service.set_default(second.id, actor)

        assert not _info(session, first.id).is_default
        assert _info(session, second.id).is_default
        assert LocationSelector(session).find_default().id == second.id

    def test_set_default_again_is_noop(self, session, occupancy_service, create_location, actor):
        location = create_location(is_default=True)
        occupancy_service.set_default(location.id, actor)
        assert _info(session, location.id).is_default

    def test_inactive_cannot_be_default(self, occupancy_service, create_location, actor):
        location = create_location(is_active=False)
        with pytest.raises(InvalidLocationError):
            occupancy_service.set_default(location.id, actor)
