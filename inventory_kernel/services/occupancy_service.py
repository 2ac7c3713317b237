"""
OccupancyService -- bounded occupancy counters on storage locations.

Responsibility:
    Reserves and releases location capacity as stock enters and leaves a
    location, and maintains the single default location.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by LifecycleService (create/adjust/dispose) and CascadeService.

Invariants enforced:
    - Occupancy bound: reserve is a single conditional UPDATE
      (``current_occupancy + n <= capacity``), so concurrent reservations
      can never overshoot capacity.  release floors at 0.
    - Single default: set_default clears the previous default before
      setting the new one, inside the caller's transaction.  A partial
      unique index backs this up.

Failure modes:
    - InvalidLocationError: location missing or inactive.
    - CapacityExceededError: reservation would exceed capacity.
    - InvalidQuantityError: capacity outside 1..10000 on creation.
"""

from uuid import UUID

from sqlalchemy import case, select, update

from inventory_kernel.domain.dtos import Actor
from inventory_kernel.domain.states import LocationType
from inventory_kernel.exceptions import (
    CapacityExceededError,
    InvalidLocationError,
    InvalidQuantityError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.location import (
    DEFAULT_CAPACITY,
    MAX_CAPACITY,
    MIN_CAPACITY,
    Location,
)
from inventory_kernel.services.base import BaseService

logger = get_logger("services.occupancy")


class OccupancyService(BaseService[Location]):
    """
    Write-side operations on location occupancy.

    Contract:
        Occupancy columns are only ever changed through UPDATE statements
        whose WHERE clause re-checks the bound, never by read-modify-write
        on a loaded Location instance.

    Non-goals:
        - Read-side listings and statistics live in
          selectors/location_selector.py.
    """

    def create_location(
        self,
        name: str,
        actor: Actor,
        *,
        capacity: int = DEFAULT_CAPACITY,
        location_type: LocationType = LocationType.STORAGE,
        description: str | None = None,
        is_active: bool = True,
        is_default: bool = False,
    ) -> Location:
        """Register a location.  Locations are otherwise managed elsewhere."""
        if not MIN_CAPACITY <= capacity <= MAX_CAPACITY:
            raise InvalidQuantityError(
                capacity, f"capacity must be between {MIN_CAPACITY} and {MAX_CAPACITY}"
            )
        if is_default:
            self._clear_default(actor)
        location = Location(
            name=name.strip(),
            capacity=capacity,
            current_occupancy=0,
            location_type=location_type,
            description=description,
            is_active=is_active,
            is_default=is_default,
            created_by_id=actor.actor_id,
        )
        self.session.add(location)
        self.session.flush()
        logger.info(
            "location_created",
            extra={"location_id": str(location.id), "capacity": capacity},
        )
        return location

    def reserve(self, location_id: UUID, amount: int) -> int:
        """
        Add ``amount`` units to a location's occupancy.

        Preconditions:
            - amount >= 0.  Zero only validates the location.

        Returns:
            The occupancy after the reservation.

        Raises:
            InvalidLocationError: Location missing or inactive.
            CapacityExceededError: occupancy + amount > capacity.
        """
        self._require_active(location_id)
        if amount < 0:
            raise InvalidQuantityError(amount, "reservation cannot be negative")
        if amount == 0:
            return self._occupancy(location_id)[0]

        new_occupancy = self.session.execute(
            update(Location)
            .where(
                Location.id == location_id,
                Location.is_active.is_(True),
                Location.current_occupancy + amount <= Location.capacity,
            )
            .values(current_occupancy=Location.current_occupancy + amount)
            .returning(Location.current_occupancy)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()

        if new_occupancy is None:
            occupancy, capacity = self._occupancy(location_id)
            logger.warning(
                "location_capacity_exceeded",
                extra={
                    "location_id": str(location_id),
                    "requested": amount,
                    "current_occupancy": occupancy,
                    "capacity": capacity,
                },
            )
            raise CapacityExceededError(str(location_id), amount, occupancy, capacity)

        logger.debug(
            "location_occupancy_reserved",
            extra={
                "location_id": str(location_id),
                "amount": amount,
                "current_occupancy": new_occupancy,
            },
        )
        return new_occupancy

    def release(self, location_id: UUID, amount: int) -> int | None:
        """
        Remove ``amount`` units from a location's occupancy, flooring at 0.

        A missing location is not an error: the stock it held is gone
        either way.

        Returns:
            The occupancy after the release, or None if the location is gone.
        """
        if amount < 0:
            raise InvalidQuantityError(amount, "release cannot be negative")
        remaining = Location.current_occupancy - amount
        new_occupancy = self.session.execute(
            update(Location)
            .where(Location.id == location_id)
            .values(current_occupancy=case((remaining < 0, 0), else_=remaining))
            .returning(Location.current_occupancy)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()

        if new_occupancy is None:
            logger.warning(
                "location_release_missing",
                extra={"location_id": str(location_id), "amount": amount},
            )
            return None

        logger.debug(
            "location_occupancy_released",
            extra={
                "location_id": str(location_id),
                "amount": amount,
                "current_occupancy": new_occupancy,
            },
        )
        return new_occupancy

    def set_default(self, location_id: UUID, actor: Actor) -> None:
        """
        Make a location the default, un-defaulting any previous one.

        Raises:
            InvalidLocationError: Location missing or inactive.
        """
        self._require_active(location_id)
        self._clear_default(actor, keep=location_id)
        self.session.execute(
            update(Location)
            .where(Location.id == location_id)
            .values(is_default=True, updated_by_id=actor.actor_id)
            .execution_options(synchronize_session=False)
        )
        logger.info("location_default_set", extra={"location_id": str(location_id)})

    def available_capacity(self, location_id: UUID) -> int:
        occupancy, capacity = self._occupancy(location_id)
        return max(0, capacity - occupancy)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear_default(self, actor: Actor, keep: UUID | None = None) -> None:
        stmt = update(Location).where(Location.is_default.is_(True))
        if keep is not None:
            stmt = stmt.where(Location.id != keep)
        self.session.execute(
            stmt.values(is_default=False, updated_by_id=actor.actor_id).execution_options(
                synchronize_session=False
            )
        )

    def _require_active(self, location_id: UUID) -> None:
        is_active = self.session.execute(
            select(Location.is_active).where(Location.id == location_id)
        ).scalar_one_or_none()
        if is_active is None:
            raise InvalidLocationError(str(location_id), "location not found")
        if not is_active:
            raise InvalidLocationError(
                str(location_id), "cannot assign items to an inactive location"
            )

    def _occupancy(self, location_id: UUID) -> tuple[int, int]:
        row = self.session.execute(
            select(Location.current_occupancy, Location.capacity).where(
                Location.id == location_id
            )
        ).one_or_none()
        if row is None:
            raise InvalidLocationError(str(location_id), "location not found")
        return row.current_occupancy, row.capacity
