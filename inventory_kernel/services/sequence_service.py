"""
SequenceService -- monotonic counters via atomic increment-and-fetch.

Responsibility:
    Allocates item serial numbers (the "global" counter) and ledger ordering
    numbers (the "ledger_entry" counter).  Each allocation is one UPDATE ...
    SET current_value = current_value + 1 ... RETURNING statement, so two
    writers can never read the same value.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by LifecycleService (item serials) and LedgerService (ledger seq).

Invariants enforced:
    - Sequence monotonicity: values only move up and are never reused.  The
      aggregate-max-plus-one pattern is never used.
    - Legacy resync is atomic: "if the counter is 0 and N > 0 items exist,
      set it to N" runs as a single conditional UPDATE with the item count
      computed server-side.
    - Transactional: an allocation is visible only after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).

Audit relevance:
    Allocations are logged at DEBUG; a performed resync is logged at WARNING
    as ``sequence_counter_resynced`` and is never surfaced as an error.
"""

from uuid import uuid4

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain.dtos import SerialPreview
from inventory_kernel.domain.uniqueid import DEFAULT_FORMAT, IdentifierFormat, format_serial
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_item import InventoryItem
from inventory_kernel.models.sequence_counter import SequenceCounter
from inventory_kernel.services.base import BaseService

logger = get_logger("services.sequence")


class SequenceService(BaseService[SequenceCounter]):
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly-monotonic
        integer value.  The increment is transactional -- it is only
        committed when the caller's transaction commits.

    Guarantees:
        - Uniqueness under concurrency: the increment and the read of the
          new value are one statement.
        - First use of a name creates its row inside a savepoint; a
          concurrent creator is tolerated.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        serial = SequenceService(session).next_item_serial()
    """

    # Well-known sequence names
    ITEM_SERIAL = "global"
    LEDGER_ENTRY = "ledger_entry"

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Preconditions:
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0 that is strictly greater than any
              previously returned value for this sequence name.
        """
        value = self._increment(sequence_name)
        if value is None:
            self._ensure_counter(sequence_name)
            value = self._increment(sequence_name)
            if value is None:
                raise RuntimeError(f"Sequence counter {sequence_name} could not be created")
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": value},
        )
        return value

    def next_item_serial(self) -> int:
        """
        Allocate the next item serial, resynchronising a legacy counter first.

        The resync covers stores that held items before the counter existed:
        a counter still at 0 is lifted to the item count so that new serials
        continue after the existing ones.
        """
        self._ensure_counter(self.ITEM_SERIAL)
        self._resync_legacy_counter()
        return self.next_value(self.ITEM_SERIAL)

    def current_value(self, sequence_name: str) -> int:
        """
        Get the current value of a sequence without incrementing.

        Returns:
            Current value, or 0 if the sequence doesn't exist yet.
        """
        value = self.session.execute(
            select(SequenceCounter.current_value).where(
                SequenceCounter.name == sequence_name
            )
        ).scalar_one_or_none()
        return value or 0

    def preview_next_serial(
        self, fmt: IdentifierFormat = DEFAULT_FORMAT
    ) -> SerialPreview:
        """
        Report the serial the next creation would receive.  Read-only.

        When the counter is still 0 the effective current value is the item
        count, matching what the resync in next_item_serial would do.
        """
        current = self.current_value(self.ITEM_SERIAL)
        if current == 0:
            current = self._item_count()
        next_serial = current + 1
        return SerialPreview(
            current_sequence=current,
            next_serial=next_serial,
            next_serial_formatted=format_serial(next_serial, fmt),
        )

    def sync_item_serial_to_item_count(self) -> tuple[int, int]:
        """
        Raise the item-serial counter to the item count if it is behind.

        Never lowers the counter.  Used by scripts/init_sequence_counter.py.

        Returns:
            (value before, value after).
        """
        self._ensure_counter(self.ITEM_SERIAL)
        before = self.current_value(self.ITEM_SERIAL)
        item_count = self._item_count_subquery()
        self.session.execute(
            update(SequenceCounter)
            .where(
                SequenceCounter.name == self.ITEM_SERIAL,
                SequenceCounter.current_value < item_count,
            )
            .values(current_value=item_count)
            .execution_options(synchronize_session=False)
        )
        after = self.current_value(self.ITEM_SERIAL)
        if after != before:
            logger.info(
                "sequence_counter_synced",
                extra={"sequence_name": self.ITEM_SERIAL, "from": before, "to": after},
            )
        return before, after

    def reset(self, sequence_name: str, value: int = 0) -> None:
        """
        Reset a sequence to a specific value.

        WARNING: This should only be used in tests or migration scripts.
        Resetting sequences in production can cause duplicate identifiers.
        """
        self._ensure_counter(sequence_name)
        self.session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .values(current_value=value)
            .execution_options(synchronize_session=False)
        )
        logger.warning(
            "sequence_counter_reset",
            extra={"sequence_name": sequence_name, "value": value},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _increment(self, sequence_name: str) -> int | None:
        return self.session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .values(current_value=SequenceCounter.current_value + 1)
            .returning(SequenceCounter.current_value)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()

    def _ensure_counter(self, sequence_name: str) -> None:
        """Create the counter row at 0 if it does not exist yet."""
        exists = self.session.execute(
            select(SequenceCounter.id).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        if exists is not None:
            return

        # Use a savepoint so we don't roll back other work in the transaction
        savepoint = self.session.begin_nested()
        try:
            self.session.execute(
                insert(SequenceCounter).values(
                    id=uuid4(), name=sequence_name, current_value=0
                )
            )
            savepoint.commit()
            logger.debug(
                "sequence_counter_created",
                extra={"sequence_name": sequence_name},
            )
        except IntegrityError:
            # Another transaction created the counter first
            savepoint.rollback()
            logger.debug(
                "sequence_counter_race_retry",
                extra={"sequence_name": sequence_name},
            )

    def _item_count_subquery(self):
        return select(func.count(InventoryItem.id)).scalar_subquery()

    def _item_count(self) -> int:
        return self.session.execute(select(func.count(InventoryItem.id))).scalar_one()

    def _resync_legacy_counter(self) -> None:
        item_count = self._item_count_subquery()
        resynced_to = self.session.execute(
            update(SequenceCounter)
            .where(
                SequenceCounter.name == self.ITEM_SERIAL,
                SequenceCounter.current_value == 0,
                item_count > 0,
            )
            .values(current_value=item_count)
            .returning(SequenceCounter.current_value)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()
        if resynced_to is not None:
            logger.warning(
                "sequence_counter_resynced",
                extra={"sequence_name": self.ITEM_SERIAL, "value": resynced_to},
            )
