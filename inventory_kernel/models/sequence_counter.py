"""
Module: inventory_kernel.models.sequence_counter
Responsibility: Named monotonic counters.  The row named "global" holds the
    last allocated item serial; "ledger_entry" holds the last ledger seq.
Architecture position: Kernel > Models.  Written only by
    services/sequence_service.py.
"""

from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class SequenceCounter(Base):
    """One named counter.  Values only move up and are never handed out twice."""

    __tablename__ = "sequence_counters"

    __table_args__ = (
        CheckConstraint("current_value >= 0", name="ck_sequence_counters_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(50), unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, default=0)

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
