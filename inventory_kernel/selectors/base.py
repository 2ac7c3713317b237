"""
Module: inventory_kernel.selectors.base
Responsibility: Common base of the read-side query classes.
Architecture position: Kernel > Selectors.  Reads models and returns domain
    DTOs; never imports services/ or anything outside the kernel.

Invariants enforced:
    - Selectors never add, delete, flush or commit.
    - Results are frozen DTOs or plain values, not ORM instances.
    - Entity reads use populate_existing, because services change stock and
      occupancy with bulk UPDATE statements that bypass the identity map.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only queries over the caller's session."""

    def __init__(self, session: Session):
        self.session = session
