"""
BaseService -- shared constructor for the write-side kernel services.

Services persist with ``session.flush()`` and leave the transaction open.
InventoryOrchestrator, or a test harness, decides whether it commits, so a
stock change and its ledger entry are always kept or discarded together.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    A service bound to the caller's session.

    Non-goals:
        - Commit or rollback.
        - Listings and reports; see ``inventory_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
