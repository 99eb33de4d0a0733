"""
BaseService -- abstract base for all kernel write services.

Responsibility:
    Common constructor for services that mutate state.  Services receive a
    SQLAlchemy ``Session`` and a ``Clock`` and persist through
    ``session.flush()`` -- never ``session.commit()``.  The budget facade in
    ``analytic_modules`` owns commit and rollback.

Invariants enforced:
    - Flush-only: services never commit or roll back.
    - A ``StaleDataError`` raised by a flush is re-raised as
      ``OptimisticLockError`` naming the entity being written.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from analytic_kernel.db.base import Base
from analytic_kernel.domain.clock import Clock, SystemClock
from analytic_kernel.exceptions import OptimisticLockError

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a caller-owned ``Session`` and uses ``session.flush()`` to
        persist changes within the active transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()

    def _flush(self, entity_type: str, entity_id: object) -> None:
        """Flush pending changes, translating version conflicts."""
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError(entity_type, str(entity_id)) from exc
