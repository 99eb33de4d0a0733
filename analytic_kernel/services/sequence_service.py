"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Hands out strictly increasing integers per named sequence.  Rule numbers
    come from here, and the rule engine breaks score ties on them, so they
    must reflect creation order.

Invariants enforced:
    - The counter row is the sole source of truth.  The max-plus-one query
      pattern is never used.
    - The increment is transactional: a rolled-back caller does not consume
      the value.

Failure modes:
    - IntegrityError if two transactions create the same counter row at the
      same moment.  It propagates to the caller, who may retry.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from analytic_kernel.logging_config import get_logger
from analytic_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Generates transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()``.
    """

    RULE_NUMBER = "auto_assignment_rule"

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """
        Lock (or create) the named counter, increment it and return the new value.

        Postconditions:
            Returns an integer > 0 strictly greater than any value
            previously returned for this name in committed transactions.
        """
        stmt = (
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        counter = self._session.execute(stmt).scalar_one_or_none()

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int:
        """Return the last allocated value (0 if never used)."""
        stmt = select(SequenceCounter.current_value).where(
            SequenceCounter.name == sequence_name
        )
        value = self._session.execute(stmt).scalar_one_or_none()
        return value or 0
