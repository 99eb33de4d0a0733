"""
AutoAssignmentRuleEngine -- pick an analytical account for a transaction line.

Responsibility:
    Load the candidate rules (confirmed, not archived, target account not
    archived) and delegate scoring and selection to
    ``analytic_kernel.domain.assignment``.

Invariants enforced:
    - Read-only.  Never flushes or writes.
    - Ties on score go to the lowest rule_number.
    - No match leaves the line unassigned (returns None).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from analytic_kernel.domain.assignment import select_best
from analytic_kernel.domain.dtos import (
    AssignmentRequest,
    AssignmentResult,
    RuleInfo,
    RuleStatus,
)
from analytic_kernel.logging_config import get_logger
from analytic_kernel.models.account import AnalyticalAccount
from analytic_kernel.models.rule import AutoAssignmentRule
from analytic_kernel.services.rule_service import rule_info

logger = get_logger("services.rule_engine")


class AutoAssignmentRuleEngine:
    """
    Resolves an AssignmentRequest to the best-matching rule's account.

    Guarantees:
        - The same request against the same rule set always yields the same
          result.
    """

    def __init__(self, session: Session):
        self._session = session

    def candidate_rules(self) -> list[RuleInfo]:
        """Rules eligible for assignment, in rule_number order."""
        stmt = (
            select(AutoAssignmentRule)
            .join(AnalyticalAccount, AnalyticalAccount.id == AutoAssignmentRule.account_id)
            .where(
                AutoAssignmentRule.status == RuleStatus.CONFIRMED.value,
                AutoAssignmentRule.is_archived == False,  # noqa: E712
                AnalyticalAccount.is_archived == False,  # noqa: E712
            )
            .order_by(AutoAssignmentRule.rule_number)
        )
        return [rule_info(r) for r in self._session.execute(stmt).scalars().all()]

    def resolve(self, request: AssignmentRequest) -> AssignmentResult | None:
        """Return the winning rule's account, or None when no rule matches."""
        best = select_best(self.candidate_rules(), request)

        if best is None:
            logger.debug(
                "analytical_rule_no_match",
                extra={
                    "source": request.source.value,
                    "partner_id": _opt(request.partner_id),
                    "product_id": _opt(request.product_id),
                    "product_category_id": _opt(request.product_category_id),
                },
            )
            return None

        rule, score = best
        logger.info(
            "analytical_rule_selected",
            extra={
                "rule_id": str(rule.id),
                "rule_number": rule.rule_number,
                "account_id": str(rule.account_id),
                "score": score,
                "source": request.source.value,
            },
        )
        return AssignmentResult(
            account_id=rule.account_id,
            rule_id=rule.id,
            score=score,
            source=request.source,
        )


def _opt(value: UUID | None) -> str | None:
    return str(value) if value is not None else None
