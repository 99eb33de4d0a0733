"""
analytic_engines.projection -- Projected budget overrun detection.

Responsibility:
    Given the new lines of a cost-side draft, the expense budgets covering
    the draft's date, and the spend already recorded against each budget,
    decide which lines push a budget past its limit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - projected = existing + new; a warning fires only when
      projected > limit (strictly).  Landing exactly on the limit is fine.
    - Budgets for one account are checked in the order given (the caller
      sorts by ascending limit); the first breached budget is reported.
    - Every line index of a breaching account receives the same warning.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from analytic_engines.tracer import traced_engine
from analytic_kernel.db.types import ZERO, round_money
from analytic_kernel.domain.dtos import BudgetInfo


@dataclass(frozen=True)
class BudgetWarning:
    """A projected overrun of one budget, attached to a draft line."""

    budget_id: UUID
    account_id: UUID
    limit_amount: Decimal
    projected_amount: Decimal
    message: str


def warning_message(limit_amount: Decimal, projected_amount: Decimal) -> str:
    return (
        f"Budget limit {round_money(limit_amount):.2f} exceeded. "
        f"Projected {round_money(projected_amount):.2f}."
    )


def project_account(
    account_id: UUID,
    new_amount: Decimal,
    budgets: Sequence[BudgetInfo],
    existing_spend: Mapping[UUID, Decimal],
) -> BudgetWarning | None:
    """First budget on ``account_id`` that ``new_amount`` would overrun."""
    for budget in budgets:
        if budget.account_id != account_id:
            continue
        projected = existing_spend.get(budget.id, ZERO) + new_amount
        if projected > budget.limit_amount:
            return BudgetWarning(
                budget_id=budget.id,
                account_id=account_id,
                limit_amount=round_money(budget.limit_amount),
                projected_amount=round_money(projected),
                message=warning_message(budget.limit_amount, projected),
            )
    return None


@traced_engine("budget_projection", "1.0", fingerprint_fields=("lines_by_account",))
def project_overruns(
    *,
    lines_by_account: Mapping[UUID, Sequence[tuple[int, Decimal]]],
    budgets: Sequence[BudgetInfo],
    existing_spend: Mapping[UUID, Decimal],
) -> dict[int, BudgetWarning]:
    """
    Map line index -> BudgetWarning for every line of a breaching account.

    Args:
        lines_by_account: account id -> [(line_index, amount), ...] for the
            draft's lines that carry an account.
        budgets: Candidate budgets, ascending by limit.
        existing_spend: budget id -> finalized spend already recorded in
            that budget's period, excluding the draft's own document.
    """
    warnings: dict[int, BudgetWarning] = {}
    for account_id, lines in lines_by_account.items():
        new_amount = sum((amount for _, amount in lines), ZERO)
        warning = project_account(account_id, new_amount, budgets, existing_spend)
        if warning is None:
            continue
        for line_index, _ in lines:
            warnings[line_index] = warning
    return warnings
