"""
analytic_engines.dashboard -- Budget dashboard roll-ups.

Pure aggregation of per-budget performance into per-type totals and
per-account roll-ups, plus the month-by-month series of finalized amounts
shown on the dashboard chart.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from analytic_engines.performance import BudgetPerformance, percent_of_limit
from analytic_engines.tracer import traced_engine
from analytic_kernel.db.types import ZERO, round_money
from analytic_kernel.domain.dtos import BudgetInfo, BudgetType, SpendFact

_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(frozen=True)
class TypeTotals:
    """Totals across all budgets of one type."""

    budget_type: BudgetType
    budget_count: int
    limit_amount: Decimal
    achieved: Decimal
    remaining: Decimal
    percent: Decimal


@dataclass(frozen=True)
class AccountRollup:
    """Limits and achievement for one analytical account."""

    account_id: UUID
    account_name: str
    expense_limit: Decimal
    expense_achieved: Decimal
    income_limit: Decimal
    income_achieved: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    income: TypeTotals
    expense: TypeTotals
    over_limit_expense_count: int
    income_targets_met: int
    accounts: tuple[AccountRollup, ...]


@dataclass(frozen=True)
class PeriodTotal:
    """Finalized amount for one calendar month, labelled like "Jan 2025"."""

    label: str
    year: int
    month: int
    amount: Decimal


def _type_totals(
    budget_type: BudgetType,
    rows: Sequence[tuple[BudgetInfo, BudgetPerformance]],
) -> TypeTotals:
    limit = sum((p.limit_amount for b, p in rows), ZERO)
    achieved = sum((p.achieved for b, p in rows), ZERO)
    return TypeTotals(
        budget_type=budget_type,
        budget_count=len(rows),
        limit_amount=round_money(limit),
        achieved=round_money(achieved),
        remaining=round_money(limit - achieved),
        percent=percent_of_limit(achieved, limit),
    )


@traced_engine("budget_dashboard", "1.0")
def summarize(
    *,
    budgets: Sequence[BudgetInfo],
    performances: Mapping[UUID, BudgetPerformance],
    account_names: Mapping[UUID, str],
) -> DashboardSummary:
    """Roll budget performance up by type and by account (ordered by name)."""
    pairs = [(b, performances[b.id]) for b in budgets if b.id in performances]
    income = [(b, p) for b, p in pairs if b.budget_type == BudgetType.INCOME]
    expense = [(b, p) for b, p in pairs if b.budget_type == BudgetType.EXPENSE]

    per_account: dict[UUID, dict[str, Decimal]] = {}
    for b, p in pairs:
        acc = per_account.setdefault(
            b.account_id,
            {"el": ZERO, "ea": ZERO, "il": ZERO, "ia": ZERO},
        )
        if b.budget_type == BudgetType.INCOME:
            acc["il"] += p.limit_amount
            acc["ia"] += p.achieved
        else:
            acc["el"] += p.limit_amount
            acc["ea"] += p.achieved

    rollups = [
        AccountRollup(
            account_id=account_id,
            account_name=account_names.get(account_id, str(account_id)),
            expense_limit=round_money(v["el"]),
            expense_achieved=round_money(v["ea"]),
            income_limit=round_money(v["il"]),
            income_achieved=round_money(v["ia"]),
        )
        for account_id, v in per_account.items()
    ]
    rollups.sort(key=lambda r: (r.account_name.lower(), str(r.account_id)))

    return DashboardSummary(
        income=_type_totals(BudgetType.INCOME, income),
        expense=_type_totals(BudgetType.EXPENSE, expense),
        over_limit_expense_count=sum(1 for _, p in expense if p.is_over_limit),
        income_targets_met=sum(1 for _, p in income if p.meets_income_target),
        accounts=tuple(rollups),
    )


def month_window(months: int, as_of: date) -> list[tuple[int, int]]:
    """(year, month) pairs for ``months`` months ending with as_of's month."""
    if months < 1:
        raise ValueError(f"months must be >= 1, got {months}")
    window = []
    year, month = as_of.year, as_of.month
    for _ in range(months):
        window.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    window.reverse()
    return window


@traced_engine("monthly_totals", "1.0", fingerprint_fields=("months", "as_of"))
def monthly_totals(
    *,
    facts: Iterable[SpendFact],
    months: int,
    as_of: date,
) -> list[PeriodTotal]:
    """Sum ``facts`` per calendar month; months with no activity are zero."""
    window = month_window(months, as_of)
    totals: dict[tuple[int, int], Decimal] = {key: ZERO for key in window}
    for f in facts:
        key = (f.document_date.year, f.document_date.month)
        if key in totals:
            totals[key] += f.amount
    return [
        PeriodTotal(
            label=f"{_MONTH_ABBR[month - 1]} {year}",
            year=year,
            month=month,
            amount=round_money(totals[(year, month)]),
        )
        for year, month in window
    ]
