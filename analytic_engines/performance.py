"""
analytic_engines.performance -- Budget achievement metrics.

Responsibility:
    Turn a budget and the finalized lines that may touch it into achieved,
    remaining and percent-of-limit figures, plus the per-document drill-down.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Inputs are BudgetInfo and
    SpendFact DTOs loaded by the caller.

Invariants enforced:
    - A line counts toward a budget only if its account matches, its date is
      inside [period_start, period_end], and its document type belongs to
      the budget's side (income: sales orders and customer invoices;
      expense: vendor bills and purchase orders).
    - achieved, remaining and percent are rounded half-up to 2 places.
    - remaining == limit - achieved, and may be negative.
    - A zero limit yields percent 0, never a division error.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from analytic_engines.tracer import traced_engine
from analytic_kernel.db.types import HUNDRED, ZERO, round_money
from analytic_kernel.domain.dtos import (
    BudgetInfo,
    BudgetType,
    DocumentType,
    SpendFact,
)


@dataclass(frozen=True)
class ContributingDocument:
    """One document's contribution to a budget's achieved amount."""

    document_id: UUID
    document_type: DocumentType
    reference: str
    document_date: date
    amount: Decimal
    counterparty: str


@dataclass(frozen=True)
class BudgetPerformance:
    """Achievement metrics for one budget."""

    budget_id: UUID
    budget_type: BudgetType
    limit_amount: Decimal
    achieved: Decimal
    remaining: Decimal
    percent: Decimal
    meets_income_target: bool
    balance_for_chart: Decimal
    transactions: tuple[ContributingDocument, ...] = ()

    @property
    def is_over_limit(self) -> bool:
        return self.achieved > self.limit_amount


def relevant_facts(
    budget: BudgetInfo,
    facts: Iterable[SpendFact],
    excluded_document_ids: frozenset[UUID] = frozenset(),
) -> list[SpendFact]:
    """The subset of ``facts`` that counts toward ``budget``."""
    types = DocumentType.for_budget_type(budget.budget_type)
    return [
        f
        for f in facts
        if f.account_id == budget.account_id
        and f.document_type in types
        and budget.covers(f.document_date)
        and f.document_id not in excluded_document_ids
    ]


def achieved_amount(
    budget: BudgetInfo,
    facts: Iterable[SpendFact],
    excluded_document_ids: frozenset[UUID] = frozenset(),
) -> Decimal:
    """Sum of counting lines, rounded to 2 places."""
    total = sum(
        (f.amount for f in relevant_facts(budget, facts, excluded_document_ids)),
        ZERO,
    )
    return round_money(total)


def percent_of_limit(achieved: Decimal, limit: Decimal) -> Decimal:
    if limit == 0:
        return round_money(ZERO)
    return round_money(achieved / limit * HUNDRED)


def contributing_documents(
    budget: BudgetInfo,
    facts: Iterable[SpendFact],
    excluded_document_ids: frozenset[UUID] = frozenset(),
) -> list[ContributingDocument]:
    """
    One entry per counting document, newest date first, then reference
    descending.  A document without a counterparty is labelled by type and
    short id.
    """
    grouped: dict[UUID, list[SpendFact]] = {}
    for f in relevant_facts(budget, facts, excluded_document_ids):
        grouped.setdefault(f.document_id, []).append(f)

    docs = []
    for document_id, lines in grouped.items():
        head = lines[0]
        docs.append(
            ContributingDocument(
                document_id=document_id,
                document_type=head.document_type,
                reference=head.reference,
                document_date=head.document_date,
                amount=round_money(sum((l.amount for l in lines), ZERO)),
                counterparty=head.counterparty or _fallback_counterparty(head),
            )
        )
    docs.sort(key=lambda d: (d.document_date, d.reference), reverse=True)
    return docs


def _fallback_counterparty(fact: SpendFact) -> str:
    party = "Vendor" if fact.document_type.is_cost_side else "Customer"
    return f"{party} #{str(fact.document_id)[:8]}"


@traced_engine("budget_performance", "1.0", fingerprint_fields=("budget",))
def compute_performance(
    *,
    budget: BudgetInfo,
    facts: Sequence[SpendFact],
    include_transactions: bool = False,
    excluded_document_ids: frozenset[UUID] = frozenset(),
) -> BudgetPerformance:
    """
    Compute BudgetPerformance for one budget.

    Args:
        budget: The budget being measured.
        facts: Finalized lines; anything not counting toward the budget is
            ignored, so callers may pass a superset.
        include_transactions: Attach the per-document drill-down.
        excluded_document_ids: Documents to leave out (orders already
            billed or invoiced, when de-duplication is enabled).
    """
    limit = Decimal(budget.limit_amount)
    achieved = achieved_amount(budget, facts, excluded_document_ids)
    remaining = round_money(limit - achieved)

    transactions: tuple[ContributingDocument, ...] = ()
    if include_transactions:
        transactions = tuple(
            contributing_documents(budget, facts, excluded_document_ids)
        )

    return BudgetPerformance(
        budget_id=budget.id,
        budget_type=budget.budget_type,
        limit_amount=round_money(limit),
        achieved=achieved,
        remaining=remaining,
        percent=percent_of_limit(achieved, limit),
        meets_income_target=(
            budget.budget_type == BudgetType.INCOME and achieved >= limit
        ),
        balance_for_chart=max(remaining, round_money(ZERO)),
        transactions=transactions,
    )
