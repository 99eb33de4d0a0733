"""
BudgetPerformanceCalculator -- loads spend for budgets and measures them.

Reads finalized lines through SpendSelector and hands them to
``analytic_engines.performance``.  Read-only.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from analytic_engines.performance import (
    BudgetPerformance,
    ContributingDocument,
    achieved_amount,
    compute_performance,
    contributing_documents,
)
from analytic_kernel.domain.dtos import BudgetInfo, BudgetStatus, DocumentType, SpendFact
from analytic_kernel.selectors.budget_selector import BudgetSelector
from analytic_kernel.selectors.spend_selector import SpendSelector
from analytic_modules.budget.config import BudgetConfig


class BudgetPerformanceCalculator:
    """Achieved / remaining / percent for budgets, from live data."""

    def __init__(self, session: Session, config: BudgetConfig | None = None):
        self._config = config or BudgetConfig.with_defaults()
        self._spend = SpendSelector(session)
        self._budgets = BudgetSelector(session)

    def excluded_documents(self) -> frozenset[UUID]:
        """Orders left out of aggregates when de-duplication is on."""
        if not self._config.dedupe_source_orders:
            return frozenset()
        return self._spend.referenced_orders()

    def _facts(self, budget: BudgetInfo) -> list[SpendFact]:
        return self._spend.finalized_facts(
            DocumentType.for_budget_type(budget.budget_type),
            account_ids=[budget.account_id],
            start=budget.period_start,
            end=budget.period_end,
        )

    def compute_achieved(self, budget: BudgetInfo) -> Decimal:
        return achieved_amount(budget, self._facts(budget), self.excluded_documents())

    def contributing_documents(self, budget: BudgetInfo) -> list[ContributingDocument]:
        return contributing_documents(
            budget, self._facts(budget), self.excluded_documents()
        )

    def compute_performance(
        self,
        budget: BudgetInfo,
        include_transactions: bool = False,
    ) -> BudgetPerformance:
        return compute_performance(
            budget=budget,
            facts=self._facts(budget),
            include_transactions=include_transactions,
            excluded_document_ids=self.excluded_documents(),
        )

    def compute_all(
        self,
        status: BudgetStatus | None = None,
    ) -> dict[UUID, BudgetPerformance]:
        """Performance of every budget (optionally one status), keyed by id.

        Spend is loaded once and shared across budgets.
        """
        budgets = self._budgets.find(status=status)
        if not budgets:
            return {}
        facts = self._spend.finalized_facts(
            list(DocumentType),
            account_ids={b.account_id for b in budgets},
            start=min(b.period_start for b in budgets),
            end=max(b.period_end for b in budgets),
        )
        excluded = self.excluded_documents()
        return {
            b.id: compute_performance(
                budget=b,
                facts=facts,
                excluded_document_ids=excluded,
            )
            for b in budgets
        }
