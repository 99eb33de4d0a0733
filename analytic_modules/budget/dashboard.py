"""
DashboardAggregator -- budget dashboard data.

Loads budgets and their performance, then hands them to
``analytic_engines.dashboard`` for the roll-ups.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from analytic_engines.dashboard import DashboardSummary, PeriodTotal, month_window
from analytic_engines.dashboard import monthly_totals as _monthly_totals
from analytic_engines.dashboard import summarize as _summarize
from analytic_kernel.domain.clock import Clock, SystemClock
from analytic_kernel.domain.dtos import BudgetStatus, BudgetType, DocumentType
from analytic_kernel.selectors.budget_selector import BudgetSelector
from analytic_kernel.selectors.spend_selector import SpendSelector
from analytic_modules.budget.config import BudgetConfig
from analytic_modules.budget.performance import BudgetPerformanceCalculator


class DashboardAggregator:
    """Totals, counts and monthly series for the budget dashboard."""

    def __init__(
        self,
        session: Session,
        config: BudgetConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or BudgetConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._budgets = BudgetSelector(session)
        self._spend = SpendSelector(session)
        self._performance = BudgetPerformanceCalculator(session, self._config)

    def summarize(
        self,
        status: BudgetStatus | None = BudgetStatus.CONFIRMED,
    ) -> DashboardSummary:
        """Summary over budgets in ``status`` (None = every status)."""
        budgets = self._budgets.find(status=status)
        performances = self._performance.compute_all(status=status)
        names = self._budgets.account_names(b.account_id for b in budgets)
        return _summarize(
            budgets=budgets,
            performances=performances,
            account_names=names,
        )

    def monthly_totals(
        self,
        side: BudgetType,
        months: int | None = None,
        as_of: date | None = None,
    ) -> list[PeriodTotal]:
        """
        Finalized revenue (income side) or cost (expense side) per month.

        Args:
            side: BudgetType.INCOME for sales orders and customer invoices,
                BudgetType.EXPENSE for purchase orders and vendor bills.
            months: Number of months, ending with as_of's month.  Defaults
                to config.dashboard_months.
            as_of: Last day of interest.  Defaults to the clock's today.
        """
        if months is None:
            months = self._config.dashboard_months
        as_of = as_of or self._clock.today()
        first_year, first_month = month_window(months, as_of)[0]
        facts = self._spend.finalized_facts(
            DocumentType.for_budget_type(BudgetType(side)),
            start=date(first_year, first_month, 1),
            end=as_of,
        )
        if self._config.dedupe_source_orders:
            excluded = self._spend.referenced_orders()
            facts = [f for f in facts if f.document_id not in excluded]
        return _monthly_totals(facts=facts, months=months, as_of=as_of)
