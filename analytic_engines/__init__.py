"""
Pure calculation engines for analytical budgets.

No database access and no clock: every function takes DTOs and returns
DTOs.  Invocations are traced through ``analytic_engines.tracer``.
"""

from analytic_engines.dashboard import (
    AccountRollup,
    DashboardSummary,
    PeriodTotal,
    TypeTotals,
    monthly_totals,
    summarize,
)
from analytic_engines.performance import (
    BudgetPerformance,
    ContributingDocument,
    achieved_amount,
    compute_performance,
    contributing_documents,
)
from analytic_engines.projection import BudgetWarning, project_overruns

__all__ = [
    "AccountRollup",
    "BudgetPerformance",
    "BudgetWarning",
    "ContributingDocument",
    "DashboardSummary",
    "PeriodTotal",
    "TypeTotals",
    "achieved_amount",
    "compute_performance",
    "contributing_documents",
    "monthly_totals",
    "project_overruns",
    "summarize",
]
