"""
Analytical Budget Module (``analytic_modules.budget``).

Responsibility
--------------
Budget lifecycle, budget-vs-actual performance, projected-overrun warnings
for purchase orders and vendor bills, automatic analytical-account
assignment for document lines, and the budget dashboard.

Architecture position
---------------------
**Modules layer** -- a service facade over ``analytic_kernel`` services and
``analytic_engines`` calculations.  ``AnalyticalBudgetService`` is the
public entry point and owns the transaction boundary.
"""

from analytic_modules.budget.config import BudgetConfig, load_budget_config
from analytic_modules.budget.models import (
    BudgetPerformance,
    BudgetWarning,
    ContributingDocument,
    DashboardSummary,
    DocumentSaveResult,
    PeriodTotal,
)
from analytic_modules.budget.service import AnalyticalBudgetService

__all__ = [
    "AnalyticalBudgetService",
    "BudgetConfig",
    "BudgetPerformance",
    "BudgetWarning",
    "ContributingDocument",
    "DashboardSummary",
    "DocumentSaveResult",
    "PeriodTotal",
    "load_budget_config",
]
