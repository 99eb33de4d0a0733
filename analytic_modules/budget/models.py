"""
Analytical Budget Module Models (``analytic_modules.budget.models``).

Frozen result objects returned by ``AnalyticalBudgetService``.  The
performance, warning and dashboard records are produced by the pure
engines and re-exported here so callers import from one place.
"""

from dataclasses import dataclass, field

from analytic_engines.dashboard import (
    AccountRollup,
    DashboardSummary,
    PeriodTotal,
    TypeTotals,
)
from analytic_engines.performance import BudgetPerformance, ContributingDocument
from analytic_engines.projection import BudgetWarning
from analytic_kernel.domain.dtos import DocumentView


@dataclass(frozen=True)
class DocumentSaveResult:
    """A saved document plus the overrun warnings raised for its lines."""

    document: DocumentView
    warnings: dict[int, BudgetWarning] = field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


__all__ = [
    "AccountRollup",
    "BudgetPerformance",
    "BudgetWarning",
    "ContributingDocument",
    "DashboardSummary",
    "DocumentSaveResult",
    "PeriodTotal",
    "TypeTotals",
]
