"""Read-only selectors."""

from analytic_kernel.selectors.base import BaseSelector
from analytic_kernel.selectors.budget_selector import BudgetSelector, budget_info
from analytic_kernel.selectors.spend_selector import SpendSelector

__all__ = ["BaseSelector", "BudgetSelector", "SpendSelector", "budget_info"]
