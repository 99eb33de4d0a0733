"""ORM models for the analytic kernel."""

from analytic_kernel.models.account import AnalyticalAccount
from analytic_kernel.models.budget import AnalyticalBudget
from analytic_kernel.models.document import TransactionDocument, TransactionLine
from analytic_kernel.models.rule import AutoAssignmentRule
from analytic_kernel.models.sequence import SequenceCounter

__all__ = [
    "AnalyticalAccount",
    "AnalyticalBudget",
    "AutoAssignmentRule",
    "SequenceCounter",
    "TransactionDocument",
    "TransactionLine",
]
