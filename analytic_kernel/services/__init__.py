"""Kernel write services and the rule engine."""

from analytic_kernel.services.account_registry import AccountRegistry
from analytic_kernel.services.base import BaseService
from analytic_kernel.services.budget_ledger import BudgetLedger
from analytic_kernel.services.document_service import DocumentService
from analytic_kernel.services.rule_engine import AutoAssignmentRuleEngine
from analytic_kernel.services.rule_service import RuleService
from analytic_kernel.services.sequence_service import SequenceService

__all__ = [
    "AccountRegistry",
    "AutoAssignmentRuleEngine",
    "BaseService",
    "BudgetLedger",
    "DocumentService",
    "RuleService",
    "SequenceService",
]
