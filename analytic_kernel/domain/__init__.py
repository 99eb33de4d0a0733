"""Pure domain layer: enums, DTOs, clock, workflows and rule scoring."""

from analytic_kernel.domain.assignment import score_rule, select_best
from analytic_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from analytic_kernel.domain.dtos import (
    AccountInfo,
    AssignmentRequest,
    AssignmentResult,
    AssignmentSource,
    BudgetDraft,
    BudgetInfo,
    BudgetStatus,
    BudgetType,
    DocumentDraft,
    DocumentStatus,
    DocumentType,
    DocumentView,
    DraftLine,
    LineView,
    RevisionDraft,
    RuleDraft,
    RuleInfo,
    RuleStatus,
    SpendFact,
)
from analytic_kernel.domain.workflow import (
    BUDGET_WORKFLOW,
    RULE_WORKFLOW,
    Transition,
    Workflow,
)

__all__ = [
    "AccountInfo",
    "AssignmentRequest",
    "AssignmentResult",
    "AssignmentSource",
    "BudgetDraft",
    "BudgetInfo",
    "BudgetStatus",
    "BudgetType",
    "Clock",
    "DeterministicClock",
    "DocumentDraft",
    "DocumentStatus",
    "DocumentType",
    "DocumentView",
    "DraftLine",
    "LineView",
    "RevisionDraft",
    "RuleDraft",
    "RuleInfo",
    "RuleStatus",
    "SpendFact",
    "SystemClock",
    "BUDGET_WORKFLOW",
    "RULE_WORKFLOW",
    "Transition",
    "Workflow",
    "score_rule",
    "select_best",
]
