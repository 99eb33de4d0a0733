"""
Analytical Budget Module Service (``analytic_modules.budget.service``).

Responsibility
--------------
Public entry point for analytical budgeting: account resolution, budget
lifecycle, performance, overrun warnings, document saves and the
dashboard.  Delegates persistence to the kernel services and calculations
to the pure engines.

Architecture position
---------------------
**Modules layer** -- thin application glue over ``analytic_kernel`` and
``analytic_engines``.

Invariants enforced
-------------------
* Each public mutating method owns the transaction boundary: ``commit`` on
  success, ``rollback`` and re-raise on any exception.  A partially applied
  operation is never committed.
* A version conflict detected at commit surfaces as OptimisticLockError.

Failure modes
-------------
* ValidationError / NotFoundError -- bad input; session rolled back.
* InvalidStateTransitionError -- lifecycle action not allowed.
* BudgetLimitExceededError -- save_document with allow_over_budget=False.
* OptimisticLockError -- another transaction changed the budget first.

Audit relevance
---------------
Structured log events at every commit and rollback, carrying budget and
document ids.  LogContext is bound with the actor and entity for the
duration of each call.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from analytic_kernel.domain.clock import Clock, SystemClock
from analytic_kernel.domain.dtos import (
    AccountInfo,
    AssignmentRequest,
    BudgetDraft,
    BudgetInfo,
    BudgetStatus,
    BudgetType,
    DocumentDraft,
    DocumentType,
    DraftLine,
    RevisionDraft,
    RuleDraft,
    RuleInfo,
)
from analytic_kernel.exceptions import BudgetLimitExceededError, OptimisticLockError
from analytic_kernel.logging_config import LogContext, get_logger
from analytic_kernel.services.account_registry import AccountRegistry
from analytic_kernel.services.budget_ledger import BudgetLedger
from analytic_kernel.services.document_service import DocumentService
from analytic_kernel.services.rule_engine import AutoAssignmentRuleEngine
from analytic_kernel.services.rule_service import RuleService
from analytic_modules.budget.config import BudgetConfig
from analytic_modules.budget.dashboard import DashboardAggregator
from analytic_modules.budget.models import (
    BudgetPerformance,
    BudgetWarning,
    DashboardSummary,
    DocumentSaveResult,
    PeriodTotal,
)
from analytic_modules.budget.performance import BudgetPerformanceCalculator
from analytic_modules.budget.warnings import BudgetWarningEvaluator

logger = get_logger("modules.budget.service")

T = TypeVar("T")


class AnalyticalBudgetService:
    """
    Orchestrates analytical budgeting through kernel services and engines.

    Contract
    --------
    * Mutating methods commit on success and roll back on failure.
    * Read methods never write and never commit.
    * The kernel services exposed as attributes (``accounts``, ``rules``,
      ``ledger``, ``documents``) only flush.  Callers using them directly
      own the commit.

    Guarantees
    ----------
    * Warnings are always computed from live data.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT own document lifecycles; document-owning systems push
      documents here through ``save_document`` or ``DocumentService``.
    * No currency conversion: every amount is in ``config.default_currency``.
    """

    def __init__(
        self,
        session: Session,
        config: BudgetConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._config = config or BudgetConfig.with_defaults()
        self._clock = clock or SystemClock()

        self.accounts = AccountRegistry(session, self._clock)
        self.ledger = BudgetLedger(session, self._clock, accounts=self.accounts)
        self.documents = DocumentService(session, self._clock)
        self.rules = RuleService(session, self._clock, accounts=self.accounts)
        self.rule_engine = AutoAssignmentRuleEngine(session)
        self.performance = BudgetPerformanceCalculator(session, self._config)
        self.warnings = BudgetWarningEvaluator(session, self._config)
        self.dashboard_aggregator = DashboardAggregator(
            session, self._config, self._clock
        )

    @property
    def config(self) -> BudgetConfig:
        return self._config

    # =========================================================================
    # Transaction boundary
    # =========================================================================

    def _in_transaction(
        self,
        operation: str,
        entity_type: str,
        entity_id: object,
        work: Callable[[], T],
    ) -> T:
        try:
            result = work()
            self._session.commit()
        except StaleDataError as exc:
            self._session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": operation, "reason": "stale_data"},
            )
            raise OptimisticLockError(entity_type, str(entity_id)) from exc
        except Exception:
            self._session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": operation},
                exc_info=True,
            )
            raise
        logger.debug("transaction_committed", extra={"operation": operation})
        return result

    # =========================================================================
    # Accounts
    # =========================================================================

    def create_account(
        self,
        name: str,
        actor_id: UUID,
        description: str | None = None,
    ) -> AccountInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "create_account",
                "analytical_account",
                None,
                lambda: self.accounts.create_account(name, actor_id, description=description),
            )

    def update_account(
        self,
        account_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> AccountInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "update_account",
                "analytical_account",
                account_id,
                lambda: self.accounts.update_account(
                    account_id, actor_id, name=name, description=description
                ),
            )

    def archive_account(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        """Archived accounts keep their history but take no new budgets or rules."""
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "archive_account",
                "analytical_account",
                account_id,
                lambda: self.accounts.archive_account(account_id, actor_id),
            )

    def restore_account(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "restore_account",
                "analytical_account",
                account_id,
                lambda: self.accounts.restore_account(account_id, actor_id),
            )

    # =========================================================================
    # Auto-assignment rules
    # =========================================================================

    def create_rule(self, draft: RuleDraft, actor_id: UUID) -> RuleInfo:
        """Create a Draft rule; it takes part in resolution once confirmed."""
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "create_rule",
                "auto_assignment_rule",
                None,
                lambda: self.rules.create_rule(draft, actor_id),
            )

    def update_rule(self, rule_id: UUID, draft: RuleDraft, actor_id: UUID) -> RuleInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "update_rule",
                "auto_assignment_rule",
                rule_id,
                lambda: self.rules.update_rule(rule_id, draft, actor_id),
            )

    def confirm_rule(self, rule_id: UUID, actor_id: UUID) -> RuleInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "confirm_rule",
                "auto_assignment_rule",
                rule_id,
                lambda: self.rules.confirm_rule(rule_id, actor_id),
            )

    def archive_rule(self, rule_id: UUID, actor_id: UUID) -> RuleInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "archive_rule",
                "auto_assignment_rule",
                rule_id,
                lambda: self.rules.archive_rule(rule_id, actor_id),
            )

    def restore_rule(self, rule_id: UUID, actor_id: UUID) -> RuleInfo:
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "restore_rule",
                "auto_assignment_rule",
                rule_id,
                lambda: self.rules.restore_rule(rule_id, actor_id),
            )

    # =========================================================================
    # Account resolution
    # =========================================================================

    def resolve_account(self, request: AssignmentRequest) -> UUID | None:
        """Account chosen by the best-matching auto-assignment rule, if any."""
        result = self.rule_engine.resolve(request)
        return result.account_id if result is not None else None

    # =========================================================================
    # Budget lifecycle
    # =========================================================================

    def create_budget(self, draft: BudgetDraft, actor_id: UUID) -> BudgetInfo:
        """Create a Draft budget."""
        with LogContext.bind(actor_id=actor_id):
            return self._in_transaction(
                "create_budget",
                "analytical_budget",
                None,
                lambda: self.ledger.create_budget(draft, actor_id),
            )

    def update_budget(
        self,
        budget_id: UUID,
        draft: BudgetDraft,
        actor_id: UUID,
    ) -> BudgetInfo:
        """Edit a Draft budget."""
        with LogContext.bind(actor_id=actor_id, budget_id=budget_id):
            return self._in_transaction(
                "update_budget",
                "analytical_budget",
                budget_id,
                lambda: self.ledger.update_budget(budget_id, draft, actor_id),
            )

    def confirm_budget(self, budget_id: UUID, actor_id: UUID) -> None:
        """Draft -> Confirmed (no-op when already Confirmed)."""
        with LogContext.bind(actor_id=actor_id, budget_id=budget_id):
            self._in_transaction(
                "confirm_budget",
                "analytical_budget",
                budget_id,
                lambda: self.ledger.confirm_budget(budget_id, actor_id),
            )

    def create_budget_revision(
        self,
        budget_id: UUID,
        draft: RevisionDraft | BudgetDraft,
        actor_id: UUID,
    ) -> BudgetInfo:
        """Revise a Confirmed budget; returns the new Draft revision."""
        with LogContext.bind(actor_id=actor_id, budget_id=budget_id):
            return self._in_transaction(
                "create_budget_revision",
                "analytical_budget",
                budget_id,
                lambda: self.ledger.create_revision(budget_id, draft, actor_id),
            )

    def archive_budget(self, budget_id: UUID, actor_id: UUID) -> None:
        """Confirmed or Revised -> Archived."""
        with LogContext.bind(actor_id=actor_id, budget_id=budget_id):
            self._in_transaction(
                "archive_budget",
                "analytical_budget",
                budget_id,
                lambda: self.ledger.archive_budget(budget_id, actor_id),
            )

    def get_budget(self, budget_id: UUID) -> BudgetInfo:
        return self.ledger.get_budget(budget_id)

    def list_budgets(
        self,
        status: BudgetStatus | None = None,
        account_id: UUID | None = None,
    ) -> list[BudgetInfo]:
        return self.ledger.list_budgets(status=status, account_id=account_id)

    def revision_chain(self, budget_id: UUID) -> list[BudgetInfo]:
        return self.ledger.revision_chain(budget_id)

    # =========================================================================
    # Performance and warnings
    # =========================================================================

    def compute_budget_performance(
        self,
        budget_id: UUID,
        include_transactions: bool = False,
    ) -> BudgetPerformance:
        """
        Achieved, remaining and percent for one budget.

        Raises:
            BudgetNotFoundError: Unknown budget id.
        """
        budget = self.ledger.get_budget(budget_id)
        return self.performance.compute_performance(
            budget, include_transactions=include_transactions
        )

    def evaluate_budget_warnings(self, draft: DocumentDraft) -> dict[int, BudgetWarning]:
        """Projected-overrun warnings for a PO or vendor bill draft."""
        return self.warnings.evaluate(draft)

    # =========================================================================
    # Documents
    # =========================================================================

    def _with_assignments(self, draft: DocumentDraft) -> DocumentDraft:
        lines = []
        for line in draft.lines:
            if line.account_id is None:
                account_id = self.resolve_account(draft.assignment_request(line))
                if account_id is not None:
                    line = DraftLine(
                        amount=line.amount,
                        account_id=account_id,
                        product_id=line.product_id,
                        product_category_id=line.product_category_id,
                    )
            lines.append(line)
        return DocumentDraft(
            document_type=draft.document_type,
            document_date=draft.document_date,
            lines=tuple(lines),
            reference=draft.reference,
            status=draft.status,
            counterparty=draft.counterparty,
            partner_id=draft.partner_id,
            partner_tag_ids=draft.partner_tag_ids,
            document_id=draft.document_id,
            source_document_id=draft.source_document_id,
        )

    def save_document(self, draft: DocumentDraft, actor_id: UUID) -> DocumentSaveResult:
        """
        Auto-assign accounts, check budgets and persist a document.

        Warnings are evaluated for purchase orders and vendor bills only.
        With ``allow_over_budget`` the document is saved and the warnings
        returned; without it the first warning is raised instead.

        Raises:
            BudgetLimitExceededError: A budget would be overrun and
                ``config.allow_over_budget`` is False.
        """

        def work() -> DocumentSaveResult:
            warnings: dict[int, BudgetWarning] = {}
            if DocumentType(draft.document_type).is_cost_side:
                warnings = self.warnings.evaluate(self._with_assignments(draft))
                if warnings and not self._config.allow_over_budget:
                    first = warnings[min(warnings)]
                    raise BudgetLimitExceededError(
                        str(first.budget_id),
                        first.limit_amount,
                        first.projected_amount,
                    )
            document = self.documents.record_document(
                draft, actor_id, resolver=self.rule_engine
            )
            return DocumentSaveResult(document=document, warnings=warnings)

        with LogContext.bind(actor_id=actor_id, document_id=draft.document_id):
            return self._in_transaction(
                "save_document", "transaction_document", draft.document_id, work
            )

    # =========================================================================
    # Dashboard
    # =========================================================================

    def dashboard(self, status: BudgetStatus | None = BudgetStatus.CONFIRMED) -> DashboardSummary:
        """Budget totals and per-account roll-ups."""
        return self.dashboard_aggregator.summarize(status=status)

    def monthly_totals(
        self,
        side: BudgetType,
        months: int | None = None,
    ) -> list[PeriodTotal]:
        """Finalized amounts per month for the dashboard chart."""
        return self.dashboard_aggregator.monthly_totals(side, months=months)
