"""
BudgetLedger -- budget lifecycle and revision history.

Responsibility:
    Create and edit draft budgets, and move budgets through BUDGET_WORKFLOW:
    Draft -> Confirmed, Confirmed -> Revised (with a new Draft successor),
    Confirmed/Revised -> Archived.  Also answers revision-chain queries.

Architecture position:
    Kernel > Services.  Flush-only; the facade in analytic_modules commits.

Invariants enforced:
    - period_end >= period_start and limit_amount >= 0 on every write.
    - Only Draft, non-read-only budgets are editable.
    - A revision copies account, name and type from its source, and its
      original_budget_id is always the chain root.
    - Revising marks the source Revised and read-only in the same flush as
      the successor's insert, so either both land or neither does.
    - Confirming a Confirmed budget changes nothing.

Failure modes:
    - EmptyNameError, InvalidBudgetPeriodError, NegativeLimitError.
    - ReadOnlyBudgetError when editing a non-draft budget.
    - InvalidStateTransitionError for actions BUDGET_WORKFLOW forbids.
    - OptimisticLockError when another transaction changed the row first.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from analytic_kernel.domain.clock import Clock
from analytic_kernel.domain.dtos import (
    BudgetDraft,
    BudgetInfo,
    BudgetStatus,
    BudgetType,
    RevisionDraft,
)
from analytic_kernel.domain.workflow import BUDGET_WORKFLOW
from analytic_kernel.exceptions import (
    BudgetNotFoundError,
    EmptyNameError,
    InvalidBudgetPeriodError,
    NegativeLimitError,
    ReadOnlyBudgetError,
    ValidationError,
)
from analytic_kernel.logging_config import get_logger
from analytic_kernel.models.budget import AnalyticalBudget
from analytic_kernel.selectors.budget_selector import BudgetSelector, budget_info
from analytic_kernel.services.account_registry import AccountRegistry
from analytic_kernel.services.base import BaseService

logger = get_logger("services.budget_ledger")

_ENTITY = "analytical_budget"


def _check_period_and_limit(draft: BudgetDraft | RevisionDraft) -> Decimal:
    if draft.period_end < draft.period_start:
        raise InvalidBudgetPeriodError(draft.period_start, draft.period_end)
    limit = Decimal(draft.limit_amount)
    if limit < 0:
        raise NegativeLimitError(limit)
    return limit


class BudgetLedger(BaseService[AnalyticalBudget]):
    """Service for analytical budgets. Returns BudgetInfo DTOs."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        accounts: AccountRegistry | None = None,
    ):
        super().__init__(session, clock)
        self._accounts = accounts or AccountRegistry(session, self._clock)
        self._selector = BudgetSelector(session)

    def _get_by_id(self, budget_id: UUID) -> AnalyticalBudget:
        budget = self.session.get(AnalyticalBudget, budget_id)
        if budget is None:
            raise BudgetNotFoundError(str(budget_id))
        return budget

    def _new_budget(
        self,
        *,
        name: str,
        account_id: UUID,
        budget_type: BudgetType,
        draft: BudgetDraft | RevisionDraft,
        limit: Decimal,
        original_budget_id: UUID | None,
        actor_id: UUID,
    ) -> AnalyticalBudget:
        now = self._clock.now()
        budget = AnalyticalBudget(
            name=name,
            account_id=account_id,
            budget_type=BudgetType(budget_type).value,
            period_start=draft.period_start,
            period_end=draft.period_end,
            limit_amount=limit,
            status=BudgetStatus.DRAFT.value,
            is_read_only=False,
            original_budget_id=original_budget_id,
            created_by_id=actor_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(budget)
        return budget

    # -----------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------

    def create_budget(self, draft: BudgetDraft, actor_id: UUID) -> BudgetInfo:
        """
        Create a Draft budget.

        Raises:
            EmptyNameError, InvalidBudgetPeriodError, NegativeLimitError
            AccountNotFoundError, ArchivedAccountError
        """
        name = (draft.name or "").strip()
        if not name:
            raise EmptyNameError("Budget")
        limit = _check_period_and_limit(draft)
        self._accounts.require_assignable(draft.account_id)

        budget = self._new_budget(
            name=name,
            account_id=draft.account_id,
            budget_type=draft.budget_type,
            draft=draft,
            limit=limit,
            original_budget_id=None,
            actor_id=actor_id,
        )
        self.session.flush()

        logger.info(
            "budget_created",
            extra={
                "budget_id": str(budget.id),
                "account_id": str(budget.account_id),
                "budget_type": budget.budget_type,
                "limit_amount": str(limit),
            },
        )
        return budget_info(budget)

    def update_budget(
        self,
        budget_id: UUID,
        draft: BudgetDraft,
        actor_id: UUID,
    ) -> BudgetInfo:
        """
        Edit a Draft budget in place.

        A revision's account and type are fixed by its chain; only name,
        period and limit may change on one.

        Raises:
            ReadOnlyBudgetError: The budget is not an editable draft.
        """
        budget = self._get_by_id(budget_id)
        if budget.status != BudgetStatus.DRAFT.value or budget.is_read_only:
            raise ReadOnlyBudgetError(str(budget.id), budget.status)

        name = (draft.name or "").strip()
        if not name:
            raise EmptyNameError("Budget")
        limit = _check_period_and_limit(draft)

        budget_type = BudgetType(draft.budget_type).value
        if budget.original_budget_id is not None and (
            draft.account_id != budget.account_id or budget_type != budget.budget_type
        ):
            raise ValidationError(
                f"Budget revision {budget.id} must keep account and type of its chain"
            )
        if draft.account_id != budget.account_id:
            self._accounts.require_assignable(draft.account_id)

        budget.name = name
        budget.account_id = draft.account_id
        budget.budget_type = budget_type
        budget.period_start = draft.period_start
        budget.period_end = draft.period_end
        budget.limit_amount = limit
        budget.updated_by_id = actor_id
        self._flush(_ENTITY, budget.id)

        logger.info("budget_updated", extra={"budget_id": str(budget.id)})
        return budget_info(budget)

    def confirm_budget(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        """
        Draft -> Confirmed.

        Confirming an already Confirmed budget is a no-op: no field, version
        or timestamp changes.

        Raises:
            InvalidStateTransitionError: Status is Revised or Archived.
        """
        budget = self._get_by_id(budget_id)
        if budget.status == BudgetStatus.CONFIRMED.value:
            logger.debug("budget_confirm_noop", extra={"budget_id": str(budget.id)})
            return budget_info(budget)

        budget.status = BUDGET_WORKFLOW.apply(_ENTITY, budget.id, budget.status, "confirm")
        budget.updated_by_id = actor_id
        self._flush(_ENTITY, budget.id)

        logger.info(
            "budget_confirmed",
            extra={"budget_id": str(budget.id), "version": budget.version},
        )
        return budget_info(budget)

    def create_revision(
        self,
        source_id: UUID,
        draft: RevisionDraft | BudgetDraft,
        actor_id: UUID,
    ) -> BudgetInfo:
        """
        Revise a Confirmed budget.

        The source becomes Revised and read-only.  The returned Draft
        successor has the source's name, account and type, the draft's
        period and limit, and ``original_budget_id`` set to the chain root.
        Only ``period_start``, ``period_end`` and ``limit_amount`` are read
        from ``draft``.

        Raises:
            InvalidStateTransitionError: Source is not Confirmed.
            InvalidBudgetPeriodError, NegativeLimitError
            ArchivedAccountError: The account was archived since.
        """
        source = self._get_by_id(source_id)
        new_status = BUDGET_WORKFLOW.apply(_ENTITY, source.id, source.status, "revise")
        limit = _check_period_and_limit(draft)
        self._accounts.require_assignable(source.account_id)

        root_id = source.original_budget_id or source.id

        source.status = new_status
        source.is_read_only = True
        source.updated_by_id = actor_id

        revision = self._new_budget(
            name=source.name,
            account_id=source.account_id,
            budget_type=BudgetType(source.budget_type),
            draft=draft,
            limit=limit,
            original_budget_id=root_id,
            actor_id=actor_id,
        )
        self._flush(_ENTITY, source.id)

        logger.info(
            "budget_revised",
            extra={
                "budget_id": str(source.id),
                "revision_id": str(revision.id),
                "original_budget_id": str(root_id),
                "limit_amount": str(limit),
            },
        )
        return budget_info(revision)

    def archive_budget(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        """
        Confirmed or Revised -> Archived (terminal, read-only).

        Raises:
            InvalidStateTransitionError: Status is Draft or Archived.
        """
        budget = self._get_by_id(budget_id)
        budget.status = BUDGET_WORKFLOW.apply(_ENTITY, budget.id, budget.status, "archive")
        budget.is_read_only = True
        budget.updated_by_id = actor_id
        self._flush(_ENTITY, budget.id)

        logger.info("budget_archived", extra={"budget_id": str(budget.id)})
        return budget_info(budget)

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------

    def get_budget(self, budget_id: UUID) -> BudgetInfo:
        """
        Get budget by ID.

        Raises:
            BudgetNotFoundError: If the budget doesn't exist.
        """
        return budget_info(self._get_by_id(budget_id))

    def list_budgets(
        self,
        status: BudgetStatus | None = None,
        account_id: UUID | None = None,
    ) -> list[BudgetInfo]:
        """Budgets, newest period first."""
        return self._selector.find(status=status, account_id=account_id)

    def revisions_of(self, budget_id: UUID) -> list[BudgetInfo]:
        """Every revision in the chain ``budget_id`` belongs to, oldest first."""
        budget = self._get_by_id(budget_id)
        return self._selector.chain_members(budget.original_budget_id or budget.id)

    def revision_chain(self, budget_id: UUID) -> list[BudgetInfo]:
        """The chain root followed by its revisions, oldest first."""
        budget = self._get_by_id(budget_id)
        root = self._get_by_id(budget.original_budget_id or budget.id)
        return [budget_info(root)] + self._selector.chain_members(root.id)
