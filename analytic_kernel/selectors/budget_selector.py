"""
Module: analytic_kernel.selectors.budget_selector
Responsibility: Read-only budget queries for the ledger, the warning
    evaluator and the dashboard.
Architecture position: Kernel > Selectors.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import select

from analytic_kernel.domain.dtos import BudgetInfo, BudgetStatus, BudgetType
from analytic_kernel.models.account import AnalyticalAccount
from analytic_kernel.models.budget import AnalyticalBudget
from analytic_kernel.selectors.base import BaseSelector


def budget_info(budget: AnalyticalBudget) -> BudgetInfo:
    """Convert ORM AnalyticalBudget to BudgetInfo DTO."""
    return BudgetInfo(
        id=budget.id,
        name=budget.name,
        account_id=budget.account_id,
        budget_type=BudgetType(budget.budget_type),
        period_start=budget.period_start,
        period_end=budget.period_end,
        limit_amount=budget.limit_amount,
        status=BudgetStatus(budget.status),
        is_read_only=budget.is_read_only,
        original_budget_id=budget.original_budget_id,
        version=budget.version,
        created_at=budget.created_at,
    )


class BudgetSelector(BaseSelector[AnalyticalBudget]):
    """Budget read queries."""

    def find(
        self,
        status: BudgetStatus | None = None,
        account_id: UUID | None = None,
        budget_type: BudgetType | None = None,
    ) -> list[BudgetInfo]:
        """Budgets ordered by newest period first, then newest created."""
        stmt = select(AnalyticalBudget)
        if status is not None:
            stmt = stmt.where(AnalyticalBudget.status == BudgetStatus(status).value)
        if account_id is not None:
            stmt = stmt.where(AnalyticalBudget.account_id == account_id)
        if budget_type is not None:
            stmt = stmt.where(AnalyticalBudget.budget_type == BudgetType(budget_type).value)
        stmt = stmt.order_by(
            AnalyticalBudget.period_start.desc(),
            AnalyticalBudget.created_at.desc(),
        )
        return [budget_info(b) for b in self.session.execute(stmt).scalars().all()]

    def chain_members(self, root_id: UUID) -> list[BudgetInfo]:
        """Revisions of a chain root (excluding the root), oldest first."""
        stmt = (
            select(AnalyticalBudget)
            .where(AnalyticalBudget.original_budget_id == root_id)
            .order_by(AnalyticalBudget.created_at, AnalyticalBudget.period_start)
        )
        return [budget_info(b) for b in self.session.execute(stmt).scalars().all()]

    def covering(
        self,
        account_ids: Iterable[UUID],
        day: date,
        statuses: Iterable[BudgetStatus],
        budget_type: BudgetType = BudgetType.EXPENSE,
    ) -> list[BudgetInfo]:
        """
        Budgets on any of ``account_ids`` whose period contains ``day``.

        Ordered by ascending limit, so the tightest budget comes first.
        """
        ids = list(account_ids)
        status_values = [BudgetStatus(s).value for s in statuses]
        if not ids or not status_values:
            return []
        stmt = (
            select(AnalyticalBudget)
            .where(
                AnalyticalBudget.account_id.in_(ids),
                AnalyticalBudget.budget_type == BudgetType(budget_type).value,
                AnalyticalBudget.status.in_(status_values),
                AnalyticalBudget.period_start <= day,
                AnalyticalBudget.period_end >= day,
            )
            .order_by(AnalyticalBudget.limit_amount, AnalyticalBudget.created_at)
        )
        return [budget_info(b) for b in self.session.execute(stmt).scalars().all()]

    def account_names(self, account_ids: Iterable[UUID]) -> dict[UUID, str]:
        """Map account id to account name for the given ids."""
        ids = list(set(account_ids))
        if not ids:
            return {}
        stmt = select(AnalyticalAccount.id, AnalyticalAccount.name).where(
            AnalyticalAccount.id.in_(ids)
        )
        return {row.id: row.name for row in self.session.execute(stmt)}
