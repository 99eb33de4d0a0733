"""
Module: analytic_kernel.models.budget
Responsibility: ORM persistence for analytical budgets and their revision
    chains.
Architecture position: Kernel > Models.

Invariants enforced:
    - limit_amount >= 0 (ck_budget_limit_non_negative).
    - period_end >= period_start (ck_budget_period).
    - original_budget_id always points at the chain root, never at an
      intermediate revision, so a chain is a one-level tree.
    - version is the optimistic-lock counter.  An UPDATE that matches a
      stale version raises StaleDataError.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from analytic_kernel.db.base import TrackedBase, UUIDString


class AnalyticalBudget(TrackedBase):
    """
    A spending limit (expense) or revenue target (income) on one analytical
    account for one date range.

    Contract:
        Only Draft, non-read-only budgets may change their name, period or
        limit.  Confirmed, Revised and Archived rows are frozen except for
        their lifecycle fields.

    Non-goals:
        - No object reference to revisions.  Revisions are found by
          querying original_budget_id.
    """

    __tablename__ = "analytical_budgets"

    __table_args__ = (
        CheckConstraint("limit_amount >= 0", name="ck_budget_limit_non_negative"),
        CheckConstraint("period_end >= period_start", name="ck_budget_period"),
        CheckConstraint(
            "budget_type IN ('income', 'expense')",
            name="ck_budget_type",
        ),
        CheckConstraint(
            "status IN ('draft', 'confirmed', 'revised', 'archived')",
            name="ck_budget_status",
        ),
        Index("idx_budget_account_period", "account_id", "period_start", "period_end"),
        Index("idx_budget_original", "original_budget_id"),
        Index("idx_budget_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("analytical_accounts.id"),
        nullable=False,
    )

    budget_type: Mapped[str] = mapped_column(String(20), nullable=False)

    period_start: Mapped[date] = mapped_column(Date, nullable=False)

    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    limit_amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    is_read_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    original_budget_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("analytical_budgets.id"),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<AnalyticalBudget {self.name} {self.budget_type} "
            f"{self.period_start}..{self.period_end} [{self.status}]>"
        )
