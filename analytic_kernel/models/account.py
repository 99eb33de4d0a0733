"""
Module: analytic_kernel.models.account
Responsibility: ORM persistence for analytical accounts (cost centers).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - name is unique (uq_analytical_account_name).  The registry also
      rejects case-insensitive duplicates before insert.
    - Accounts are never deleted; is_archived hides them from new
      assignment while existing budgets and lines keep referencing them.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from analytic_kernel.db.base import TrackedBase


class AnalyticalAccount(TrackedBase):
    """
    Analytical account -- a cost center that budgets and lines point to.

    Guarantees:
        - name is non-null and unique.
        - is_archived defaults to False.
    """

    __tablename__ = "analytical_accounts"

    __table_args__ = (
        UniqueConstraint("name", name="uq_analytical_account_name"),
        Index("idx_analytical_account_archived", "is_archived"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<AnalyticalAccount {self.name}{' (archived)' if self.is_archived else ''}>"
