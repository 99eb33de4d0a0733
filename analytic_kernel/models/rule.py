"""
Module: analytic_kernel.models.rule
Responsibility: ORM persistence for auto-assignment rules.
Architecture position: Kernel > Models.

Invariants enforced:
    - rule_number is unique and allocated from the "auto_assignment_rule"
      sequence counter; lower numbers were created earlier.
    - status is one of draft, confirmed, archived (ck_rule_status).
"""

from uuid import UUID

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from analytic_kernel.db.base import TrackedBase, UUIDString


class AutoAssignmentRule(TrackedBase):
    """
    Auto-assignment rule mapping line attributes to an analytical account.

    Matchers (partner, partner tag, product, product category) are all
    optional.  A rule with no matchers can never score above zero.
    """

    __tablename__ = "auto_assignment_rules"

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'confirmed', 'archived')",
            name="ck_rule_status",
        ),
        Index("idx_rule_number", "rule_number", unique=True),
        Index("idx_rule_active", "status", "is_archived"),
    )

    rule_number: Mapped[int] = mapped_column(BigInteger, nullable=False)

    partner_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    partner_tag_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    product_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    product_category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("analytical_accounts.id"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<AutoAssignmentRule #{self.rule_number} -> {self.account_id} [{self.status}]>"
