"""
Module: analytic_kernel.models.document
Responsibility: Uniform read view of purchase orders, vendor bills, sales
    orders and customer invoices, with their analytical lines.
Architecture position: Kernel > Models.

Invariants enforced:
    - Line amounts are non-negative (ck_line_amount_non_negative).
    - (document_id, line_index) is unique.
    - document_type and status are constrained to their enum values.
    - version is the optimistic-lock counter.  Every re-save or status
      change bumps it, so a writer holding an older copy gets StaleDataError.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from analytic_kernel.db.base import TrackedBase, UUIDString


class TransactionDocument(TrackedBase):
    """A transactional document header."""

    __tablename__ = "transaction_documents"

    __table_args__ = (
        CheckConstraint(
            "document_type IN ('purchase_order', 'vendor_bill', "
            "'sales_order', 'customer_invoice')",
            name="ck_document_type",
        ),
        CheckConstraint(
            "status IN ('draft', 'confirmed', 'posted', 'cancelled')",
            name="ck_document_status",
        ),
        Index("idx_document_type_date", "document_type", "document_date"),
        Index("idx_document_source", "source_document_id"),
    )

    document_type: Mapped[str] = mapped_column(String(30), nullable=False)

    reference: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    document_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    counterparty: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Order a bill or invoice was created from
    source_document_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("transaction_documents.id"),
        nullable=True,
    )

    lines: Mapped[list["TransactionLine"]] = relationship(
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="TransactionLine.line_index",
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<TransactionDocument {self.document_type} {self.reference} [{self.status}]>"


class TransactionLine(TrackedBase):
    """One analytical line of a transaction document."""

    __tablename__ = "transaction_lines"

    __table_args__ = (
        UniqueConstraint("document_id", "line_index", name="uq_line_document_index"),
        CheckConstraint("amount >= 0", name="ck_line_amount_non_negative"),
        Index("idx_line_account", "account_id"),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("transaction_documents.id"),
        nullable=False,
    )

    line_index: Mapped[int] = mapped_column(Integer, nullable=False)

    account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("analytical_accounts.id"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    product_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    product_category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    assigned_rule_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("auto_assignment_rules.id"),
        nullable=True,
    )

    document: Mapped[TransactionDocument] = relationship(back_populates="lines")
