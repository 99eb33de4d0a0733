"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the enums and immutable records that flow between the services,
    the pure engines and callers: accounts, rules, budgets, transaction
    documents, assignment requests/results and the spend facts the engines
    aggregate.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Services convert ORM
    rows into these records at the boundary; nothing outside services/ and
    selectors/ ever sees an ORM entity.

Invariants enforced:
    - All records are frozen.
    - Monetary fields are Decimal, never float.
    - DraftLine rejects float amounts (TypeError at construction).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class BudgetType(str, Enum):
    """Which side of the books a budget tracks."""

    INCOME = "income"
    EXPENSE = "expense"


class BudgetStatus(str, Enum):
    """Budget lifecycle states."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    REVISED = "revised"
    ARCHIVED = "archived"


class RuleStatus(str, Enum):
    """Auto-assignment rule lifecycle states."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    ARCHIVED = "archived"


class DocumentType(str, Enum):
    """Kinds of transactional documents that carry analytical lines."""

    PURCHASE_ORDER = "purchase_order"
    VENDOR_BILL = "vendor_bill"
    SALES_ORDER = "sales_order"
    CUSTOMER_INVOICE = "customer_invoice"

    @property
    def is_cost_side(self) -> bool:
        return self in (DocumentType.PURCHASE_ORDER, DocumentType.VENDOR_BILL)

    @property
    def is_revenue_side(self) -> bool:
        return self in (DocumentType.SALES_ORDER, DocumentType.CUSTOMER_INVOICE)

    @property
    def is_order(self) -> bool:
        return self in (DocumentType.PURCHASE_ORDER, DocumentType.SALES_ORDER)

    @classmethod
    def for_budget_type(cls, budget_type: BudgetType) -> tuple[DocumentType, ...]:
        """Document types whose finalized lines count toward a budget type."""
        if budget_type == BudgetType.INCOME:
            return (cls.SALES_ORDER, cls.CUSTOMER_INVOICE)
        return (cls.VENDOR_BILL, cls.PURCHASE_ORDER)


class DocumentStatus(str, Enum):
    """Transaction document states."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    POSTED = "posted"
    CANCELLED = "cancelled"

    @property
    def is_finalized(self) -> bool:
        return self in (DocumentStatus.CONFIRMED, DocumentStatus.POSTED)

    @classmethod
    def finalized(cls) -> tuple[DocumentStatus, ...]:
        return (cls.CONFIRMED, cls.POSTED)


class AssignmentSource(str, Enum):
    """Where an assignment request originated (logging only)."""

    UNKNOWN = "unknown"
    PURCHASE_ORDER = "purchase_order"
    VENDOR_BILL = "vendor_bill"
    SALES_ORDER = "sales_order"
    CUSTOMER_INVOICE = "customer_invoice"

    @classmethod
    def from_document_type(cls, document_type: DocumentType) -> AssignmentSource:
        return cls(document_type.value)


# =============================================================================
# Accounts and rules
# =============================================================================


@dataclass(frozen=True)
class AccountInfo:
    """Analytical account (cost center) as seen by callers."""

    id: UUID
    name: str
    description: str | None
    is_archived: bool
    created_at: datetime | None = None


@dataclass(frozen=True)
class RuleDraft:
    """Matchers and target for creating or updating an auto-assignment rule."""

    account_id: UUID
    partner_id: UUID | None = None
    partner_tag_id: UUID | None = None
    product_id: UUID | None = None
    product_category_id: UUID | None = None


@dataclass(frozen=True)
class RuleInfo:
    """Auto-assignment rule snapshot.

    Any matcher left as None never contributes to the score.
    """

    id: UUID
    rule_number: int
    account_id: UUID
    status: RuleStatus
    is_archived: bool = False
    partner_id: UUID | None = None
    partner_tag_id: UUID | None = None
    product_id: UUID | None = None
    product_category_id: UUID | None = None


@dataclass(frozen=True)
class AssignmentRequest:
    """Attributes of a transaction line used to pick an analytical account."""

    partner_id: UUID | None = None
    partner_tag_ids: frozenset[UUID] = field(default_factory=frozenset)
    product_id: UUID | None = None
    product_category_id: UUID | None = None
    source: AssignmentSource = AssignmentSource.UNKNOWN


@dataclass(frozen=True)
class AssignmentResult:
    """The winning rule for an assignment request."""

    account_id: UUID
    rule_id: UUID
    score: int
    source: AssignmentSource


# =============================================================================
# Budgets
# =============================================================================


@dataclass(frozen=True)
class BudgetDraft:
    """Caller input for creating or editing a budget."""

    name: str
    account_id: UUID
    budget_type: BudgetType
    period_start: date
    period_end: date
    limit_amount: Decimal


@dataclass(frozen=True)
class RevisionDraft:
    """New period and limit for a budget revision.

    Name, account and type are always copied from the revised budget.
    """

    period_start: date
    period_end: date
    limit_amount: Decimal


@dataclass(frozen=True)
class BudgetInfo:
    """Budget snapshot."""

    id: UUID
    name: str
    account_id: UUID
    budget_type: BudgetType
    period_start: date
    period_end: date
    limit_amount: Decimal
    status: BudgetStatus
    is_read_only: bool
    original_budget_id: UUID | None
    version: int
    created_at: datetime | None = None

    @property
    def root_id(self) -> UUID:
        """Id of the first budget in this revision chain."""
        return self.original_budget_id or self.id

    def covers(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end


# =============================================================================
# Transaction documents
# =============================================================================


@dataclass(frozen=True)
class DraftLine:
    """A transaction line as submitted by a document-owning caller."""

    amount: Decimal
    account_id: UUID | None = None
    product_id: UUID | None = None
    product_category_id: UUID | None = None

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise TypeError("DraftLine.amount must be Decimal, not float")


@dataclass(frozen=True)
class DocumentDraft:
    """A purchase order, vendor bill, sales order or customer invoice draft.

    ``document_id`` is None for a document that has never been saved.  When
    set, the saved document with that id is replaced and its own existing
    lines are excluded from projected-spend calculations.
    """

    document_type: DocumentType
    document_date: date
    lines: tuple[DraftLine, ...] = ()
    reference: str = ""
    status: DocumentStatus = DocumentStatus.DRAFT
    counterparty: str | None = None
    partner_id: UUID | None = None
    partner_tag_ids: frozenset[UUID] = field(default_factory=frozenset)
    document_id: UUID | None = None
    source_document_id: UUID | None = None

    def assignment_request(self, line: DraftLine) -> AssignmentRequest:
        """Build the rule-engine request for one of this draft's lines."""
        return AssignmentRequest(
            partner_id=self.partner_id,
            partner_tag_ids=self.partner_tag_ids,
            product_id=line.product_id,
            product_category_id=line.product_category_id,
            source=AssignmentSource.from_document_type(self.document_type),
        )


@dataclass(frozen=True)
class LineView:
    """Persisted transaction line."""

    line_index: int
    amount: Decimal
    account_id: UUID | None
    product_id: UUID | None = None
    product_category_id: UUID | None = None
    assigned_rule_id: UUID | None = None


@dataclass(frozen=True)
class DocumentView:
    """Persisted transaction document with its lines in index order."""

    id: UUID
    document_type: DocumentType
    reference: str
    document_date: date
    status: DocumentStatus
    counterparty: str | None
    source_document_id: UUID | None
    lines: tuple[LineView, ...] = ()
    version: int = 1


@dataclass(frozen=True)
class SpendFact:
    """One finalized line, flattened with its document header.

    The unit of input for the performance, projection and dashboard engines.
    """

    document_id: UUID
    document_type: DocumentType
    reference: str
    document_date: date
    counterparty: str | None
    account_id: UUID
    amount: Decimal
    source_document_id: UUID | None = None
