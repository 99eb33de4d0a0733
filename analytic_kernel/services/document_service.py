"""
DocumentService -- the transaction-document read view.

Responsibility:
    Purchase orders, vendor bills, sales orders and customer invoices are
    owned by other systems.  They push each saved version here so the budget
    engine can aggregate spend and revenue.  Lines saved without an
    analytical account are auto-assigned through a resolver (normally the
    AutoAssignmentRuleEngine) and the winning rule is recorded.

Invariants enforced:
    - Line amounts are >= 0.
    - An explicit line account must exist.
    - Re-recording a document replaces all of its lines.
    - Every re-save and status change bumps the document version, so a
      writer holding an older copy fails with OptimisticLockError.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm.attributes import flag_modified

from analytic_kernel.domain.dtos import (
    AssignmentRequest,
    AssignmentResult,
    DocumentDraft,
    DocumentStatus,
    DocumentType,
    DocumentView,
    LineView,
)
from analytic_kernel.exceptions import (
    AccountNotFoundError,
    DocumentNotFoundError,
    InvalidAmountError,
)
from analytic_kernel.logging_config import get_logger
from analytic_kernel.models.account import AnalyticalAccount
from analytic_kernel.models.document import TransactionDocument, TransactionLine
from analytic_kernel.services.base import BaseService

logger = get_logger("services.document_service")

_ENTITY = "transaction_document"


class AccountResolver(Protocol):
    def resolve(self, request: AssignmentRequest) -> AssignmentResult | None: ...


def document_view(document: TransactionDocument) -> DocumentView:
    """Convert ORM TransactionDocument (with lines) to DocumentView DTO."""
    return DocumentView(
        id=document.id,
        document_type=DocumentType(document.document_type),
        reference=document.reference,
        document_date=document.document_date,
        status=DocumentStatus(document.status),
        counterparty=document.counterparty,
        source_document_id=document.source_document_id,
        version=document.version,
        lines=tuple(
            LineView(
                line_index=line.line_index,
                amount=line.amount,
                account_id=line.account_id,
                product_id=line.product_id,
                product_category_id=line.product_category_id,
                assigned_rule_id=line.assigned_rule_id,
            )
            for line in sorted(document.lines, key=lambda l: l.line_index)
        ),
    )


class DocumentService(BaseService[TransactionDocument]):
    """Keeps the transaction-document view in sync. Returns DocumentView DTOs."""

    def _get_by_id(self, document_id: UUID) -> TransactionDocument:
        document = self.session.get(TransactionDocument, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return document

    def _touch(self, document: TransactionDocument, actor_id: UUID) -> None:
        # Forces an UPDATE so the version check runs even when nothing else changed
        document.updated_by_id = actor_id
        document.updated_at = self._clock.now()
        flag_modified(document, "updated_at")

    def record_document(
        self,
        draft: DocumentDraft,
        actor_id: UUID,
        resolver: AccountResolver | None = None,
    ) -> DocumentView:
        """
        Insert a document, or replace the header and lines of an existing one.

        Lines without an account are offered to ``resolver``; a line stays
        unassigned when no rule matches or no resolver is given.

        Raises:
            InvalidAmountError: A line amount is negative.
            AccountNotFoundError: An explicit line account does not exist.
        """
        for index, line in enumerate(draft.lines):
            if Decimal(line.amount) < 0:
                raise InvalidAmountError(f"lines[{index}].amount", line.amount)
            if line.account_id is not None and (
                self.session.get(AnalyticalAccount, line.account_id) is None
            ):
                raise AccountNotFoundError(str(line.account_id))

        now = self._clock.now()
        document = None
        if draft.document_id is not None:
            document = self.session.get(TransactionDocument, draft.document_id)

        if document is None:
            document = TransactionDocument(
                created_by_id=actor_id,
                created_at=now,
                updated_at=now,
            )
            if draft.document_id is not None:
                document.id = draft.document_id
            self.session.add(document)
        else:
            # Old lines go first so line_index can be reused.
            document.lines.clear()
            self._flush(_ENTITY, document.id)
            self._touch(document, actor_id)

        document.document_type = DocumentType(draft.document_type).value
        document.reference = draft.reference or ""
        document.document_date = draft.document_date
        document.status = DocumentStatus(draft.status).value
        document.counterparty = draft.counterparty
        document.source_document_id = draft.source_document_id

        assigned = 0
        for index, line in enumerate(draft.lines):
            account_id = line.account_id
            rule_id = None
            if account_id is None and resolver is not None:
                result = resolver.resolve(draft.assignment_request(line))
                if result is not None:
                    account_id = result.account_id
                    rule_id = result.rule_id
                    assigned += 1
            document.lines.append(
                TransactionLine(
                    line_index=index,
                    amount=Decimal(line.amount),
                    account_id=account_id,
                    product_id=line.product_id,
                    product_category_id=line.product_category_id,
                    assigned_rule_id=rule_id,
                    created_by_id=actor_id,
                    created_at=now,
                    updated_at=now,
                )
            )
        self._flush(_ENTITY, document.id)

        logger.info(
            "transaction_document_recorded",
            extra={
                "document_id": str(document.id),
                "document_type": document.document_type,
                "status": document.status,
                "line_count": len(draft.lines),
                "auto_assigned_lines": assigned,
            },
        )
        return document_view(document)

    def set_status(
        self,
        document_id: UUID,
        status: DocumentStatus,
        actor_id: UUID,
    ) -> DocumentView:
        """Change a document's status (e.g. confirm, post or cancel it)."""
        document = self._get_by_id(document_id)
        document.status = DocumentStatus(status).value
        self._touch(document, actor_id)
        self._flush(_ENTITY, document.id)
        logger.info(
            "transaction_document_status_changed",
            extra={"document_id": str(document.id), "status": document.status},
        )
        return document_view(document)

    def get_document(self, document_id: UUID) -> DocumentView:
        """
        Get document by ID.

        Raises:
            DocumentNotFoundError: If the document doesn't exist.
        """
        return document_view(self._get_by_id(document_id))
