"""
Module: analytic_kernel.selectors.spend_selector
Responsibility: Read finalized transaction lines as SpendFact DTOs for the
    performance, projection and dashboard engines.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Only lines of finalized documents (confirmed or posted) are returned.
    - Only lines carrying an analytical account are returned.
    - Always queries live data; nothing is cached.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import select

from analytic_kernel.domain.dtos import DocumentStatus, DocumentType, SpendFact
from analytic_kernel.models.document import TransactionDocument, TransactionLine
from analytic_kernel.selectors.base import BaseSelector

_FINALIZED = [s.value for s in DocumentStatus.finalized()]


class SpendSelector(BaseSelector[TransactionLine]):
    """Finalized-line queries."""

    def finalized_facts(
        self,
        document_types: Iterable[DocumentType],
        account_ids: Iterable[UUID] | None = None,
        start: date | None = None,
        end: date | None = None,
        exclude_document: tuple[DocumentType, UUID] | None = None,
    ) -> list[SpendFact]:
        """
        Finalized lines of the given document types.

        Args:
            document_types: Types to include.
            account_ids: Restrict to these accounts (None = all accounts).
            start, end: Inclusive document-date bounds (None = open).
            exclude_document: (type, id) of a document whose own lines must
                not be counted, e.g. the document being re-saved.
        """
        type_values = [DocumentType(t).value for t in document_types]
        if not type_values:
            return []

        stmt = (
            select(
                TransactionDocument.id,
                TransactionDocument.document_type,
                TransactionDocument.reference,
                TransactionDocument.document_date,
                TransactionDocument.counterparty,
                TransactionDocument.source_document_id,
                TransactionLine.account_id,
                TransactionLine.amount,
            )
            .join(TransactionLine, TransactionLine.document_id == TransactionDocument.id)
            .where(
                TransactionDocument.status.in_(_FINALIZED),
                TransactionDocument.document_type.in_(type_values),
                TransactionLine.account_id.is_not(None),
            )
        )
        if account_ids is not None:
            ids = list(account_ids)
            if not ids:
                return []
            stmt = stmt.where(TransactionLine.account_id.in_(ids))
        if start is not None:
            stmt = stmt.where(TransactionDocument.document_date >= start)
        if end is not None:
            stmt = stmt.where(TransactionDocument.document_date <= end)
        if exclude_document is not None:
            ex_type, ex_id = exclude_document
            stmt = stmt.where(
                ~(
                    (TransactionDocument.document_type == DocumentType(ex_type).value)
                    & (TransactionDocument.id == ex_id)
                )
            )
        stmt = stmt.order_by(
            TransactionDocument.document_date,
            TransactionDocument.reference,
            TransactionLine.line_index,
        )

        return [
            SpendFact(
                document_id=row.id,
                document_type=DocumentType(row.document_type),
                reference=row.reference,
                document_date=row.document_date,
                counterparty=row.counterparty,
                account_id=row.account_id,
                amount=row.amount,
                source_document_id=row.source_document_id,
            )
            for row in self.session.execute(stmt)
        ]

    def referenced_orders(self) -> frozenset[UUID]:
        """Ids of orders named as source by a finalized bill or invoice."""
        stmt = (
            select(TransactionDocument.source_document_id)
            .where(
                TransactionDocument.status.in_(_FINALIZED),
                TransactionDocument.document_type.in_(
                    [DocumentType.VENDOR_BILL.value, DocumentType.CUSTOMER_INVOICE.value]
                ),
                TransactionDocument.source_document_id.is_not(None),
            )
            .distinct()
        )
        return frozenset(self.session.execute(stmt).scalars().all())
