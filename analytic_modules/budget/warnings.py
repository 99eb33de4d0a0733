"""
BudgetWarningEvaluator -- projected-overrun check for cost documents.

Responsibility
--------------
Before a purchase order or vendor bill is saved, work out whether its
lines would push any covering expense budget past its limit.

Invariants enforced
-------------------
* Only purchase orders and vendor bills are evaluated.
* Existing spend is re-read on every call; nothing is cached.
* The draft's own saved lines never count as existing spend.
* Warning only when projected > limit.

Failure modes
-------------
* UnsupportedDocumentTypeError for sales orders and customer invoices.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from analytic_engines.projection import BudgetWarning, project_overruns
from analytic_kernel.db.types import ZERO
from analytic_kernel.domain.dtos import BudgetType, DocumentDraft, DocumentType
from analytic_kernel.exceptions import UnsupportedDocumentTypeError
from analytic_kernel.logging_config import get_logger
from analytic_kernel.selectors.budget_selector import BudgetSelector
from analytic_kernel.selectors.spend_selector import SpendSelector
from analytic_modules.budget.config import BudgetConfig

logger = get_logger("modules.budget.warnings")

_COST_TYPES = (DocumentType.PURCHASE_ORDER, DocumentType.VENDOR_BILL)


class BudgetWarningEvaluator:
    """Evaluates projected budget overruns for cost-side drafts."""

    def __init__(self, session: Session, config: BudgetConfig | None = None):
        self._config = config or BudgetConfig.with_defaults()
        self._budgets = BudgetSelector(session)
        self._spend = SpendSelector(session)

    def evaluate(self, draft: DocumentDraft) -> dict[int, BudgetWarning]:
        """
        Map line index -> BudgetWarning for lines whose account would overrun.

        Raises:
            UnsupportedDocumentTypeError: draft is not a PO or vendor bill.
        """
        document_type = DocumentType(draft.document_type)
        if not document_type.is_cost_side:
            raise UnsupportedDocumentTypeError(
                document_type.value, "budget warning evaluation"
            )

        lines_by_account: dict[UUID, list[tuple[int, Decimal]]] = {}
        for index, line in enumerate(draft.lines):
            if line.account_id is None:
                continue
            lines_by_account.setdefault(line.account_id, []).append(
                (index, Decimal(line.amount))
            )
        if not lines_by_account:
            return {}

        budgets = self._budgets.covering(
            lines_by_account.keys(),
            draft.document_date,
            self._config.warning_statuses,
            budget_type=BudgetType.EXPENSE,
        )
        if not budgets:
            return {}

        exclude = None
        if draft.document_id is not None:
            exclude = (document_type, draft.document_id)
        excluded_orders = frozenset()
        if self._config.dedupe_source_orders:
            excluded_orders = self._spend.referenced_orders()
            # The draft itself replaces the order it was created from
            if draft.source_document_id is not None:
                excluded_orders |= {draft.source_document_id}

        existing: dict[UUID, Decimal] = {}
        for budget in budgets:
            facts = self._spend.finalized_facts(
                _COST_TYPES,
                account_ids=[budget.account_id],
                start=budget.period_start,
                end=budget.period_end,
                exclude_document=exclude,
            )
            existing[budget.id] = sum(
                (f.amount for f in facts if f.document_id not in excluded_orders),
                ZERO,
            )

        warnings = project_overruns(
            lines_by_account=lines_by_account,
            budgets=budgets,
            existing_spend=existing,
        )

        if warnings:
            breached = {w.budget_id: w for w in warnings.values()}
            logger.warning(
                "budget_warnings_raised",
                extra={
                    "document_type": document_type.value,
                    "document_id": str(draft.document_id) if draft.document_id else None,
                    "line_count": len(warnings),
                    "budget_ids": sorted(str(b) for b in breached),
                },
            )
        return warnings
