"""
Tests for BudgetWarningEvaluator.

Validates:
- Existing spend + draft lines over the limit warns, citing both amounts
- Landing exactly on the limit is fine
- Only purchase orders and vendor bills are evaluated
- The draft's own saved lines are not counted twice
- Only budgets in warning_statuses are checked
- With dedupe_source_orders a draft bill does not stack on its own order
"""

from datetime import date
from decimal import Decimal

import pytest

from analytic_kernel.domain.dtos import (
    BudgetStatus,
    BudgetType,
    DocumentDraft,
    DocumentType,
    DraftLine,
)
from analytic_kernel.exceptions import UnsupportedDocumentTypeError
from analytic_modules.budget.config import BudgetConfig
from analytic_modules.budget.warnings import BudgetWarningEvaluator


def _po(*lines, day=date(2025, 1, 22), document_id=None):
    return DocumentDraft(
        document_type=DocumentType.PURCHASE_ORDER,
        document_date=day,
        lines=tuple(DraftLine(amount=Decimal(a), account_id=acc) for acc, a in lines),
        document_id=document_id,
    )


@pytest.fixture
def spent_700(make_account, make_budget, make_document):
    """An account with a 1000.00 January budget and 700.00 already spent."""
    account = make_account()
    budget = make_budget(account.id, limit="1000.00")
    make_document(DocumentType.VENDOR_BILL, date(2025, 1, 10), [(account.id, "500.00")])
    make_document(DocumentType.PURCHASE_ORDER, date(2025, 1, 20), [(account.id, "200.00")])
    return account, budget


class TestEvaluate:

    def test_overrun_warns(self, session, spent_700):
        account, budget = spent_700
        warnings = BudgetWarningEvaluator(session).evaluate(_po((account.id, "400.00")))

        assert set(warnings) == {0}
        warning = warnings[0]
        assert warning.budget_id == budget.id
        assert warning.limit_amount == Decimal("1000.00")
        assert warning.projected_amount == Decimal("1100.00")
        assert "1000.00" in warning.message
        assert "1100.00" in warning.message

    def test_exactly_at_limit(self, session, spent_700):
        account, _ = spent_700
        evaluator = BudgetWarningEvaluator(session)
        assert evaluator.evaluate(_po((account.id, "300.00"))) == {}
        assert set(evaluator.evaluate(_po((account.id, "300.01")))) == {0}

    def test_outside_period_not_checked(self, session, spent_700):
        account, _ = spent_700
        draft = _po((account.id, "5000"), day=date(2025, 2, 1))
        assert BudgetWarningEvaluator(session).evaluate(draft) == {}

    def test_unassigned_and_other_account_lines(self, session, spent_700, make_account):
        account, _ = spent_700
        other = make_account()
        draft = DocumentDraft(
            document_type=DocumentType.VENDOR_BILL,
            document_date=date(2025, 1, 22),
            lines=(
                DraftLine(amount=Decimal("9999")),
                DraftLine(amount=Decimal("9999"), account_id=other.id),
                DraftLine(amount=Decimal("200"), account_id=account.id),
                DraftLine(amount=Decimal("200"), account_id=account.id),
            ),
        )
        assert set(BudgetWarningEvaluator(session).evaluate(draft)) == {2, 3}

    @pytest.mark.parametrize(
        "document_type", [DocumentType.SALES_ORDER, DocumentType.CUSTOMER_INVOICE]
    )
    def test_revenue_documents_unsupported(self, session, document_type):
        draft = DocumentDraft(document_type=document_type, document_date=date(2025, 1, 5))
        with pytest.raises(UnsupportedDocumentTypeError) as exc_info:
            BudgetWarningEvaluator(session).evaluate(draft)
        assert exc_info.value.document_type == document_type.value

    def test_own_saved_lines_not_counted(self, session, spent_700, make_document):
        account, _ = spent_700
        saved = make_document(
            DocumentType.PURCHASE_ORDER, date(2025, 1, 21), [(account.id, "250")]
        )
        evaluator = BudgetWarningEvaluator(session)

        # Re-saving the 250.00 order as 260.00: 700 + 260 stays under 1000
        assert evaluator.evaluate(_po((account.id, "260"), document_id=saved.id)) == {}
        # A new order stacks on top of it: 950 + 260
        assert set(evaluator.evaluate(_po((account.id, "260")))) == {0}

    def test_tightest_budget_reported(self, session, spent_700, make_budget):
        account, _ = spent_700
        tight = make_budget(account.id, limit="750.00", name="Late January",
                            start=date(2025, 1, 15), end=date(2025, 1, 31))

        warnings = BudgetWarningEvaluator(session).evaluate(_po((account.id, "600")))
        assert warnings[0].budget_id == tight.id
        assert warnings[0].limit_amount == Decimal("750.00")

    def test_income_budgets_ignored(self, session, make_account, make_budget):
        account = make_account()
        make_budget(account.id, limit="10", budget_type=BudgetType.INCOME)
        assert BudgetWarningEvaluator(session).evaluate(_po((account.id, "500"))) == {}


class TestWarningStatuses:

    def test_draft_budgets_skipped_by_default(self, session, make_account, make_budget):
        account = make_account()
        make_budget(account.id, limit="10", confirm=False)
        assert BudgetWarningEvaluator(session).evaluate(_po((account.id, "500"))) == {}

    def test_configured_statuses(self, session, make_account, make_budget):
        account = make_account()
        draft_budget = make_budget(account.id, limit="10", confirm=False)
        config = BudgetConfig(warning_statuses=(BudgetStatus.DRAFT, BudgetStatus.CONFIRMED))

        warnings = BudgetWarningEvaluator(session, config).evaluate(_po((account.id, "500")))
        assert warnings[0].budget_id == draft_budget.id


class TestSourceOrderDedupe:

    @pytest.fixture
    def ordered_700(self, make_account, make_budget, make_document):
        """A 1000.00 January budget and a confirmed 700.00 order against it."""
        account = make_account()
        make_budget(account.id, limit="1000.00")
        order = make_document(
            DocumentType.PURCHASE_ORDER, date(2025, 1, 5), [(account.id, "700.00")]
        )
        return account, order

    @staticmethod
    def _bill_from(order, account, amount):
        return DocumentDraft(
            document_type=DocumentType.VENDOR_BILL,
            document_date=date(2025, 1, 12),
            lines=(DraftLine(amount=Decimal(amount), account_id=account.id),),
            source_document_id=order.id,
        )

    def test_draft_bill_replaces_its_order(self, session, ordered_700):
        account, order = ordered_700
        evaluator = BudgetWarningEvaluator(session, BudgetConfig(dedupe_source_orders=True))

        assert evaluator.evaluate(self._bill_from(order, account, "700.00")) == {}
        warnings = evaluator.evaluate(self._bill_from(order, account, "1000.01"))
        assert warnings[0].projected_amount == Decimal("1000.01")

    def test_order_counted_without_dedupe(self, session, ordered_700):
        account, order = ordered_700
        warnings = BudgetWarningEvaluator(session).evaluate(
            self._bill_from(order, account, "700.00")
        )
        assert warnings[0].projected_amount == Decimal("1400.00")


class TestWarningLogging:

    def test_logged_once_per_evaluation(self, session, spent_700, captured_logs):
        account, budget = spent_700
        BudgetWarningEvaluator(session).evaluate(
            _po((account.id, "400"), (account.id, "1"))
        )
        records = [r for r in captured_logs() if r["message"] == "budget_warnings_raised"]
        assert len(records) == 1
        assert records[0]["level"] == "WARNING"
        assert records[0]["budget_ids"] == [str(budget.id)]
        assert records[0]["line_count"] == 2
