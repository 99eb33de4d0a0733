"""
Pytest fixtures for the analytic budget test suite.

Provides:
- A fresh database and schema per test
- Deterministic clock and test actor
- Kernel services, the budget facade, and factories for accounts, rules,
  budgets and documents
- Captured structured logs

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.  Defaults to an
  in-memory SQLite database.
"""

import json
import logging
import os
from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from analytic_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    is_sqlite,
    reset_engine,
)
from analytic_kernel.domain.clock import DeterministicClock
from analytic_kernel.domain.dtos import (
    AccountInfo,
    BudgetDraft,
    BudgetInfo,
    BudgetType,
    DocumentDraft,
    DocumentStatus,
    DocumentType,
    DocumentView,
    DraftLine,
    RuleDraft,
    RuleInfo,
)
from analytic_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from analytic_kernel.services.account_registry import AccountRegistry
from analytic_kernel.services.budget_ledger import BudgetLedger
from analytic_kernel.services.document_service import DocumentService
from analytic_kernel.services.rule_engine import AutoAssignmentRuleEngine
from analytic_kernel.services.rule_service import RuleService
from analytic_modules.budget.config import BudgetConfig
from analytic_modules.budget.service import AnalyticalBudgetService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_DATABASE_URL = "sqlite://"

JAN_START = date(2025, 1, 1)
JAN_END = date(2025, 1, 31)


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture analytic_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, budget_service):
            budget_service.confirm_budget(...)
            logs = captured_logs()
            assert any(r["message"] == "budget_confirmed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("analytic_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Engine with a freshly created schema, torn down after the test."""
    eng = init_engine_from_url(get_database_url())
    if not is_sqlite():
        drop_tables()
    create_tables()
    yield eng
    if not is_sqlite():
        drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine):
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2025, 1, 10, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


@pytest.fixture
def budget_config() -> BudgetConfig:
    return BudgetConfig.with_defaults()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def account_registry(session, deterministic_clock) -> AccountRegistry:
    return AccountRegistry(session, deterministic_clock)


@pytest.fixture
def rule_service(session, deterministic_clock, account_registry) -> RuleService:
    return RuleService(session, deterministic_clock, accounts=account_registry)


@pytest.fixture
def rule_engine(session) -> AutoAssignmentRuleEngine:
    return AutoAssignmentRuleEngine(session)


@pytest.fixture
def budget_ledger(session, deterministic_clock, account_registry) -> BudgetLedger:
    return BudgetLedger(session, deterministic_clock, accounts=account_registry)


@pytest.fixture
def document_service(session, deterministic_clock) -> DocumentService:
    return DocumentService(session, deterministic_clock)


@pytest.fixture
def budget_service(session, budget_config, deterministic_clock) -> AnalyticalBudgetService:
    return AnalyticalBudgetService(session, budget_config, deterministic_clock)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_account(account_registry, deterministic_clock, test_actor_id) -> Callable[..., AccountInfo]:
    """Create an analytical account; each call is one second later."""
    counter = {"n": 0}

    def _make(name: str | None = None, description: str | None = None) -> AccountInfo:
        counter["n"] += 1
        deterministic_clock.advance(1)
        return account_registry.create_account(
            name or f"Cost Center {counter['n']}",
            test_actor_id,
            description=description,
        )

    return _make


@pytest.fixture
def make_rule(rule_service, test_actor_id) -> Callable[..., RuleInfo]:
    """Create (and by default confirm) an auto-assignment rule."""

    def _make(account_id: UUID, confirm: bool = True, **matchers) -> RuleInfo:
        rule = rule_service.create_rule(
            RuleDraft(account_id=account_id, **matchers), test_actor_id
        )
        if confirm:
            rule = rule_service.confirm_rule(rule.id, test_actor_id)
        return rule

    return _make


@pytest.fixture
def make_budget(budget_ledger, deterministic_clock, test_actor_id) -> Callable[..., BudgetInfo]:
    """Create (and by default confirm) a January 2025 expense budget."""

    def _make(
        account_id: UUID,
        limit: str | Decimal = "1000.00",
        budget_type: BudgetType = BudgetType.EXPENSE,
        start: date = JAN_START,
        end: date = JAN_END,
        name: str = "January budget",
        confirm: bool = True,
    ) -> BudgetInfo:
        deterministic_clock.advance(1)
        budget = budget_ledger.create_budget(
            BudgetDraft(
                name=name,
                account_id=account_id,
                budget_type=budget_type,
                period_start=start,
                period_end=end,
                limit_amount=Decimal(limit),
            ),
            test_actor_id,
        )
        if confirm:
            budget = budget_ledger.confirm_budget(budget.id, test_actor_id)
        return budget

    return _make


@pytest.fixture
def make_document(document_service, test_actor_id) -> Callable[..., DocumentView]:
    """Record a document whose lines are (account_id, amount) pairs."""
    counter = {"n": 0}

    def _make(
        document_type: DocumentType,
        document_date: date,
        lines: list[tuple[UUID | None, str]],
        status: DocumentStatus = DocumentStatus.CONFIRMED,
        reference: str | None = None,
        counterparty: str | None = None,
        source_document_id: UUID | None = None,
    ) -> DocumentView:
        counter["n"] += 1
        draft = DocumentDraft(
            document_type=document_type,
            document_date=document_date,
            lines=tuple(
                DraftLine(amount=Decimal(amount), account_id=account_id)
                for account_id, amount in lines
            ),
            reference=reference or f"DOC-{counter['n']:04d}",
            status=status,
            counterparty=counterparty,
            source_document_id=source_document_id,
        )
        return document_service.record_document(draft, test_actor_id)

    return _make
