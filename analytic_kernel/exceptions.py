"""
Typed Exception Hierarchy for the Analytic Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the budget engine (web handlers, batch jobs, tests) must be able to
react to a failure without parsing its message:

    try:
        service.confirm_budget(budget_id, actor_id)
    except InvalidStateTransitionError as e:
        api_response(code=e.code, status=e.from_state, action=e.action)

Every exception carries:
  1. A TYPED class (catch by type, not message)
  2. A ``code`` class attribute (machine-readable, API-safe)
  3. Structured attributes describing the failure

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AnalyticKernelError (base)
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- BudgetNotFoundError
    |   +-- RuleNotFoundError
    |   +-- DocumentNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidBudgetPeriodError
    |   +-- NegativeLimitError
    |   +-- EmptyNameError
    |   +-- DuplicateAccountNameError
    |   +-- ArchivedAccountError
    |   +-- InvalidAmountError
    |   +-- ReadOnlyBudgetError
    |   +-- UnsupportedDocumentTypeError
    |   +-- BudgetLimitExceededError
    |
    +-- InvalidStateTransitionError
    |
    +-- ConcurrencyError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | ACCOUNT_NOT_FOUND           | Analytical account id doesn't exist
                | BUDGET_NOT_FOUND            | Budget id doesn't exist
                | RULE_NOT_FOUND              | Auto-assignment rule id doesn't exist
                | DOCUMENT_NOT_FOUND          | Transaction document id doesn't exist
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_BUDGET_PERIOD       | period_end < period_start
                | NEGATIVE_LIMIT              | limit_amount < 0
                | EMPTY_NAME                  | Blank account or budget name
                | DUPLICATE_ACCOUNT_NAME      | Account name already taken
                | ARCHIVED_ACCOUNT            | New assignment to an archived account
                | INVALID_AMOUNT              | Negative line amount
                | BUDGET_READ_ONLY            | Editing a non-draft / read-only budget
                | UNSUPPORTED_DOCUMENT_TYPE   | Warnings requested for a revenue document
                | BUDGET_LIMIT_EXCEEDED       | Save blocked by allow_over_budget=False
----------------|-----------------------------|-----------------------------------------
Lifecycle       | INVALID_STATE_TRANSITION    | Action not allowed from current status
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Concurrent modification detected

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ConcurrencyError is the only category a caller may retry, and only after
   re-reading the entity.  The kernel never retries on its own.

2. NotFoundError and ValidationError are user-facing ("fix the input").

3. InvalidStateTransitionError means the UI offered an action that the
   current status does not allow; refresh and re-render.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal


class AnalyticKernelError(Exception):
    """
    Base exception for all analytic kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "ANALYTIC_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(AnalyticKernelError):
    """Base exception for missing referenced entities."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Analytical account was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Analytical account not found: {account_id}")


class BudgetNotFoundError(NotFoundError):
    """Budget was not found."""

    code: str = "BUDGET_NOT_FOUND"

    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Budget not found: {budget_id}")


class RuleNotFoundError(NotFoundError):
    """Auto-assignment rule was not found."""

    code: str = "RULE_NOT_FOUND"

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Auto-assignment rule not found: {rule_id}")


class DocumentNotFoundError(NotFoundError):
    """Transaction document was not found."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Transaction document not found: {document_id}")


# Validation exceptions


class ValidationError(AnalyticKernelError):
    """Base exception for rejected input."""

    code: str = "VALIDATION_ERROR"


class InvalidBudgetPeriodError(ValidationError):
    """Budget period ends before it starts."""

    code: str = "INVALID_BUDGET_PERIOD"

    def __init__(self, period_start: date, period_end: date):
        self.period_start = period_start
        self.period_end = period_end
        super().__init__(
            f"Budget period end {period_end} is before start {period_start}"
        )


class NegativeLimitError(ValidationError):
    """Budget limit amount is negative."""

    code: str = "NEGATIVE_LIMIT"

    def __init__(self, limit_amount: Decimal):
        self.limit_amount = limit_amount
        super().__init__(f"Budget limit cannot be negative: {limit_amount}")


class EmptyNameError(ValidationError):
    """A required name field is blank."""

    code: str = "EMPTY_NAME"

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"{entity_type} name is required")


class DuplicateAccountNameError(ValidationError):
    """Analytical account name is already in use."""

    code: str = "DUPLICATE_ACCOUNT_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Analytical account name already exists: {name!r}")


class ArchivedAccountError(ValidationError):
    """Archived accounts cannot receive new budgets, rules or assignments."""

    code: str = "ARCHIVED_ACCOUNT"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            f"Analytical account {account_id} is archived and cannot be assigned"
        )


class InvalidAmountError(ValidationError):
    """A monetary amount is outside its allowed range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: Decimal):
        self.field = field
        self.amount = amount
        super().__init__(f"Invalid amount for {field}: {amount}")


class ReadOnlyBudgetError(ValidationError):
    """Budget is read-only (confirmed, revised or archived)."""

    code: str = "BUDGET_READ_ONLY"

    def __init__(self, budget_id: str, status: str):
        self.budget_id = budget_id
        self.status = status
        super().__init__(
            f"Budget {budget_id} cannot be edited: status is {status}"
        )


class UnsupportedDocumentTypeError(ValidationError):
    """Operation does not apply to this document type."""

    code: str = "UNSUPPORTED_DOCUMENT_TYPE"

    def __init__(self, document_type: str, operation: str):
        self.document_type = document_type
        self.operation = operation
        super().__init__(
            f"{operation} is not supported for document type {document_type}"
        )


class BudgetLimitExceededError(ValidationError):
    """Document save rejected because it would overrun a budget."""

    code: str = "BUDGET_LIMIT_EXCEEDED"

    def __init__(self, budget_id: str, limit_amount: Decimal, projected_amount: Decimal):
        self.budget_id = budget_id
        self.limit_amount = limit_amount
        self.projected_amount = projected_amount
        super().__init__(
            f"Budget {budget_id} limit {limit_amount} would be exceeded: "
            f"projected {projected_amount}"
        )


# Lifecycle exceptions


class InvalidStateTransitionError(AnalyticKernelError):
    """Requested lifecycle action is not allowed from the current status."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, entity_type: str, entity_id: str, from_state: str, action: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id}: status is {from_state}"
        )


# Concurrency exceptions


class ConcurrencyError(AnalyticKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
