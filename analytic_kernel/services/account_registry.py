"""
AccountRegistry -- analytical account (cost center) management.

Responsibility:
    Create, rename, archive and restore analytical accounts, and answer the
    "may this account receive new assignments?" question for the budget and
    rule services.

Invariants enforced:
    - Names are trimmed, non-empty, and unique ignoring case.
    - Accounts are never deleted.  Archiving only hides an account from new
      budgets, new rules and rule-engine results.

Failure modes:
    - EmptyNameError, DuplicateAccountNameError on bad names.
    - AccountNotFoundError for unknown ids.
    - ArchivedAccountError from require_assignable().
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from analytic_kernel.domain.dtos import AccountInfo
from analytic_kernel.exceptions import (
    AccountNotFoundError,
    ArchivedAccountError,
    DuplicateAccountNameError,
    EmptyNameError,
)
from analytic_kernel.logging_config import get_logger
from analytic_kernel.models.account import AnalyticalAccount
from analytic_kernel.services.base import BaseService

logger = get_logger("services.account_registry")


def account_info(account: AnalyticalAccount) -> AccountInfo:
    """Convert ORM AnalyticalAccount to AccountInfo DTO."""
    return AccountInfo(
        id=account.id,
        name=account.name,
        description=account.description,
        is_archived=account.is_archived,
        created_at=account.created_at,
    )


class AccountRegistry(BaseService[AnalyticalAccount]):
    """
    Service for analytical accounts.

    All public methods return AccountInfo DTOs, not ORM entities.
    """

    def _get_by_id(self, account_id: UUID) -> AnalyticalAccount:
        account = self.session.get(AnalyticalAccount, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _clean_name(self, name: str | None, exclude_id: UUID | None = None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise EmptyNameError("Analytical account")
        stmt = select(AnalyticalAccount.id).where(
            func.lower(AnalyticalAccount.name) == cleaned.lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(AnalyticalAccount.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise DuplicateAccountNameError(cleaned)
        return cleaned

    def create_account(
        self,
        name: str,
        actor_id: UUID,
        description: str | None = None,
    ) -> AccountInfo:
        """
        Create a new analytical account.

        Raises:
            EmptyNameError: Name is blank after trimming.
            DuplicateAccountNameError: Another account has this name.
        """
        cleaned = self._clean_name(name)
        now = self._clock.now()
        account = AnalyticalAccount(
            name=cleaned,
            description=description.strip() if description else None,
            is_archived=False,
            created_by_id=actor_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "analytical_account_created",
            extra={"account_id": str(account.id), "account_name": cleaned},
        )
        return account_info(account)

    def update_account(
        self,
        account_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> AccountInfo:
        """Rename an account or change its description."""
        account = self._get_by_id(account_id)

        if name is not None:
            account.name = self._clean_name(name, exclude_id=account.id)
        if description is not None:
            account.description = description.strip() or None
        account.updated_by_id = actor_id
        self.session.flush()

        return account_info(account)

    def archive_account(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        """Archive an account. Archiving an archived account does nothing."""
        account = self._get_by_id(account_id)
        if not account.is_archived:
            account.is_archived = True
            account.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "analytical_account_archived",
                extra={"account_id": str(account.id)},
            )
        return account_info(account)

    def restore_account(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        """Un-archive an account. Restoring an active account does nothing."""
        account = self._get_by_id(account_id)
        if account.is_archived:
            account.is_archived = False
            account.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "analytical_account_restored",
                extra={"account_id": str(account.id)},
            )
        return account_info(account)

    def get_account(self, account_id: UUID) -> AccountInfo:
        """
        Get account by ID.

        Raises:
            AccountNotFoundError: If the account doesn't exist.
        """
        return account_info(self._get_by_id(account_id))

    def list_accounts(
        self,
        search: str | None = None,
        include_archived: bool = False,
    ) -> list[AccountInfo]:
        """
        List accounts, newest first.

        Args:
            search: Case-insensitive substring to match against the name.
            include_archived: Include archived accounts when True.
        """
        stmt = select(AnalyticalAccount)
        if not include_archived:
            stmt = stmt.where(AnalyticalAccount.is_archived == False)  # noqa: E712
        if search and search.strip():
            stmt = stmt.where(
                func.lower(AnalyticalAccount.name).contains(search.strip().lower())
            )
        stmt = stmt.order_by(
            AnalyticalAccount.created_at.desc(),
            AnalyticalAccount.name,
        )
        return [account_info(a) for a in self.session.execute(stmt).scalars().all()]

    def require_assignable(self, account_id: UUID) -> AccountInfo:
        """
        Check that an account exists and accepts new assignments.

        Raises:
            AccountNotFoundError: Unknown id.
            ArchivedAccountError: The account is archived.
        """
        account = self._get_by_id(account_id)
        if account.is_archived:
            raise ArchivedAccountError(str(account_id))
        return account_info(account)
