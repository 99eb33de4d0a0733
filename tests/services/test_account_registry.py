"""
Tests for AccountRegistry.

Validates:
- Names are trimmed, required, and unique ignoring case
- Archive / restore are idempotent
- Listing filters archived accounts, searches by name, newest first
- require_assignable rejects archived and unknown accounts
"""

from uuid import uuid4

import pytest

from analytic_kernel.exceptions import (
    AccountNotFoundError,
    ArchivedAccountError,
    DuplicateAccountNameError,
    EmptyNameError,
    ValidationError,
)


class TestCreateAccount:

    def test_name_is_trimmed(self, account_registry, test_actor_id):
        account = account_registry.create_account("  Marketing  ", test_actor_id)
        assert account.name == "Marketing"
        assert account.is_archived is False

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_rejected(self, account_registry, test_actor_id, name):
        with pytest.raises(EmptyNameError) as exc_info:
            account_registry.create_account(name, test_actor_id)
        assert isinstance(exc_info.value, ValidationError)

    def test_duplicate_name_rejected_ignoring_case(self, make_account, account_registry, test_actor_id):
        make_account("Production")
        with pytest.raises(DuplicateAccountNameError) as exc_info:
            account_registry.create_account("PRODUCTION ", test_actor_id)
        assert exc_info.value.name == "PRODUCTION"


class TestUpdateAccount:

    def test_rename_and_describe(self, make_account, account_registry, test_actor_id):
        account = make_account("Sales")
        updated = account_registry.update_account(
            account.id, test_actor_id, name="Sales EU", description="European sales"
        )
        assert updated.name == "Sales EU"
        assert updated.description == "European sales"

    def test_keeping_own_name_is_allowed(self, make_account, account_registry, test_actor_id):
        account = make_account("Sales")
        updated = account_registry.update_account(account.id, test_actor_id, name="sales")
        assert updated.name == "sales"

    def test_rename_to_other_accounts_name_rejected(self, make_account, account_registry, test_actor_id):
        make_account("Sales")
        other = make_account("Support")
        with pytest.raises(DuplicateAccountNameError):
            account_registry.update_account(other.id, test_actor_id, name="SALES")

    def test_unknown_account(self, account_registry, test_actor_id):
        with pytest.raises(AccountNotFoundError):
            account_registry.update_account(uuid4(), test_actor_id, name="x")


class TestArchiveRestore:

    def test_archive_is_idempotent(self, make_account, account_registry, test_actor_id):
        account = make_account()
        first = account_registry.archive_account(account.id, test_actor_id)
        second = account_registry.archive_account(account.id, test_actor_id)
        assert first.is_archived and second.is_archived

    def test_restore_is_idempotent(self, make_account, account_registry, test_actor_id):
        account = make_account()
        account_registry.archive_account(account.id, test_actor_id)
        assert account_registry.restore_account(account.id, test_actor_id).is_archived is False
        assert account_registry.restore_account(account.id, test_actor_id).is_archived is False

    def test_require_assignable(self, make_account, account_registry, test_actor_id):
        account = make_account()
        assert account_registry.require_assignable(account.id).id == account.id

        account_registry.archive_account(account.id, test_actor_id)
        with pytest.raises(ArchivedAccountError) as exc_info:
            account_registry.require_assignable(account.id)
        assert exc_info.value.account_id == str(account.id)

        with pytest.raises(AccountNotFoundError):
            account_registry.require_assignable(uuid4())


class TestListAccounts:

    def test_newest_first_and_archived_hidden(self, make_account, account_registry, test_actor_id):
        first = make_account("Alpha")
        second = make_account("Beta")
        third = make_account("Gamma")
        account_registry.archive_account(second.id, test_actor_id)

        names = [a.name for a in account_registry.list_accounts()]
        assert names == [third.name, first.name]

        all_names = [a.name for a in account_registry.list_accounts(include_archived=True)]
        assert all_names == ["Gamma", "Beta", "Alpha"]

    def test_search_is_case_insensitive_substring(self, make_account, account_registry):
        make_account("Factory Floor")
        make_account("Head Office")
        make_account("Floor Repairs")

        found = {a.name for a in account_registry.list_accounts(search="FLOOR")}
        assert found == {"Factory Floor", "Floor Repairs"}

    def test_get_account(self, make_account, account_registry):
        account = make_account("Logistics", description="Trucks")
        fetched = account_registry.get_account(account.id)
        assert fetched.name == "Logistics"
        assert fetched.description == "Trucks"
