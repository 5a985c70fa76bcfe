# tests/test_accounting_commands.py
"""
Tests for chart-of-accounts commands and account rules.
"""

from datetime import date
from decimal import Decimal

import pytest

from accounting.commands import (
    create_account_group,
    create_gl_account,
    create_subsidiary_account,
    delete_account_group,
    delete_gl_account,
    update_account_group,
    update_gl_account,
)
from accounting.models import (
    AccountGroup,
    AccountKind,
    AccountType,
    GeneralLedgerAccount,
    InventoryAccount,
    PayableAccount,
    SubsidiaryType,
)
from accounting.policies import can_post_to_account
from core.exceptions import IllegalStateError, NotFound, ValidationError
from ledger.commands import open_ledger
from ledger.models import Journal, Ledger


@pytest.mark.django_db
class TestAccountGroups:

    def test_formatted_number(self, business):
        group = create_account_group(business.id, AccountType.REVENUE, 5, "Other income")
        assert group.formatted_number == "60.05"

    def test_duplicate_group_rejected(self, business):
        create_account_group(business.id, AccountType.ASSET, 15, "Cash")
        with pytest.raises(ValidationError, match="already exists"):
            create_account_group(business.id, AccountType.ASSET, 15, "Cash again")

    def test_same_number_under_other_type_allowed(self, business):
        create_account_group(business.id, AccountType.ASSET, 10, "Current assets")
        group = create_account_group(business.id, AccountType.LIABILITY, 10, "Current liabilities")
        assert group.formatted_number == "20.10"

    @pytest.mark.parametrize("number", [-1, 100])
    def test_group_number_range(self, business, number):
        with pytest.raises(ValidationError):
            create_account_group(business.id, AccountType.ASSET, number, "Out of range")

    def test_unknown_account_type(self, business):
        with pytest.raises(ValidationError):
            create_account_group(business.id, "INCOME", 1, "Nope")

    def test_unknown_business(self, db):
        with pytest.raises(NotFound):
            create_account_group(424242, AccountType.ASSET, 1, "Nope")


@pytest.mark.django_db
class TestGeneralLedgerAccounts:

    def test_formatted_number_and_posting_flag(self, chart):
        assert chart.cash.formatted_number == "10.15.0100"
        assert chart.cash.is_posting_account
        assert chart.banks.is_controlling

    def test_short_code_unique_across_kinds(self, business, chart):
        # ACME is taken by a receivable subsidiary
        with pytest.raises(ValidationError, match="ACME"):
            create_gl_account(business.id, chart.cash.group_id, 300, "ACME", "Petty cash")

    def test_short_code_required(self, business, chart):
        with pytest.raises(ValidationError, match="required"):
            create_gl_account(business.id, chart.cash.group_id, 300, "  ", "Petty cash")

    def test_duplicate_number_rejected(self, business, chart):
        with pytest.raises(ValidationError, match="10.15.0100"):
            create_gl_account(business.id, chart.cash.group_id, 100, "CASH2", "Duplicate")

    def test_group_of_other_business_not_found(self, second_business, chart):
        with pytest.raises(NotFound):
            create_gl_account(second_business.id, chart.cash.group_id, 300, "X", "Cross business")


@pytest.mark.django_db
class TestSubsidiaryAccounts:

    def test_bank_subsidiary_details(self, chart):
        assert chart.operating_bank.formatted_number == "10.15.0200.01"
        assert chart.operating_bank.display_name == "Operating account (Bank)"
        assert chart.operating_bank.account_type == AccountType.ASSET

    def test_kind_must_match_controlling_account(self, business, chart):
        with pytest.raises(ValidationError, match="controls"):
            create_subsidiary_account(
                business.id, AccountKind.PAYABLE, chart.receivables.id, 2, "VEND", "Vendor",
            )

    def test_posting_account_cannot_have_subsidiaries(self, business, chart):
        with pytest.raises(ValidationError, match="no subsidiaries"):
            create_subsidiary_account(
                business.id, AccountKind.BANK, chart.cash.id, 1, "SAFE", "Safe",
            )

    def test_general_ledger_is_not_a_subsidiary_kind(self, business, chart):
        with pytest.raises(ValidationError):
            create_subsidiary_account(
                business.id, AccountKind.GENERAL_LEDGER, chart.banks.id, 2, "X", "X",
            )

    def test_unknown_detail_field_rejected(self, business, chart):
        with pytest.raises(ValidationError, match="sku"):
            create_subsidiary_account(
                business.id, AccountKind.RECEIVABLE, chart.receivables.id, 2, "GLOBEX", "Globex",
                sku="ABC",
            )

    def test_payable_subsidiary(self, business, chart):
        vendor = create_subsidiary_account(
            business.id, AccountKind.PAYABLE, chart.payables.id, 1, "SUPPLY", "Supply Co",
            counterparty_name="Supply Company Ltd",
        )
        assert isinstance(vendor, PayableAccount)
        assert vendor.display_name == "Supply Co (A/P)"
        assert vendor.account_type == AccountType.LIABILITY

    def test_model_save_refuses_kind_mismatch(self, business, chart):
        account = InventoryAccount(
            business=business,
            controlling_account=chart.banks,
            subsidiary_number=9,
            short_code="WIDGET",
            name="Widgets",
        )
        with pytest.raises(ValidationError):
            account.save()


@pytest.mark.django_db
class TestPostingEligibility:

    def test_controlling_account_cannot_take_postings(self, chart):
        allowed, reason = can_post_to_account(chart.receivables)
        assert not allowed
        assert "controlling" in reason

    def test_inactive_account_cannot_take_postings(self, chart):
        chart.rent.is_active = False
        allowed, reason = can_post_to_account(chart.rent)
        assert not allowed
        assert "inactive" in reason

    def test_subsidiary_takes_postings(self, chart):
        assert can_post_to_account(chart.customer) == (True, "")


@pytest.mark.django_db
class TestAccountGroupMaintenance:

    def test_update_group(self, business):
        group = create_account_group(business.id, AccountType.EXPENSE, 10, "Operating")

        updated = update_account_group(business.id, group.id, name="Operating expenses", is_active=False)

        group.refresh_from_db()
        assert updated.name == group.name == "Operating expenses"
        assert not group.is_active
        assert group.formatted_number == "80.10"

    def test_update_group_of_other_business(self, business, second_business):
        group = create_account_group(business.id, AccountType.EXPENSE, 10, "Operating")
        with pytest.raises(NotFound):
            update_account_group(second_business.id, group.id, name="Stolen")

    def test_delete_empty_group(self, business):
        group = create_account_group(business.id, AccountType.EXPENSE, 20, "Unused")
        delete_account_group(business.id, group.id)
        assert not AccountGroup.objects.filter(pk=group.id).exists()

    def test_group_with_accounts_cannot_be_deleted(self, business, chart):
        with pytest.raises(IllegalStateError, match="1 account"):
            delete_account_group(business.id, chart.rent.group_id)
        assert AccountGroup.objects.filter(pk=chart.rent.group_id).exists()


@pytest.mark.django_db
class TestGeneralLedgerAccountMaintenance:

    def test_rename_and_change_short_code(self, business, chart):
        update_gl_account(business.id, chart.rent.id, short_code="LEASE", name="Office lease")

        chart.rent.refresh_from_db()
        assert chart.rent.short_code == "LEASE"
        assert chart.rent.name == "Office lease"

    def test_keeping_own_short_code_is_allowed(self, business, chart):
        account = update_gl_account(business.id, chart.rent.id, short_code="RENT", description="Monthly rent")
        assert account.short_code == "RENT"
        assert account.description == "Monthly rent"

    def test_short_code_taken_by_subsidiary(self, business, chart):
        with pytest.raises(ValidationError, match="ACME"):
            update_gl_account(business.id, chart.rent.id, short_code="ACME")

        chart.rent.refresh_from_db()
        assert chart.rent.short_code == "RENT"

    def test_deactivated_account_rejects_postings(self, business, chart, fiscal_year, post_entry):
        update_gl_account(business.id, chart.rent.id, is_active=False)

        with pytest.raises(ValidationError, match="inactive"):
            post_entry(chart.rent, chart.cash, "10.00", date(2024, 3, 5))
        assert not Journal.objects.exists()

    def test_subsidiary_type_fixed_while_subsidiaries_exist(self, business, chart):
        with pytest.raises(IllegalStateError, match="subsidiary type cannot change"):
            update_gl_account(business.id, chart.banks.id, subsidiary_type=SubsidiaryType.NONE)

        chart.banks.refresh_from_db()
        assert chart.banks.subsidiary_type == SubsidiaryType.BANK

    def test_subsidiary_type_change_without_subsidiaries(self, business, chart):
        account = update_gl_account(business.id, chart.payables.id, subsidiary_type=SubsidiaryType.NONE)
        assert account.is_posting_account

    def test_posted_account_cannot_become_controlling(self, business, chart, fiscal_year, post_entry):
        post_entry(chart.rent, chart.cash, "10.00", date(2024, 3, 5))
        with pytest.raises(IllegalStateError, match="journal lines"):
            update_gl_account(business.id, chart.rent.id, subsidiary_type=SubsidiaryType.PAYABLE)

    def test_unknown_subsidiary_type(self, business, chart):
        with pytest.raises(ValidationError):
            update_gl_account(business.id, chart.rent.id, subsidiary_type="LOAN")

    def test_delete_unused_account(self, business, chart, fiscal_year):
        open_ledger(business.id, fiscal_year.id, chart.rent.id)

        delete_gl_account(business.id, chart.rent.id)

        assert not GeneralLedgerAccount.objects.filter(pk=chart.rent.id).exists()
        assert not Ledger.objects.filter(account_id=chart.rent.id).exists()

    def test_account_with_journal_lines_cannot_be_deleted(self, business, chart, fiscal_year, post_entry):
        post_entry(chart.rent, chart.cash, "10.00", date(2024, 3, 5))

        with pytest.raises(IllegalStateError, match="journal lines"):
            delete_gl_account(business.id, chart.rent.id)
        assert GeneralLedgerAccount.objects.filter(pk=chart.rent.id).exists()

    def test_controlling_account_with_subsidiaries_cannot_be_deleted(self, business, chart):
        with pytest.raises(IllegalStateError, match="subsidiary"):
            delete_gl_account(business.id, chart.receivables.id)

    def test_account_with_opening_balance_cannot_be_deleted(self, business, chart, fiscal_year):
        open_ledger(business.id, fiscal_year.id, chart.capital.id, Decimal("-500.00"))
        with pytest.raises(IllegalStateError, match="opening balance"):
            delete_gl_account(business.id, chart.capital.id)

    def test_delete_account_of_other_business(self, second_business, chart):
        with pytest.raises(NotFound):
            delete_gl_account(second_business.id, chart.rent.id)
