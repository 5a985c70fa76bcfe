# ledger/commands.py
"""
Commands for ledger rows.

Ledger rows hold the opening balance of a general-ledger account for a
fiscal year. They are created at year setup (open_ledger) and rolled
into the next year at year end (carry_forward_balances).
"""

import logging
from decimal import Decimal

from django.db import transaction

from accounting.models import AccountType, GeneralLedgerAccount
from core.exceptions import IllegalStateError, NotFound, ValidationError
from ledger.balances import closing_balance
from ledger.models import FiscalYear, Ledger
from ledger.requests import to_money

logger = logging.getLogger(__name__)


def _get_year(business_id: int, fiscal_year_id: int) -> FiscalYear:
    try:
        return FiscalYear.objects.get(pk=fiscal_year_id, business_id=business_id)
    except FiscalYear.DoesNotExist:
        raise NotFound("FiscalYear", fiscal_year_id)


@transaction.atomic
def open_ledger(
    business_id: int,
    fiscal_year_id: int,
    account_id: int,
    opening_balance=Decimal("0.00"),
    notes: str = "",
) -> Ledger:
    """Create the ledger row for (fiscal year, GL account)."""
    fiscal_year = _get_year(business_id, fiscal_year_id)
    if fiscal_year.status == FiscalYear.Status.CLOSED:
        raise IllegalStateError(
            f"Fiscal year {fiscal_year.year} is closed.",
            entity="FiscalYear",
            entity_id=fiscal_year.id,
        )

    try:
        account = GeneralLedgerAccount.objects.get(pk=account_id, business_id=business_id)
    except GeneralLedgerAccount.DoesNotExist:
        raise NotFound("GeneralLedgerAccount", account_id)

    if Ledger.objects.filter(fiscal_year=fiscal_year, account=account).exists():
        raise ValidationError(
            f"Ledger for {account.formatted_number} in FY{fiscal_year.year} already exists.",
            entity="Ledger",
        )

    ledger = Ledger.objects.create(
        fiscal_year=fiscal_year,
        account=account,
        opening_balance=to_money(opening_balance, entity="Ledger"),
        notes=notes,
    )
    logger.info(
        "Ledger opened",
        extra={"fiscal_year_id": fiscal_year.id, "account_id": account.id, "ledger_id": ledger.id},
    )
    return ledger


@transaction.atomic
def carry_forward_balances(business_id: int, fiscal_year_id: int) -> list:
    """
    Roll balance-sheet closing balances into next year's opening balances.

    Runs while the year is CLOSING, after closing entries have zeroed the
    revenue and expense accounts into equity. Income statement accounts
    start the next year at zero and are not carried.

    Returns the next year's updated or created Ledger rows.
    """
    fiscal_year = FiscalYear.objects.select_for_update().filter(
        pk=fiscal_year_id,
        business_id=business_id,
    ).first()
    if fiscal_year is None:
        raise NotFound("FiscalYear", fiscal_year_id)
    if fiscal_year.status != FiscalYear.Status.CLOSING:
        raise IllegalStateError(
            f"Fiscal year {fiscal_year.year} must be CLOSING to carry balances forward.",
            entity="FiscalYear",
            entity_id=fiscal_year.id,
        )

    next_year = FiscalYear.objects.filter(business_id=business_id, year=fiscal_year.year + 1).first()
    if next_year is None:
        raise NotFound("FiscalYear", f"{business_id}:{fiscal_year.year + 1}")

    carried = []
    ledgers = Ledger.objects.filter(fiscal_year=fiscal_year).select_related(
        "fiscal_year",
        "account__group",
    )
    for ledger in ledgers:
        if not AccountType(ledger.account.account_type).is_balance_sheet:
            continue
        balance = closing_balance(ledger)
        target, _ = Ledger.objects.update_or_create(
            fiscal_year=next_year,
            account=ledger.account,
            defaults={"opening_balance": balance},
        )
        carried.append(target)

    logger.info(
        "Balances carried forward",
        extra={
            "business_id": business_id,
            "from_year": fiscal_year.year,
            "to_year": next_year.year,
            "count": len(carried),
        },
    )
    return carried
