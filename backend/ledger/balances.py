# ledger/balances.py
"""
Ledger balance calculator.

Balances are derived, never stored:

    balance_as_of(ledger, d)  = opening + signed lines of the year posted on or before d
    period_activity(ledger, p) = signed lines of journals in period p
    closing_balance(ledger)    = balance_as_of(ledger, fiscal_year.end_date)

Signed means debit positive, credit negative. Lines are matched on
gl_account, so a controlling account's ledger includes its subsidiaries.
All functions are read-only.
"""

from datetime import date
from decimal import Decimal

from django.db.models import Q, Sum
from django.utils import timezone

from ledger.models import ZERO, EntryType, FiscalPeriod, JournalLine, Ledger


def _signed_total(lines) -> Decimal:
    totals = lines.aggregate(
        debits=Sum("amount", filter=Q(entry_type=EntryType.DEBIT)),
        credits=Sum("amount", filter=Q(entry_type=EntryType.CREDIT)),
    )
    return (totals["debits"] or ZERO) - (totals["credits"] or ZERO)


def _year_lines(ledger: Ledger):
    return JournalLine.objects.filter(
        gl_account_id=ledger.account_id,
        journal__fiscal_period__fiscal_year_id=ledger.fiscal_year_id,
    )


def activity_through(ledger: Ledger, as_of: date) -> Decimal:
    """Signed activity of the fiscal year posted on or before as_of."""
    return _signed_total(_year_lines(ledger).filter(journal__posting_date__lte=as_of))


def balance_as_of(ledger: Ledger, as_of: date) -> Decimal:
    return ledger.opening_balance + activity_through(ledger, as_of)


def period_activity(ledger: Ledger, period: FiscalPeriod) -> Decimal:
    lines = JournalLine.objects.filter(
        gl_account_id=ledger.account_id,
        journal__fiscal_period_id=period.id,
    )
    return _signed_total(lines)


def closing_balance(ledger: Ledger) -> Decimal:
    return balance_as_of(ledger, ledger.fiscal_year.end_date)


def current_balance(ledger: Ledger, today: date = None) -> Decimal:
    return balance_as_of(ledger, today or timezone.localdate())
