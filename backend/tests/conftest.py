# tests/conftest.py
"""
Pytest fixtures for ledger tests.

Builds a small but complete chart of accounts and a 2024 calendar year
split into monthly periods. Everything goes through the command layer,
so fixtures exercise the same validation as production code.
"""

import logging
import threading
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.db import connections

from accounting.commands import create_account_group, create_gl_account, create_subsidiary_account
from accounting.models import AccountKind, AccountType, SubsidiaryType
from business.models import Business
from ledger.fiscal_calendar import close_period, create_fiscal_year, create_monthly_periods
from ledger.models import FiscalPeriod, JournalType
from ledger.posting import create_journal
from ledger.requests import JournalLineRequest, JournalRequest
from ops.logging_config import APP_LOGGERS


# =============================================================================
# Business Fixtures
# =============================================================================

@pytest.fixture
def business(db):
    """Create a test business."""
    return Business.objects.create(
        legal_name="Test Business LLC",
        tax_id="12-3456789",
        basis_of_accounting=Business.BasisOfAccounting.GAAP,
        entity_type=Business.EntityType.LLC,
    )


@pytest.fixture
def second_business(db):
    """Create a second business for isolation tests."""
    return Business.objects.create(legal_name="Second Business Inc")


# =============================================================================
# Chart of Accounts
# =============================================================================

@pytest.fixture
def chart(business):
    """
    Minimal chart of accounts:

        10.15.0100  CASH      Cash on hand
        10.15.0200  BANKS     Bank accounts (controls BANK)
        10.15.0200.01 OPBANK  Operating account
        10.20.0100  AR        Receivables (controls RECEIVABLE)
        10.20.0100.01 ACME    Acme Corp
        20.10.0100  AP        Payables (controls PAYABLE)
        30.10.0100  CAPITAL   Owner capital
        30.10.0200  RE        Retained earnings
        60.10.0100  SALES     Sales revenue
        80.10.0100  RENT      Rent expense
    """
    cash_group = create_account_group(business.id, AccountType.ASSET, 15, "Cash & Banks")
    ar_group = create_account_group(business.id, AccountType.ASSET, 20, "Receivables")
    ap_group = create_account_group(business.id, AccountType.LIABILITY, 10, "Payables")
    equity_group = create_account_group(business.id, AccountType.EQUITY, 10, "Owner's Equity")
    revenue_group = create_account_group(business.id, AccountType.REVENUE, 10, "Operating Revenue")
    expense_group = create_account_group(business.id, AccountType.EXPENSE, 10, "Operating Expenses")

    cash = create_gl_account(business.id, cash_group.id, 100, "CASH", "Cash on hand")
    banks = create_gl_account(
        business.id, cash_group.id, 200, "BANKS", "Bank accounts",
        subsidiary_type=SubsidiaryType.BANK,
    )
    operating_bank = create_subsidiary_account(
        business.id, AccountKind.BANK, banks.id, 1, "OPBANK", "Operating account",
        bank_name="First National", bank_account_number="000123",
    )
    receivables = create_gl_account(
        business.id, ar_group.id, 100, "AR", "Accounts receivable",
        subsidiary_type=SubsidiaryType.RECEIVABLE,
    )
    customer = create_subsidiary_account(
        business.id, AccountKind.RECEIVABLE, receivables.id, 1, "ACME", "Acme Corp",
        counterparty_name="Acme Corporation",
    )
    payables = create_gl_account(
        business.id, ap_group.id, 100, "AP", "Accounts payable",
        subsidiary_type=SubsidiaryType.PAYABLE,
    )
    capital = create_gl_account(business.id, equity_group.id, 100, "CAPITAL", "Owner capital")
    retained = create_gl_account(business.id, equity_group.id, 200, "RE", "Retained earnings")
    revenue = create_gl_account(business.id, revenue_group.id, 100, "SALES", "Sales revenue")
    rent = create_gl_account(business.id, expense_group.id, 100, "RENT", "Rent expense")

    return SimpleNamespace(
        cash=cash,
        banks=banks,
        operating_bank=operating_bank,
        receivables=receivables,
        customer=customer,
        payables=payables,
        capital=capital,
        retained=retained,
        revenue=revenue,
        rent=rent,
    )


# =============================================================================
# Fiscal Calendar
# =============================================================================

@pytest.fixture
def fiscal_year(business):
    """Calendar 2024, OPEN, with periods 1-12."""
    fiscal_year = create_fiscal_year(business.id, 2024, date(2024, 1, 1), date(2024, 12, 31))
    create_monthly_periods(business.id, fiscal_year.id)
    return fiscal_year


@pytest.fixture
def next_fiscal_year(business, fiscal_year):
    """Calendar 2025, OPEN, with periods 1-12."""
    fiscal_year = create_fiscal_year(business.id, 2025, date(2025, 1, 1), date(2025, 12, 31))
    create_monthly_periods(business.id, fiscal_year.id)
    return fiscal_year


@pytest.fixture
def close_regular_periods(business):
    """Close periods 1-12 of a fiscal year."""

    def _close(fiscal_year):
        for period in fiscal_year.periods.filter(status=FiscalPeriod.Status.OPEN):
            close_period(business.id, period.id)

    return _close


# =============================================================================
# Posting helpers
# =============================================================================

@pytest.fixture
def post_entry(business):
    """
    Post a two-line journal entry: debit one account, credit another.

        journal = post_entry(chart.cash, chart.revenue, "100.00", date(2024, 3, 5))
    """

    def _post(debit_account, credit_account, amount, entry_date, journal_type=JournalType.JOURNAL_ENTRY):
        request = JournalRequest(
            business_id=business.id,
            entry_date=entry_date,
            source_document_id=None,
            journal_type=journal_type,
            lines=[
                JournalLineRequest.debit(debit_account.id, Decimal(amount), account_kind=debit_account.kind),
                JournalLineRequest.credit(credit_account.id, Decimal(amount), account_kind=credit_account.kind),
            ],
        )
        return create_journal(request)

    return _post


# =============================================================================
# Concurrency helpers
# =============================================================================

@pytest.fixture
def run_concurrently():
    """
    Run the same call from several threads released at once; each thread
    uses its own database connection.

        outcomes = run_concurrently(lambda: begin_closing(...), threads=2)

    Returns one outcome per thread: the call's return value or the
    exception it raised.
    """

    def _run(call, threads=2):
        outcomes = []
        lock = threading.Lock()
        barrier = threading.Barrier(threads)

        def worker():
            try:
                barrier.wait()
                outcome = call()
            except Exception as exc:
                outcome = exc
            finally:
                connections.close_all()
            with lock:
                outcomes.append(outcome)

        workers = [threading.Thread(target=worker) for _ in range(threads)]
        for thread in workers:
            thread.start()
        for thread in workers:
            thread.join()
        return outcomes

    return _run


# =============================================================================
# Logging
# =============================================================================

@pytest.fixture
def app_logs(caplog):
    """caplog wired to the app loggers, which do not propagate to the root logger."""
    loggers = [logging.getLogger(name) for name in APP_LOGGERS]
    for logger in loggers:
        logger.addHandler(caplog.handler)
    yield caplog
    for logger in loggers:
        logger.removeHandler(caplog.handler)
