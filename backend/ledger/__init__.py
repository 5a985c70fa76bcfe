# ledger/__init__.py
"""
Ledger app - fiscal calendar, journal posting and balances.

This app provides:
- FiscalYear / FiscalPeriod: the calendar journals post into (fiscal_calendar.py)
- Journal / JournalLine: immutable, balanced postings (posting.py)
- Ledger: per-year opening balances; balances derived in balances.py

The posting engine is the only writer of journals.
"""
