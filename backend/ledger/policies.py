# ledger/policies.py
"""
Business policy functions for the fiscal calendar and posting.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; fiscal_calendar.py and posting.py do.

Design Principles:
1. Policies have no side effects (some read related rows)
2. Policies return (bool, str) tuples for clear error messages
3. Commands raise IllegalStateError with the reason on failure
"""

from ledger.models import FiscalPeriod, FiscalYear, JournalType


# =============================================================================
# Posting Policies
# =============================================================================

def can_accept_entries(period: FiscalPeriod) -> tuple[bool, str]:
    """A period takes postings while it is OPEN and its year is OPEN or CLOSING."""
    if period.status != FiscalPeriod.Status.OPEN:
        return False, f"Fiscal period {period.display_name} is closed."
    if not period.fiscal_year.can_accept_entries:
        return False, f"Fiscal year {period.fiscal_year.year} is {period.fiscal_year.status}."
    return True, ""


def can_post_journal_type(period: FiscalPeriod, journal_type: str) -> tuple[bool, str]:
    """
    Closing entries need a CLOSING year; every other journal needs an OPEN one.

    The period lookup skips CLOSING years for regular journals, so this
    rejects periods handed in directly by a caller.
    """
    status = period.fiscal_year.status
    if journal_type == JournalType.CLOSING_ENTRY:
        if status != FiscalYear.Status.CLOSING:
            return False, (
                f"Closing entries require fiscal year {period.fiscal_year.year} "
                f"to be CLOSING (it is {status})."
            )
        return True, ""
    if status != FiscalYear.Status.OPEN:
        return False, f"Fiscal year {period.fiscal_year.year} only accepts closing entries."
    return True, ""


# =============================================================================
# Period Policies
# =============================================================================

def can_close_period(period: FiscalPeriod) -> tuple[bool, str]:
    if period.status == FiscalPeriod.Status.CLOSED:
        return False, "Fiscal period is already closed."
    if period.fiscal_year.status == FiscalYear.Status.CLOSED:
        return False, f"Fiscal year {period.fiscal_year.year} is closed."
    return True, ""


def can_reopen_period(period: FiscalPeriod) -> tuple[bool, str]:
    """Reopening is a soft undo, only while the year is still OPEN."""
    if period.status == FiscalPeriod.Status.OPEN:
        return False, "Fiscal period is already open."
    if period.fiscal_year.status != FiscalYear.Status.OPEN:
        return False, (
            f"Fiscal year {period.fiscal_year.year} is {period.fiscal_year.status}; "
            "its periods can no longer be reopened."
        )
    return True, ""


def can_add_period(fiscal_year: FiscalYear, period_number: int) -> tuple[bool, str]:
    """Regular periods need an OPEN year; the adjusting period may be added while CLOSING."""
    if fiscal_year.status == FiscalYear.Status.OPEN:
        return True, ""
    if (
        fiscal_year.status == FiscalYear.Status.CLOSING
        and period_number == FiscalPeriod.ADJUSTING_PERIOD
    ):
        return True, ""
    return False, f"Fiscal year {fiscal_year.year} is {fiscal_year.status}; periods cannot be added."


# =============================================================================
# Year Policies
# =============================================================================

def can_begin_closing(fiscal_year: FiscalYear) -> tuple[bool, str]:
    """
    OPEN -> CLOSING needs the previous year (if any) CLOSED and no open periods.
    """
    if fiscal_year.status != FiscalYear.Status.OPEN:
        return False, f"Fiscal year {fiscal_year.year} is {fiscal_year.status}, not OPEN."

    previous = FiscalYear.objects.filter(
        business_id=fiscal_year.business_id,
        year=fiscal_year.year - 1,
    ).first()
    if previous is not None and previous.status != FiscalYear.Status.CLOSED:
        return False, f"Fiscal year {previous.year} must be closed first."

    open_periods = fiscal_year.periods.filter(status=FiscalPeriod.Status.OPEN).count()
    if open_periods:
        return False, f"Fiscal year {fiscal_year.year} still has {open_periods} open period(s)."
    return True, ""


def can_complete_closing(fiscal_year: FiscalYear) -> tuple[bool, str]:
    if fiscal_year.status != FiscalYear.Status.CLOSING:
        return False, f"Fiscal year {fiscal_year.year} is {fiscal_year.status}, not CLOSING."
    if fiscal_year.periods.filter(status=FiscalPeriod.Status.OPEN).exists():
        return False, f"Close the adjusting period of fiscal year {fiscal_year.year} first."
    return True, ""
