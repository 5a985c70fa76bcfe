# ledger/fiscal_calendar.py
"""
Fiscal calendar: years, periods, and where a date posts.

Transitions
===========
    FiscalYear:   OPEN --begin_closing--> CLOSING --complete_closing--> CLOSED
    FiscalPeriod: OPEN <--close_period / reopen_period--> CLOSED

Every transition locks the FiscalYear row (SELECT ... FOR UPDATE) before
checking its preconditions, so two concurrent transitions on the same
year serialize: the second sees the state the first committed. Period
transitions lock the year first, then the period, always in that order.

Posting lookup
==============
first_open_period(business, date) returns the earliest OPEN period
ending on or after the date. find_posting_period() applies it per
journal type: regular journals only consider periods of OPEN years.
"""

import calendar
import logging
from datetime import date, timedelta

from django.db import transaction
from django.utils import timezone

from business.models import Business
from core.exceptions import IllegalStateError, NotFound, ValidationError
from ledger.models import FiscalPeriod, FiscalYear, JournalType
from ledger.policies import (
    can_add_period,
    can_begin_closing,
    can_close_period,
    can_complete_closing,
    can_reopen_period,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Queries
# =============================================================================

def first_open_period(business_id: int, on_or_after: date, year_status: str = None):
    """Earliest OPEN period of the business whose end date is >= on_or_after."""
    periods = FiscalPeriod.objects.select_related("fiscal_year").filter(
        fiscal_year__business_id=business_id,
        status=FiscalPeriod.Status.OPEN,
        end_date__gte=on_or_after,
    )
    if year_status is not None:
        periods = periods.filter(fiscal_year__status=year_status)
    return periods.order_by("start_date", "period_number").first()


def find_posting_period(business_id: int, entry_date: date, journal_type: str):
    """
    Period a journal dated entry_date lands in, or None.

    Closing entries take the first open period whatever its year's state
    (the engine then insists on CLOSING). Regular journals skip years
    that are closing, so they land in the next open year.
    """
    if journal_type == JournalType.CLOSING_ENTRY:
        return first_open_period(business_id, entry_date)
    return first_open_period(business_id, entry_date, year_status=FiscalYear.Status.OPEN)


def find_fiscal_year(business_id: int, day: date):
    """Fiscal year containing day, or None."""
    return FiscalYear.objects.filter(
        business_id=business_id,
        start_date__lte=day,
        end_date__gte=day,
    ).first()


def find_period(business_id: int, day: date):
    """Regular period containing day, or None. Ignores status."""
    return FiscalPeriod.objects.select_related("fiscal_year").filter(
        fiscal_year__business_id=business_id,
        start_date__lte=day,
        end_date__gte=day,
    ).order_by("period_number").first()


# =============================================================================
# Helpers
# =============================================================================

def _get_business(business_id: int) -> Business:
    try:
        return Business.objects.get(pk=business_id)
    except Business.DoesNotExist:
        raise NotFound("Business", business_id)


def _lock_year(business_id: int, fiscal_year_id: int) -> FiscalYear:
    try:
        return FiscalYear.objects.select_for_update().get(
            pk=fiscal_year_id,
            business_id=business_id,
        )
    except FiscalYear.DoesNotExist:
        raise NotFound("FiscalYear", fiscal_year_id)


def _lock_period(business_id: int, period_id: int) -> FiscalPeriod:
    fiscal_year_id = (
        FiscalPeriod.objects.filter(pk=period_id, fiscal_year__business_id=business_id)
        .values_list("fiscal_year_id", flat=True)
        .first()
    )
    if fiscal_year_id is None:
        raise NotFound("FiscalPeriod", period_id)

    fiscal_year = _lock_year(business_id, fiscal_year_id)
    period = FiscalPeriod.objects.select_for_update().get(pk=period_id)
    period.fiscal_year = fiscal_year
    return period


def _ensure(allowed: bool, reason: str, event: str, entity: str, entity_id: int) -> None:
    if not allowed:
        logger.warning(event, extra={"entity": entity, "entity_id": entity_id, "reason": reason})
        raise IllegalStateError(reason, entity=entity, entity_id=entity_id)


def _add_months(day: date, months: int) -> date:
    year, month = divmod(day.month - 1 + months, 12)
    year += day.year
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _overlaps(periods, start_date: date, end_date: date) -> bool:
    return periods.filter(start_date__lte=end_date, end_date__gte=start_date).exists()


# =============================================================================
# Fiscal Years
# =============================================================================

@transaction.atomic
def create_fiscal_year(business_id: int, year: int, start_date: date, end_date: date) -> FiscalYear:
    """Create an OPEN fiscal year. Years of one business may not overlap."""
    business = _get_business(business_id)

    if start_date > end_date:
        raise ValidationError("Fiscal year start date must not be after its end date.", entity="FiscalYear")
    if FiscalYear.objects.filter(business=business, year=year).exists():
        raise ValidationError(f"Fiscal year {year} already exists.", entity="FiscalYear")
    if _overlaps(FiscalYear.objects.filter(business=business), start_date, end_date):
        raise ValidationError(
            f"Fiscal year {year} overlaps an existing fiscal year.",
            entity="FiscalYear",
        )

    fiscal_year = FiscalYear.objects.create(
        business=business,
        year=year,
        start_date=start_date,
        end_date=end_date,
    )
    logger.info(
        "Fiscal year created",
        extra={"business_id": business.id, "fiscal_year_id": fiscal_year.id, "year": year},
    )
    return fiscal_year


@transaction.atomic
def begin_closing(business_id: int, fiscal_year_id: int) -> FiscalYear:
    """OPEN -> CLOSING. From here on only closing entries post into this year."""
    fiscal_year = _lock_year(business_id, fiscal_year_id)

    _ensure(*can_begin_closing(fiscal_year), "Begin closing rejected", "FiscalYear", fiscal_year.id)

    fiscal_year.status = FiscalYear.Status.CLOSING
    fiscal_year.save(update_fields=["status"])
    logger.info(
        "Fiscal year closing started",
        extra={"business_id": business_id, "fiscal_year_id": fiscal_year.id, "year": fiscal_year.year},
    )
    return fiscal_year


@transaction.atomic
def complete_closing(business_id: int, fiscal_year_id: int) -> FiscalYear:
    """
    CLOSING -> CLOSED. Terminal.

    Run ledger.commands.carry_forward_balances first so next year's
    opening balances reflect this year's closing balances.
    """
    fiscal_year = _lock_year(business_id, fiscal_year_id)

    _ensure(*can_complete_closing(fiscal_year), "Complete closing rejected", "FiscalYear", fiscal_year.id)

    fiscal_year.status = FiscalYear.Status.CLOSED
    fiscal_year.closed_at = timezone.now()
    fiscal_year.save(update_fields=["status", "closed_at"])
    logger.info(
        "Fiscal year closed",
        extra={"business_id": business_id, "fiscal_year_id": fiscal_year.id, "year": fiscal_year.year},
    )
    return fiscal_year


# =============================================================================
# Fiscal Periods
# =============================================================================

@transaction.atomic
def create_period(
    business_id: int,
    fiscal_year_id: int,
    period_number: int,
    start_date: date,
    end_date: date,
) -> FiscalPeriod:
    """
    Add a period to a fiscal year.

    Args:
        period_number: 1-12 for regular periods, 13 for the adjusting period
        start_date / end_date: inclusive, inside the fiscal year
    """
    fiscal_year = _lock_year(business_id, fiscal_year_id)

    if period_number is None or not 1 <= period_number <= FiscalPeriod.ADJUSTING_PERIOD:
        raise ValidationError("Period number must be between 1 and 13.", entity="FiscalPeriod")
    if start_date > end_date:
        raise ValidationError("Period start date must not be after its end date.", entity="FiscalPeriod")
    if not (fiscal_year.contains(start_date) and fiscal_year.contains(end_date)):
        raise ValidationError(
            f"Period dates must fall inside fiscal year {fiscal_year.year}.",
            entity="FiscalPeriod",
        )

    _ensure(*can_add_period(fiscal_year, period_number), "Add period rejected", "FiscalYear", fiscal_year.id)

    if fiscal_year.periods.filter(period_number=period_number).exists():
        raise ValidationError(
            f"Period {period_number} already exists in fiscal year {fiscal_year.year}.",
            entity="FiscalPeriod",
        )
    if period_number != FiscalPeriod.ADJUSTING_PERIOD:
        regular = fiscal_year.periods.exclude(period_number=FiscalPeriod.ADJUSTING_PERIOD)
        if _overlaps(regular, start_date, end_date):
            raise ValidationError(
                f"Period {period_number} overlaps another period of fiscal year {fiscal_year.year}.",
                entity="FiscalPeriod",
            )

    period = FiscalPeriod.objects.create(
        fiscal_year=fiscal_year,
        period_number=period_number,
        start_date=start_date,
        end_date=end_date,
    )
    logger.info(
        "Fiscal period created",
        extra={"fiscal_year_id": fiscal_year.id, "period_id": period.id, "period_number": period_number},
    )
    return period


@transaction.atomic
def create_monthly_periods(business_id: int, fiscal_year_id: int) -> list:
    """
    Split a fiscal year into (up to) twelve month-long periods.

    Periods start on the year's start day each month; the last one is
    clipped to the year end. Fails if the year already has periods.
    """
    fiscal_year = _lock_year(business_id, fiscal_year_id)

    _ensure(
        not fiscal_year.periods.exists(),
        f"Fiscal year {fiscal_year.year} already has periods.",
        "Monthly periods rejected",
        "FiscalYear",
        fiscal_year.id,
    )
    _ensure(*can_add_period(fiscal_year, 1), "Monthly periods rejected", "FiscalYear", fiscal_year.id)

    periods = []
    for offset in range(12):
        start = _add_months(fiscal_year.start_date, offset)
        if start > fiscal_year.end_date:
            break
        end = min(_add_months(fiscal_year.start_date, offset + 1) - timedelta(days=1), fiscal_year.end_date)
        periods.append(
            FiscalPeriod.objects.create(
                fiscal_year=fiscal_year,
                period_number=offset + 1,
                start_date=start,
                end_date=end,
            )
        )

    logger.info(
        "Monthly periods created",
        extra={"fiscal_year_id": fiscal_year.id, "count": len(periods)},
    )
    return periods


@transaction.atomic
def close_period(business_id: int, period_id: int) -> FiscalPeriod:
    period = _lock_period(business_id, period_id)

    _ensure(*can_close_period(period), "Close period rejected", "FiscalPeriod", period.id)

    period.status = FiscalPeriod.Status.CLOSED
    period.save(update_fields=["status"])
    logger.info(
        "Fiscal period closed",
        extra={"business_id": business_id, "period_id": period.id, "period": period.display_name},
    )
    return period


@transaction.atomic
def reopen_period(business_id: int, period_id: int) -> FiscalPeriod:
    period = _lock_period(business_id, period_id)

    _ensure(*can_reopen_period(period), "Reopen period rejected", "FiscalPeriod", period.id)

    period.status = FiscalPeriod.Status.OPEN
    period.save(update_fields=["status"])
    logger.info(
        "Fiscal period reopened",
        extra={"business_id": business_id, "period_id": period.id, "period": period.display_name},
    )
    return period
