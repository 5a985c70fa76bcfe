# tests/test_fiscal_calendar.py
"""
Tests for fiscal years, periods and the posting-period lookup.
"""

from datetime import date

import pytest
from django.db import connection

from core.exceptions import IllegalStateError, NotFound, ValidationError
from ledger.fiscal_calendar import (
    begin_closing,
    close_period,
    complete_closing,
    create_fiscal_year,
    create_monthly_periods,
    create_period,
    find_fiscal_year,
    find_period,
    find_posting_period,
    first_open_period,
    reopen_period,
)
from ledger.models import FiscalPeriod, FiscalYear, JournalType


@pytest.mark.django_db
class TestFiscalYearSetup:

    def test_monthly_periods_cover_the_year(self, fiscal_year):
        periods = list(fiscal_year.periods.order_by("period_number"))
        assert len(periods) == 12
        assert periods[0].start_date == date(2024, 1, 1)
        assert periods[1].end_date == date(2024, 2, 29)
        assert periods[-1].end_date == date(2024, 12, 31)

    def test_monthly_periods_for_non_calendar_year(self, business):
        fiscal_year = create_fiscal_year(business.id, 2025, date(2024, 7, 1), date(2025, 6, 30))
        periods = create_monthly_periods(business.id, fiscal_year.id)
        assert len(periods) == 12
        assert periods[0].display_name == "July 2024"
        assert periods[-1].start_date == date(2025, 6, 1)
        assert periods[-1].end_date == date(2025, 6, 30)

    def test_short_year_gets_fewer_periods(self, business):
        fiscal_year = create_fiscal_year(business.id, 2024, date(2024, 10, 1), date(2024, 12, 31))
        assert len(create_monthly_periods(business.id, fiscal_year.id)) == 3

    def test_monthly_periods_only_once(self, business, fiscal_year):
        with pytest.raises(IllegalStateError, match="already has periods"):
            create_monthly_periods(business.id, fiscal_year.id)

    def test_duplicate_year_rejected(self, business, fiscal_year):
        with pytest.raises(ValidationError, match="already exists"):
            create_fiscal_year(business.id, 2024, date(2024, 1, 1), date(2024, 12, 31))

    def test_overlapping_year_rejected(self, business, fiscal_year):
        with pytest.raises(ValidationError, match="overlaps"):
            create_fiscal_year(business.id, 2025, date(2024, 12, 1), date(2025, 11, 30))

    def test_inverted_dates_rejected(self, business):
        with pytest.raises(ValidationError):
            create_fiscal_year(business.id, 2024, date(2024, 12, 31), date(2024, 1, 1))

    def test_other_business_year_not_found(self, second_business, fiscal_year):
        with pytest.raises(NotFound):
            create_monthly_periods(second_business.id, fiscal_year.id)

    def test_period_outside_year_rejected(self, business):
        fiscal_year = create_fiscal_year(business.id, 2024, date(2024, 1, 1), date(2024, 12, 31))
        with pytest.raises(ValidationError, match="inside fiscal year"):
            create_period(business.id, fiscal_year.id, 1, date(2023, 12, 1), date(2024, 1, 31))

    def test_overlapping_regular_period_rejected(self, business):
        fiscal_year = create_fiscal_year(business.id, 2024, date(2024, 1, 1), date(2024, 12, 31))
        create_period(business.id, fiscal_year.id, 1, date(2024, 1, 1), date(2024, 1, 31))
        with pytest.raises(ValidationError, match="overlaps"):
            create_period(business.id, fiscal_year.id, 2, date(2024, 1, 15), date(2024, 2, 29))

    def test_adjusting_period_may_overlap(self, business, fiscal_year):
        period = create_period(business.id, fiscal_year.id, 13, date(2024, 12, 31), date(2024, 12, 31))
        assert period.is_adjusting
        assert period.display_name == "Period 13 2024"

    @pytest.mark.parametrize("number", [0, 14])
    def test_period_number_range(self, business, fiscal_year, number):
        with pytest.raises(ValidationError):
            create_period(business.id, fiscal_year.id, number, date(2024, 12, 31), date(2024, 12, 31))


@pytest.mark.django_db
class TestPeriodTransitions:

    def test_close_and_reopen(self, business, fiscal_year):
        period = fiscal_year.periods.get(period_number=1)

        closed = close_period(business.id, period.id)
        assert closed.status == FiscalPeriod.Status.CLOSED

        reopened = reopen_period(business.id, period.id)
        assert reopened.status == FiscalPeriod.Status.OPEN

    def test_close_twice_rejected(self, business, fiscal_year, app_logs):
        period = fiscal_year.periods.get(period_number=1)
        close_period(business.id, period.id)
        with pytest.raises(IllegalStateError, match="already closed"):
            close_period(business.id, period.id)
        assert "Close period rejected" in app_logs.messages

    def test_reopen_open_period_rejected(self, business, fiscal_year):
        period = fiscal_year.periods.get(period_number=1)
        with pytest.raises(IllegalStateError, match="already open"):
            reopen_period(business.id, period.id)

    def test_reopen_rejected_once_year_is_closing(self, business, fiscal_year, close_regular_periods):
        close_regular_periods(fiscal_year)
        begin_closing(business.id, fiscal_year.id)

        period = fiscal_year.periods.get(period_number=12)
        with pytest.raises(IllegalStateError, match="can no longer be reopened"):
            reopen_period(business.id, period.id)
        period.refresh_from_db()
        assert period.status == FiscalPeriod.Status.CLOSED

    def test_period_of_other_business_not_found(self, second_business, fiscal_year):
        period = fiscal_year.periods.get(period_number=1)
        with pytest.raises(NotFound):
            close_period(second_business.id, period.id)


@pytest.mark.django_db
class TestYearTransitions:

    def test_begin_closing_requires_closed_periods(self, business, fiscal_year):
        with pytest.raises(IllegalStateError, match="12 open period"):
            begin_closing(business.id, fiscal_year.id)
        fiscal_year.refresh_from_db()
        assert fiscal_year.status == FiscalYear.Status.OPEN

    def test_begin_closing_requires_prior_year_closed(self, business, fiscal_year, next_fiscal_year, close_regular_periods):
        close_regular_periods(next_fiscal_year)
        with pytest.raises(IllegalStateError, match="2024 must be closed first"):
            begin_closing(business.id, next_fiscal_year.id)

    def test_full_close(self, business, fiscal_year, close_regular_periods):
        close_regular_periods(fiscal_year)

        assert begin_closing(business.id, fiscal_year.id).status == FiscalYear.Status.CLOSING

        closed = complete_closing(business.id, fiscal_year.id)
        assert closed.status == FiscalYear.Status.CLOSED
        assert closed.closed_at is not None

    def test_complete_closing_requires_closing_status(self, business, fiscal_year):
        with pytest.raises(IllegalStateError, match="not CLOSING"):
            complete_closing(business.id, fiscal_year.id)

    def test_complete_closing_requires_adjusting_period_closed(self, business, fiscal_year, close_regular_periods):
        close_regular_periods(fiscal_year)
        begin_closing(business.id, fiscal_year.id)
        adjusting = create_period(business.id, fiscal_year.id, 13, date(2024, 12, 31), date(2024, 12, 31))

        with pytest.raises(IllegalStateError, match="adjusting period"):
            complete_closing(business.id, fiscal_year.id)

        close_period(business.id, adjusting.id)
        assert complete_closing(business.id, fiscal_year.id).status == FiscalYear.Status.CLOSED

    def test_regular_period_cannot_be_added_while_closing(self, business, close_regular_periods):
        fiscal_year = create_fiscal_year(business.id, 2024, date(2024, 1, 1), date(2024, 12, 31))
        create_period(business.id, fiscal_year.id, 1, date(2024, 1, 1), date(2024, 1, 31))
        close_regular_periods(fiscal_year)
        begin_closing(business.id, fiscal_year.id)

        with pytest.raises(IllegalStateError, match="periods cannot be added"):
            create_period(business.id, fiscal_year.id, 2, date(2024, 2, 1), date(2024, 2, 29))

    def test_closed_year_periods_cannot_be_reopened(self, business, fiscal_year, close_regular_periods):
        close_regular_periods(fiscal_year)
        begin_closing(business.id, fiscal_year.id)
        complete_closing(business.id, fiscal_year.id)

        period = fiscal_year.periods.get(period_number=3)
        with pytest.raises(IllegalStateError):
            reopen_period(business.id, period.id)


@pytest.mark.django_db
class TestPostingPeriodLookup:

    def test_entry_date_in_open_period(self, business, fiscal_year):
        period = first_open_period(business.id, date(2024, 3, 15))
        assert period.period_number == 3

    def test_closed_periods_roll_forward(self, business, fiscal_year):
        for number in (1, 2):
            close_period(business.id, fiscal_year.periods.get(period_number=number).id)

        period = first_open_period(business.id, date(2024, 1, 20))
        assert period.period_number == 3
        assert period.start_date == date(2024, 3, 1)

    def test_no_period_after_last_year(self, business, fiscal_year):
        assert first_open_period(business.id, date(2025, 1, 1)) is None

    def test_regular_journal_skips_closing_year(self, business, fiscal_year, next_fiscal_year, close_regular_periods):
        close_regular_periods(fiscal_year)
        begin_closing(business.id, fiscal_year.id)
        create_period(business.id, fiscal_year.id, 13, date(2024, 12, 31), date(2024, 12, 31))

        regular = find_posting_period(business.id, date(2024, 12, 31), JournalType.JOURNAL_ENTRY)
        closing = find_posting_period(business.id, date(2024, 12, 31), JournalType.CLOSING_ENTRY)

        assert regular.fiscal_year_id == next_fiscal_year.id
        assert regular.period_number == 1
        assert closing.fiscal_year_id == fiscal_year.id
        assert closing.is_adjusting

    def test_find_year_and_period_ignore_status(self, business, fiscal_year):
        period = fiscal_year.periods.get(period_number=6)
        close_period(business.id, period.id)

        assert find_fiscal_year(business.id, date(2024, 6, 10)) == fiscal_year
        assert find_period(business.id, date(2024, 6, 10)) == period
        assert find_fiscal_year(business.id, date(2023, 6, 10)) is None


@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(connection.vendor != "postgresql", reason="SQLite has no row locks")
def test_concurrent_begin_closing_lets_one_through(business, fiscal_year, close_regular_periods, run_concurrently):
    close_regular_periods(fiscal_year)

    outcomes = run_concurrently(lambda: begin_closing(business.id, fiscal_year.id))

    started = [o for o in outcomes if isinstance(o, FiscalYear)]
    rejected = [o for o in outcomes if isinstance(o, IllegalStateError)]
    assert len(started) == 1
    assert len(rejected) == 1
    assert FiscalYear.objects.get(pk=fiscal_year.pk).status == FiscalYear.Status.CLOSING
