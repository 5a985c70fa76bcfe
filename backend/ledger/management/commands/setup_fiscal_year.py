# ledger/management/commands/setup_fiscal_year.py
"""
Management command to create a fiscal year and its monthly periods.

Usage:
    # Calendar year 2024 for business 7, with twelve monthly periods
    python manage.py setup_fiscal_year --business 7 --year 2024

    # Explicit dates, periods created later
    python manage.py setup_fiscal_year --business 7 --year 2025 \
        --start 2024-07-01 --end 2025-06-30 --no-periods

Without --start/--end the year starts on the business's
fiscal_year_start_month and runs for twelve months.
"""

from datetime import date, timedelta

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from business.models import Business
from core.exceptions import LedgerError
from ledger.fiscal_calendar import create_fiscal_year, create_monthly_periods


def default_year_bounds(start_month: int, year: int) -> tuple:
    """
    Twelve months ending in `year`.

    A January start gives the calendar year; a July start for 2025 gives
    2024-07-01 .. 2025-06-30.
    """
    start_year = year if start_month == 1 else year - 1
    start = date(start_year, start_month, 1)
    end = date(start_year + 1, start_month, 1) - timedelta(days=1)
    return start, end


class Command(BaseCommand):
    """Create a fiscal year (and monthly periods) for a business."""

    help = "Create a fiscal year and its monthly periods"

    def add_arguments(self, parser):
        parser.add_argument("--business", type=int, required=True, help="Business id")
        parser.add_argument("--year", type=int, required=True, help="Fiscal year number")
        parser.add_argument("--start", type=date.fromisoformat, help="First day (YYYY-MM-DD)")
        parser.add_argument("--end", type=date.fromisoformat, help="Last day (YYYY-MM-DD)")
        parser.add_argument(
            "--no-periods",
            action="store_true",
            help="Skip creating monthly periods",
        )

    def handle(self, *args, **options):
        business = Business.objects.filter(pk=options["business"]).first()
        if business is None:
            raise CommandError(f"Business {options['business']} not found.")

        start, end = options["start"], options["end"]
        if (start is None) != (end is None):
            raise CommandError("--start and --end must be given together.")
        if start is None:
            start, end = default_year_bounds(business.fiscal_year_start_month, options["year"])

        try:
            with transaction.atomic():
                fiscal_year = create_fiscal_year(business.id, options["year"], start, end)
                periods = []
                if not options["no_periods"]:
                    periods = create_monthly_periods(business.id, fiscal_year.id)
        except LedgerError as exc:
            raise CommandError(str(exc))

        self.stdout.write(self.style.SUCCESS(
            f"FY{fiscal_year.year} {fiscal_year.start_date}..{fiscal_year.end_date} "
            f"created with {len(periods)} period(s)."
        ))
