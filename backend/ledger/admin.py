# ledger/admin.py
"""
Ledger admin.

IMPORTANT: Journals are immutable and never editable here. Fiscal years
and periods change state only through ledger/fiscal_calendar.py, so the
admin is read-only throughout.
"""

from django.contrib import admin

from core.admin import ReadOnlyInline, ReadOnlyModelAdmin
from ledger.models import FiscalPeriod, FiscalYear, Journal, JournalLine, Ledger


class FiscalPeriodInline(ReadOnlyInline):
    model = FiscalPeriod
    fields = ["period_number", "start_date", "end_date", "status"]
    readonly_fields = fields


@admin.register(FiscalYear)
class FiscalYearAdmin(ReadOnlyModelAdmin):
    list_display = ["year", "business", "start_date", "end_date", "status", "closed_at"]
    list_filter = ["status"]
    inlines = [FiscalPeriodInline]


class JournalLineInline(ReadOnlyInline):
    model = JournalLine
    fields = ["line_number", "account_kind", "account_id", "gl_account", "entry_type", "amount", "description"]
    readonly_fields = fields


@admin.register(Journal)
class JournalAdmin(ReadOnlyModelAdmin):
    list_display = [
        "id",
        "journal_type",
        "business",
        "entry_date",
        "posting_date",
        "reference",
        "total_debits",
        "reverses_journal",
    ]
    list_filter = ["journal_type", "posting_date"]
    search_fields = ["reference", "description"]
    date_hierarchy = "posting_date"
    inlines = [JournalLineInline]


@admin.register(Ledger)
class LedgerAdmin(ReadOnlyModelAdmin):
    list_display = ["account", "fiscal_year", "opening_balance"]
    list_filter = ["fiscal_year__year"]
    list_select_related = ["account__group", "fiscal_year"]
