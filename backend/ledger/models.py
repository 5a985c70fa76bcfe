# ledger/models.py
"""
Ledger models: fiscal calendar, posted journals, ledger rows.

IMPORTANT: Journals are IMMUTABLE.
==================================
Journal and JournalLine rows are inserted exactly once, by the posting
engine (ledger/posting.py) inside posting_writes_allowed(). After that:

- .save() on a persisted row raises ImmutabilityViolation
- .delete() raises ImmutabilityViolation
- queryset .update() / .delete() / .bulk_update() raise ImmutabilityViolation

Corrections are made by posting a new journal with reverses_journal set.

Models:
- FiscalYear: OPEN -> CLOSING -> CLOSED, one per (business, year)
- FiscalPeriod: periods 1-13 of a year, OPEN <-> CLOSED
- Journal / JournalLine: posted, balanced entries
- Ledger: opening balance of a GL account for a fiscal year
"""

import calendar
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q

from accounting.models import AccountKind, GeneralLedgerAccount
from business.models import Business
from core.exceptions import IllegalStateError, ImmutabilityViolation, ValidationError
from core.write_barrier import posting_writes_allowed, write_context_allowed

ZERO = Decimal("0.00")


# =============================================================================
# Fiscal Calendar
# =============================================================================

class FiscalYear(models.Model):
    """
    A business's fiscal year.

    OPEN: regular postings allowed.
    CLOSING: periods are closed; only closing entries are accepted.
    CLOSED: terminal.
    """

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        CLOSING = "CLOSING", "Closing"
        CLOSED = "CLOSED", "Closed"

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="fiscal_years",
    )
    year = models.PositiveSmallIntegerField()
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
    )
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["business", "start_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "year"],
                name="uniq_fiscal_year",
            ),
            models.CheckConstraint(
                condition=Q(start_date__lte=F("end_date")),
                name="chk_fiscal_year_dates",
            ),
        ]

    def __str__(self):
        return f"{self.business_id} FY{self.year} ({self.status})"

    def contains(self, day) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def can_accept_entries(self) -> bool:
        """Closing entries post while CLOSING; everything else needs OPEN."""
        return self.status in (self.Status.OPEN, self.Status.CLOSING)


class FiscalPeriod(models.Model):
    """
    A period (usually a month) within a fiscal year.

    Period 13 is the adjusting period: it may share dates with period 12
    and exists to take year-end closing entries.
    """

    ADJUSTING_PERIOD = 13

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        CLOSED = "CLOSED", "Closed"

    fiscal_year = models.ForeignKey(
        FiscalYear,
        on_delete=models.CASCADE,
        related_name="periods",
    )
    period_number = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(13)],
    )
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
    )

    class Meta:
        ordering = ["fiscal_year", "period_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["fiscal_year", "period_number"],
                name="uniq_fiscal_period",
            ),
            models.CheckConstraint(
                condition=Q(start_date__lte=F("end_date")),
                name="chk_fiscal_period_dates",
            ),
            models.CheckConstraint(
                condition=Q(period_number__gte=1) & Q(period_number__lte=13),
                name="chk_fiscal_period_number",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "end_date"], name="ledger_period_status_end_idx"),
        ]

    def __str__(self):
        return f"FY{self.fiscal_year.year} P{self.period_number} ({self.status})"

    def contains(self, day) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def is_adjusting(self) -> bool:
        return self.period_number == self.ADJUSTING_PERIOD

    @property
    def can_accept_entries(self) -> bool:
        return self.status == self.Status.OPEN and self.fiscal_year.can_accept_entries

    @property
    def display_name(self) -> str:
        if self.period_number > 12:
            return f"Period {self.period_number} {self.fiscal_year.year}"
        return f"{calendar.month_name[self.start_date.month]} {self.start_date.year}"


# =============================================================================
# Journals
# =============================================================================

class JournalType(models.TextChoices):
    JOURNAL_ENTRY = "JE", "Journal entry"
    CLOSING_ENTRY = "CE", "Closing entry"
    CASH_RECEIPTS = "CR", "Cash receipts"
    CASH_DISBURSEMENTS = "CD", "Cash disbursements"
    SALES = "SJ", "Sales journal"
    PURCHASES = "PJ", "Purchases journal"


class EntryType(models.TextChoices):
    DEBIT = "DEBIT", "Debit"
    CREDIT = "CREDIT", "Credit"


class ImmutableQuerySet(models.QuerySet):
    """QuerySet that refuses bulk changes to posted rows."""

    def update(self, **kwargs):
        raise ImmutabilityViolation(
            f"{self.model.__name__} rows are immutable; post a reversing journal instead."
        )

    def delete(self):
        raise ImmutabilityViolation(
            f"{self.model.__name__} rows are immutable and cannot be deleted."
        )

    def bulk_update(self, objs, fields, batch_size=None):
        raise ImmutabilityViolation(
            f"{self.model.__name__} rows are immutable; post a reversing journal instead."
        )

    def bulk_create(self, objs, *args, **kwargs):
        if not write_context_allowed({"posting"}):
            raise ImmutabilityViolation(
                f"{self.model.__name__} rows are only created by the posting engine."
            )
        return super().bulk_create(objs, *args, **kwargs)


class ImmutableModel(models.Model):
    """Insert-once rows, written only inside posting_writes_allowed()."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutabilityViolation(
                f"{type(self).__name__} {self.pk} is posted and cannot be changed."
            )
        if not write_context_allowed({"posting"}):
            raise ImmutabilityViolation(
                f"{type(self).__name__} rows are only created by the posting engine. "
                "Direct saves are only allowed within posting_writes_allowed()."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutabilityViolation(
            f"{type(self).__name__} {self.pk} is posted and cannot be deleted."
        )


class JournalManager(models.Manager.from_queryset(ImmutableQuerySet)):

    def create_posted(self, *, lines, **header):
        """
        Persist a journal and its lines in one go.

        Re-checks the rules that must hold for every stored journal, so a
        caller bypassing the posting engine still cannot store bad data.
        `lines` are JournalLine instances without journal or line_number.
        """
        lines = list(lines)
        if not lines:
            raise ValidationError("A journal needs at least one line.", entity="Journal")

        debits = sum((line.amount for line in lines if line.entry_type == EntryType.DEBIT), ZERO)
        credits = sum((line.amount for line in lines if line.entry_type == EntryType.CREDIT), ZERO)
        if debits != credits:
            raise ValidationError(
                f"Journal is not balanced. Debits={debits} Credits={credits}",
                entity="Journal",
            )

        period = header["fiscal_period"]
        if (
            header["journal_type"] == JournalType.CLOSING_ENTRY
            and period.fiscal_year.status != FiscalYear.Status.CLOSING
        ):
            raise IllegalStateError(
                "Closing entries require the fiscal year to be CLOSING.",
                entity="FiscalYear",
                entity_id=period.fiscal_year_id,
            )

        with posting_writes_allowed():
            journal = self.create(**header)
            for number, line in enumerate(lines, start=1):
                line.journal = journal
                line.line_number = number
            JournalLine.objects.bulk_create(lines)
        return journal


class Journal(ImmutableModel):
    """
    Posted journal header.

    posting_date is the start date of the period the journal landed in,
    which may be later than entry_date when that date's period is closed.
    """

    objects = JournalManager()

    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="journals",
    )
    fiscal_period = models.ForeignKey(
        FiscalPeriod,
        on_delete=models.PROTECT,
        related_name="journals",
    )
    journal_type = models.CharField(max_length=2, choices=JournalType.choices)
    entry_date = models.DateField()
    posting_date = models.DateField()
    source_document_id = models.BigIntegerField(null=True, blank=True)
    reference = models.CharField(max_length=255, blank=True, default="")
    description = models.CharField(max_length=500, blank=True, default="")
    reverses_journal = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversals",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["business", "posting_date", "id"]
        indexes = [
            models.Index(fields=["business", "posting_date"], name="ledger_journal_post_date_idx"),
            models.Index(fields=["source_document_id"], name="ledger_journal_source_doc_idx"),
        ]

    def __str__(self):
        return f"{self.journal_type}#{self.pk} {self.posting_date}"

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.lines.all() if line.entry_type == EntryType.DEBIT), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.amount for line in self.lines.all() if line.entry_type == EntryType.CREDIT), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalLine(ImmutableModel):
    """
    One debit or credit of a journal.

    account_kind/account_id identify the posted account (any of the five
    kinds). gl_account is its general-ledger account: the account itself,
    or the controlling account of a subsidiary, so ledger balances of a
    controlling account roll up its subsidiaries.
    """

    objects = ImmutableQuerySet.as_manager()

    journal = models.ForeignKey(
        Journal,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_number = models.PositiveIntegerField()
    account_kind = models.CharField(max_length=4, choices=AccountKind.choices)
    account_id = models.BigIntegerField()
    gl_account = models.ForeignKey(
        GeneralLedgerAccount,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )
    entry_type = models.CharField(max_length=6, choices=EntryType.choices)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["journal", "line_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["journal", "line_number"],
                name="uniq_journal_line_number",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_journal_line_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["gl_account", "journal"], name="ledger_line_gl_journal_idx"),
        ]

    def __str__(self):
        return f"Journal#{self.journal_id} L{self.line_number}"

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.entry_type == EntryType.DEBIT else -self.amount


# =============================================================================
# Ledger
# =============================================================================

class Ledger(models.Model):
    """
    Opening balance of a general-ledger account for one fiscal year.

    Current and closing balances are never stored; ledger/balances.py
    derives them from posted journal lines.
    """

    fiscal_year = models.ForeignKey(
        FiscalYear,
        on_delete=models.PROTECT,
        related_name="ledgers",
    )
    account = models.ForeignKey(
        GeneralLedgerAccount,
        on_delete=models.PROTECT,
        related_name="ledgers",
    )
    opening_balance = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["fiscal_year", "account"]
        constraints = [
            models.UniqueConstraint(
                fields=["fiscal_year", "account"],
                name="uniq_ledger_year_account",
            ),
        ]

    def __str__(self):
        return f"FY{self.fiscal_year.year} {self.account.formatted_number}"
