# documents/models.py
"""
Source documents.

A Document is edited while OPEN, frozen by completing it, and posted
into exactly one Journal. Batch posting links several documents to the
same summary Journal.

    OPEN --complete--> COMPLETED --post--> POSTED --void--> VOIDED
         <--revert----

Workflow rules live in documents/policies.py and documents/commands.py;
the models only carry state.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q

from accounting.models import AccountKind
from business.models import Business
from ledger.models import ZERO, FiscalYear, Journal, JournalType


class DocumentType(models.TextChoices):
    JOURNAL_ENTRY = "JOURNAL_ENTRY", "Journal entry"
    CLOSING_ENTRY = "CLOSING_ENTRY", "Closing entry"
    INVOICE = "INVOICE", "Invoice"
    CREDIT_MEMO = "CREDIT_MEMO", "Credit memo"
    CASH_RECEIPT = "CASH_RECEIPT", "Cash receipt"
    CASH_DISBURSEMENT = "CASH_DISBURSEMENT", "Cash disbursement"
    BILL = "BILL", "Bill"
    VENDOR_CREDIT = "VENDOR_CREDIT", "Vendor credit"

    @property
    def prefix(self) -> str:
        return DOCUMENT_TYPE_ROUTING[self][0]

    @property
    def journal_type(self) -> str:
        return DOCUMENT_TYPE_ROUTING[self][1]


# Document number prefix and the journal each type posts to.
DOCUMENT_TYPE_ROUTING = {
    DocumentType.JOURNAL_ENTRY: ("JE", JournalType.JOURNAL_ENTRY),
    DocumentType.CLOSING_ENTRY: ("CE", JournalType.CLOSING_ENTRY),
    DocumentType.INVOICE: ("INV", JournalType.SALES),
    DocumentType.CREDIT_MEMO: ("CM", JournalType.SALES),
    DocumentType.CASH_RECEIPT: ("CR", JournalType.CASH_RECEIPTS),
    DocumentType.CASH_DISBURSEMENT: ("CD", JournalType.CASH_DISBURSEMENTS),
    DocumentType.BILL: ("BILL", JournalType.PURCHASES),
    DocumentType.VENDOR_CREDIT: ("VC", JournalType.PURCHASES),
}


class Document(models.Model):
    """Header of a source document of any kind."""

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        COMPLETED = "COMPLETED", "Completed"
        POSTED = "POSTED", "Posted"
        VOIDED = "VOIDED", "Voided"

    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="documents",
    )
    document_type = models.CharField(max_length=20, choices=DocumentType.choices)
    document_number = models.CharField(max_length=30)
    document_date = models.DateField()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
    )
    reference = models.CharField(max_length=255, blank=True, default="")
    description = models.CharField(max_length=500, blank=True, default="")

    # Closing entries only: the year being closed.
    fiscal_year = models.ForeignKey(
        FiscalYear,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="closing_documents",
    )
    journal = models.ForeignKey(
        Journal,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="documents",
    )

    completed_at = models.DateTimeField(null=True, blank=True)
    posted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["business", "document_date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "document_number"],
                name="uniq_document_number",
            ),
            models.CheckConstraint(
                condition=Q(status__in=["POSTED", "VOIDED"]) | Q(journal__isnull=True),
                name="chk_document_journal_only_when_posted",
            ),
        ]
        indexes = [
            models.Index(fields=["business", "status"], name="documents_biz_status_idx"),
        ]

    def __str__(self):
        return f"{self.document_number} ({self.status})"

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.OPEN

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.lines.all() if line.amount > 0), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((-line.amount for line in self.lines.all() if line.amount < 0), ZERO)

    @property
    def is_balanced(self) -> bool:
        return sum((line.amount for line in self.lines.all()), ZERO) == ZERO


class DocumentLine(models.Model):
    """
    One line of a document.

    amount is signed: positive debits, negative credits.
    """

    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_number = models.PositiveIntegerField()
    account_kind = models.CharField(
        max_length=4,
        choices=AccountKind.choices,
        default=AccountKind.GENERAL_LEDGER,
    )
    account_id = models.BigIntegerField(null=True, blank=True)
    amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["document", "line_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["document", "line_number"],
                name="uniq_document_line_number",
            ),
        ]

    def __str__(self):
        return f"{self.document_id} L{self.line_number} {self.amount}"
