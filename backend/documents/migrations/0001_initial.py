import decimal

import django.db.models.deletion
from django.db import migrations, models


DOCUMENT_TYPE_CHOICES = [
    ("JOURNAL_ENTRY", "Journal entry"),
    ("CLOSING_ENTRY", "Closing entry"),
    ("INVOICE", "Invoice"),
    ("CREDIT_MEMO", "Credit memo"),
    ("CASH_RECEIPT", "Cash receipt"),
    ("CASH_DISBURSEMENT", "Cash disbursement"),
    ("BILL", "Bill"),
    ("VENDOR_CREDIT", "Vendor credit"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("business", "0001_initial"),
        ("ledger", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Document",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_type", models.CharField(choices=DOCUMENT_TYPE_CHOICES, max_length=20)),
                ("document_number", models.CharField(max_length=30)),
                ("document_date", models.DateField()),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("COMPLETED", "Completed"), ("POSTED", "Posted"), ("VOIDED", "Voided")], default="OPEN", max_length=10)),
                ("reference", models.CharField(blank=True, default="", max_length=255)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="documents", to="business.business")),
                ("fiscal_year", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="closing_documents", to="ledger.fiscalyear")),
                ("journal", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="documents", to="ledger.journal")),
            ],
            options={
                "ordering": ["business", "document_date", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("business", "document_number"), name="uniq_document_number"),
                    models.CheckConstraint(
                        condition=models.Q(("status__in", ["POSTED", "VOIDED"]), ("journal__isnull", True), _connector="OR"),
                        name="chk_document_journal_only_when_posted",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["business", "status"], name="documents_biz_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DocumentLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_number", models.PositiveIntegerField()),
                ("account_kind", models.CharField(choices=[("GL", "General ledger"), ("AR", "Receivable"), ("AP", "Payable"), ("BANK", "Bank"), ("INV", "Inventory")], default="GL", max_length=4)),
                ("account_id", models.BigIntegerField(blank=True, null=True)),
                ("amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("document", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="documents.document")),
            ],
            options={
                "ordering": ["document", "line_number"],
                "constraints": [
                    models.UniqueConstraint(fields=("document", "line_number"), name="uniq_document_line_number"),
                ],
            },
        ),
    ]
