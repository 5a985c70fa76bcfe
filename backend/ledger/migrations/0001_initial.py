import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("business", "0001_initial"),
        ("accounting", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="FiscalYear",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.PositiveSmallIntegerField()),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("CLOSING", "Closing"), ("CLOSED", "Closed")], default="OPEN", max_length=10)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fiscal_years", to="business.business")),
            ],
            options={
                "ordering": ["business", "start_date"],
            },
        ),
        migrations.AddConstraint(
            model_name="fiscalyear",
            constraint=models.UniqueConstraint(fields=("business", "year"), name="uniq_fiscal_year"),
        ),
        migrations.AddConstraint(
            model_name="fiscalyear",
            constraint=models.CheckConstraint(condition=models.Q(("start_date__lte", models.F("end_date"))), name="chk_fiscal_year_dates"),
        ),
        migrations.CreateModel(
            name="FiscalPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period_number", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(13)])),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("CLOSED", "Closed")], default="OPEN", max_length=10)),
                ("fiscal_year", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="periods", to="ledger.fiscalyear")),
            ],
            options={
                "ordering": ["fiscal_year", "period_number"],
                "indexes": [models.Index(fields=["status", "end_date"], name="ledger_period_status_end_idx")],
            },
        ),
        migrations.AddConstraint(
            model_name="fiscalperiod",
            constraint=models.UniqueConstraint(fields=("fiscal_year", "period_number"), name="uniq_fiscal_period"),
        ),
        migrations.AddConstraint(
            model_name="fiscalperiod",
            constraint=models.CheckConstraint(condition=models.Q(("start_date__lte", models.F("end_date"))), name="chk_fiscal_period_dates"),
        ),
        migrations.AddConstraint(
            model_name="fiscalperiod",
            constraint=models.CheckConstraint(condition=models.Q(("period_number__gte", 1), ("period_number__lte", 13)), name="chk_fiscal_period_number"),
        ),
        migrations.CreateModel(
            name="Journal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("journal_type", models.CharField(choices=[("JE", "Journal entry"), ("CE", "Closing entry"), ("CR", "Cash receipts"), ("CD", "Cash disbursements"), ("SJ", "Sales journal"), ("PJ", "Purchases journal")], max_length=2)),
                ("entry_date", models.DateField()),
                ("posting_date", models.DateField()),
                ("source_document_id", models.BigIntegerField(blank=True, null=True)),
                ("reference", models.CharField(blank=True, default="", max_length=255)),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journals", to="business.business")),
                ("fiscal_period", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journals", to="ledger.fiscalperiod")),
                ("reverses_journal", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversals", to="ledger.journal")),
            ],
            options={
                "ordering": ["business", "posting_date", "id"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["business", "posting_date"], name="ledger_journal_post_date_idx"),
                    models.Index(fields=["source_document_id"], name="ledger_journal_source_doc_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_number", models.PositiveIntegerField()),
                ("account_kind", models.CharField(choices=[("GL", "General ledger"), ("AR", "Receivable"), ("AP", "Payable"), ("BANK", "Bank"), ("INV", "Inventory")], max_length=4)),
                ("account_id", models.BigIntegerField()),
                ("entry_type", models.CharField(choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")], max_length=6)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("gl_account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="accounting.generalledgeraccount")),
                ("journal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger.journal")),
            ],
            options={
                "ordering": ["journal", "line_number"],
                "abstract": False,
                "indexes": [models.Index(fields=["gl_account", "journal"], name="ledger_line_gl_journal_idx")],
            },
        ),
        migrations.AddConstraint(
            model_name="journalline",
            constraint=models.UniqueConstraint(fields=("journal", "line_number"), name="uniq_journal_line_number"),
        ),
        migrations.AddConstraint(
            model_name="journalline",
            constraint=models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="chk_journal_line_amount_positive"),
        ),
        migrations.CreateModel(
            name="Ledger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("opening_balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
                ("notes", models.TextField(blank=True, default="")),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledgers", to="accounting.generalledgeraccount")),
                ("fiscal_year", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledgers", to="ledger.fiscalyear")),
            ],
            options={
                "ordering": ["fiscal_year", "account"],
            },
        ),
        migrations.AddConstraint(
            model_name="ledger",
            constraint=models.UniqueConstraint(fields=("fiscal_year", "account"), name="uniq_ledger_year_account"),
        ),
    ]
