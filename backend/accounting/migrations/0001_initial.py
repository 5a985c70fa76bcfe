import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


ACCOUNT_TYPE_CHOICES = [
    ("ASSET", "Asset"),
    ("LIABILITY", "Liability"),
    ("EQUITY", "Equity"),
    ("REVENUE", "Revenue"),
    ("EXPENSE", "Expense"),
]

SUBSIDIARY_TYPE_CHOICES = [
    ("NONE", "None"),
    ("RECEIVABLE", "Accounts receivable"),
    ("PAYABLE", "Accounts payable"),
    ("BANK", "Bank"),
    ("INVENTORY", "Inventory"),
]


def _subsidiary_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("subsidiary_number", models.PositiveSmallIntegerField(validators=[django.core.validators.MaxValueValidator(99)])),
        ("short_code", models.CharField(max_length=20)),
        ("name", models.CharField(max_length=100)),
        ("is_active", models.BooleanField(default=True)),
        ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to="business.business")),
        ("controlling_account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="%(class)ss", to="accounting.generalledgeraccount")),
    ]


def _subsidiary_constraints(model_name):
    return [
        migrations.AddConstraint(
            model_name=model_name,
            constraint=models.UniqueConstraint(fields=("controlling_account", "subsidiary_number"), name=f"uniq_{model_name}_number"),
        ),
        migrations.AddConstraint(
            model_name=model_name,
            constraint=models.UniqueConstraint(fields=("business", "short_code"), name=f"uniq_{model_name}_short_code"),
        ),
        migrations.AddConstraint(
            model_name=model_name,
            constraint=models.CheckConstraint(condition=models.Q(("subsidiary_number__lte", 99)), name=f"chk_{model_name}_number_range"),
        ),
    ]


SUBSIDIARY_OPTIONS = {
    "ordering": ["controlling_account", "subsidiary_number"],
    "abstract": False,
}


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("business", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AccountGroup",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("account_type", models.CharField(choices=ACCOUNT_TYPE_CHOICES, max_length=10)),
                ("group_number", models.PositiveSmallIntegerField(validators=[django.core.validators.MaxValueValidator(99)])),
                ("name", models.CharField(max_length=100)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="account_groups", to="business.business")),
            ],
            options={
                "ordering": ["business", "account_type", "group_number"],
            },
        ),
        migrations.AddConstraint(
            model_name="accountgroup",
            constraint=models.UniqueConstraint(fields=("business", "account_type", "group_number"), name="uniq_account_group_number"),
        ),
        migrations.AddConstraint(
            model_name="accountgroup",
            constraint=models.CheckConstraint(condition=models.Q(("group_number__lte", 99)), name="chk_account_group_number_range"),
        ),
        migrations.CreateModel(
            name="GeneralLedgerAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("account_number", models.PositiveSmallIntegerField(validators=[django.core.validators.MaxValueValidator(9999)])),
                ("short_code", models.CharField(max_length=20)),
                ("name", models.CharField(max_length=100)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("subsidiary_type", models.CharField(choices=SUBSIDIARY_TYPE_CHOICES, default="NONE", max_length=12)),
                ("is_active", models.BooleanField(default=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="gl_accounts", to="business.business")),
                ("group", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="accounts", to="accounting.accountgroup")),
            ],
            options={
                "ordering": ["group", "account_number"],
            },
        ),
        migrations.AddConstraint(
            model_name="generalledgeraccount",
            constraint=models.UniqueConstraint(fields=("group", "account_number"), name="uniq_gl_account_number"),
        ),
        migrations.AddConstraint(
            model_name="generalledgeraccount",
            constraint=models.UniqueConstraint(fields=("business", "short_code"), name="uniq_gl_account_short_code"),
        ),
        migrations.AddConstraint(
            model_name="generalledgeraccount",
            constraint=models.CheckConstraint(condition=models.Q(("account_number__lte", 9999)), name="chk_gl_account_number_range"),
        ),
        migrations.CreateModel(
            name="ReceivableAccount",
            fields=_subsidiary_fields() + [
                ("counterparty_name", models.CharField(blank=True, default="", max_length=255)),
            ],
            options=dict(SUBSIDIARY_OPTIONS),
        ),
        *_subsidiary_constraints("receivableaccount"),
        migrations.CreateModel(
            name="PayableAccount",
            fields=_subsidiary_fields() + [
                ("counterparty_name", models.CharField(blank=True, default="", max_length=255)),
            ],
            options=dict(SUBSIDIARY_OPTIONS),
        ),
        *_subsidiary_constraints("payableaccount"),
        migrations.CreateModel(
            name="BankAccount",
            fields=_subsidiary_fields() + [
                ("bank_name", models.CharField(blank=True, default="", max_length=100)),
                ("bank_account_number", models.CharField(blank=True, default="", max_length=50)),
                ("routing_number", models.CharField(blank=True, default="", max_length=20)),
            ],
            options=dict(SUBSIDIARY_OPTIONS),
        ),
        *_subsidiary_constraints("bankaccount"),
        migrations.CreateModel(
            name="InventoryAccount",
            fields=_subsidiary_fields() + [
                ("sku", models.CharField(blank=True, default="", max_length=50)),
                ("unit_of_measure", models.CharField(blank=True, default="", max_length=20)),
                ("standard_cost", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=18, validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))])),
            ],
            options=dict(SUBSIDIARY_OPTIONS),
        ),
        *_subsidiary_constraints("inventoryaccount"),
    ]
