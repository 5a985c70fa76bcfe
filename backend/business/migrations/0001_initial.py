import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Business",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("legal_name", models.CharField(max_length=255)),
                ("tax_id", models.CharField(blank=True, default="", max_length=50)),
                ("basis_of_accounting", models.CharField(choices=[("GAAP", "US GAAP"), ("IFRS", "IFRS"), ("TAX", "Tax basis"), ("CASH", "Cash basis"), ("MODIFIED_ACCRUAL", "Modified accrual")], default="GAAP", max_length=20)),
                ("entity_type", models.CharField(choices=[("SOLE_PROPRIETORSHIP", "Sole proprietorship"), ("PARTNERSHIP", "Partnership"), ("LLC", "Limited liability company"), ("CORPORATION", "Corporation"), ("NONPROFIT", "Nonprofit")], default="CORPORATION", max_length=30)),
                ("fiscal_year_start_month", models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(12)])),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name_plural": "businesses",
            },
        ),
        migrations.AddConstraint(
            model_name="business",
            constraint=models.CheckConstraint(condition=models.Q(("fiscal_year_start_month__gte", 1), ("fiscal_year_start_month__lte", 12)), name="chk_business_fy_start_month"),
        ),
    ]
