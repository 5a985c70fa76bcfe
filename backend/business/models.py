# business/models.py
"""
Business model.

Every command in the ledger takes an explicit business id; there is no
ambient "current business" state.
"""

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Business(models.Model):
    """A legal entity keeping its own books."""

    class BasisOfAccounting(models.TextChoices):
        GAAP = "GAAP", "US GAAP"
        IFRS = "IFRS", "IFRS"
        TAX = "TAX", "Tax basis"
        CASH = "CASH", "Cash basis"
        MODIFIED_ACCRUAL = "MODIFIED_ACCRUAL", "Modified accrual"

    class EntityType(models.TextChoices):
        SOLE_PROPRIETORSHIP = "SOLE_PROPRIETORSHIP", "Sole proprietorship"
        PARTNERSHIP = "PARTNERSHIP", "Partnership"
        LLC = "LLC", "Limited liability company"
        CORPORATION = "CORPORATION", "Corporation"
        NONPROFIT = "NONPROFIT", "Nonprofit"

    legal_name = models.CharField(max_length=255)
    tax_id = models.CharField(max_length=50, blank=True, default="")
    basis_of_accounting = models.CharField(
        max_length=20,
        choices=BasisOfAccounting.choices,
        default=BasisOfAccounting.GAAP,
    )
    entity_type = models.CharField(
        max_length=30,
        choices=EntityType.choices,
        default=EntityType.CORPORATION,
    )
    fiscal_year_start_month = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(12)],
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "businesses"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(fiscal_year_start_month__gte=1)
                & models.Q(fiscal_year_start_month__lte=12),
                name="chk_business_fy_start_month",
            ),
        ]

    def __str__(self):
        return self.legal_name
