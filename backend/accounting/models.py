# accounting/models.py
"""
Chart of accounts for the ledger.

Structure
=========
    AccountType (10 Asset, 20 Liability, 30 Equity, 60 Revenue, 80 Expense)
      └─ AccountGroup              TT.GG
           └─ GeneralLedgerAccount TT.GG.AAAA
                └─ subsidiary      TT.GG.AAAA.SS
                   (ReceivableAccount, PayableAccount, BankAccount, InventoryAccount)

A general-ledger account whose subsidiary_type is not NONE is a
CONTROLLING account: it aggregates its subsidiaries and never receives
postings itself. Every other account is a POSTING account.

The five account models form a closed set tagged by AccountKind. Code
that needs "any account" works with that tag and the repository in
accounting/repository.py instead of inspecting classes.

Models:
- AccountGroup: second level of the chart, per business and type
- GeneralLedgerAccount: the general ledger
- ReceivableAccount / PayableAccount / BankAccount / InventoryAccount
"""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from business.models import Business
from core.exceptions import ValidationError


# =============================================================================
# Classifications
# =============================================================================

class AccountType(models.TextChoices):
    ASSET = "ASSET", "Asset"
    LIABILITY = "LIABILITY", "Liability"
    EQUITY = "EQUITY", "Equity"
    REVENUE = "REVENUE", "Revenue"
    EXPENSE = "EXPENSE", "Expense"

    @property
    def number(self) -> int:
        return ACCOUNT_TYPE_NUMBERS[self]

    @property
    def is_balance_sheet(self) -> bool:
        return self in (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY)

    @classmethod
    def from_number(cls, number: int):
        """Return the type with this two-digit number, or None."""
        for account_type, type_number in ACCOUNT_TYPE_NUMBERS.items():
            if type_number == number:
                return account_type
        return None


ACCOUNT_TYPE_NUMBERS = {
    AccountType.ASSET: 10,
    AccountType.LIABILITY: 20,
    AccountType.EQUITY: 30,
    AccountType.REVENUE: 60,
    AccountType.EXPENSE: 80,
}


class SubsidiaryType(models.TextChoices):
    """Which subsidiary ledger a general-ledger account controls, if any."""
    NONE = "NONE", "None"
    RECEIVABLE = "RECEIVABLE", "Accounts receivable"
    PAYABLE = "PAYABLE", "Accounts payable"
    BANK = "BANK", "Bank"
    INVENTORY = "INVENTORY", "Inventory"


class AccountKind(models.TextChoices):
    """Tag identifying which of the five account models a reference points to."""
    GENERAL_LEDGER = "GL", "General ledger"
    RECEIVABLE = "AR", "Receivable"
    PAYABLE = "AP", "Payable"
    BANK = "BANK", "Bank"
    INVENTORY = "INV", "Inventory"

    @classmethod
    def for_subsidiary_type(cls, subsidiary_type):
        """Kind of the subsidiaries a controlling account owns (None for NONE)."""
        return _KIND_BY_SUBSIDIARY_TYPE.get(subsidiary_type)


_KIND_BY_SUBSIDIARY_TYPE = {
    SubsidiaryType.RECEIVABLE: AccountKind.RECEIVABLE,
    SubsidiaryType.PAYABLE: AccountKind.PAYABLE,
    SubsidiaryType.BANK: AccountKind.BANK,
    SubsidiaryType.INVENTORY: AccountKind.INVENTORY,
}

# Short-code resolution order.
KIND_PRIORITY = (
    AccountKind.GENERAL_LEDGER,
    AccountKind.RECEIVABLE,
    AccountKind.PAYABLE,
    AccountKind.BANK,
    AccountKind.INVENTORY,
)


# =============================================================================
# Account Group
# =============================================================================

class AccountGroup(models.Model):
    """
    Mid-level grouping under an account type, e.g. 10.15 "Cash & Banks".
    """

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="account_groups",
    )
    account_type = models.CharField(max_length=10, choices=AccountType.choices)
    group_number = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(99)],
    )
    name = models.CharField(max_length=100)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["business", "account_type", "group_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "account_type", "group_number"],
                name="uniq_account_group_number",
            ),
            models.CheckConstraint(
                condition=models.Q(group_number__lte=99),
                name="chk_account_group_number_range",
            ),
        ]

    def __str__(self):
        return f"{self.formatted_number} {self.name}"

    @property
    def type_number(self) -> int:
        return AccountType(self.account_type).number

    @property
    def formatted_number(self) -> str:
        return f"{self.type_number:02d}.{self.group_number:02d}"


# =============================================================================
# General Ledger
# =============================================================================

class GeneralLedgerAccount(models.Model):
    """
    General-ledger account, formatted TT.GG.AAAA.

    subsidiary_type NONE means a posting account. Any other value makes
    this a controlling account for subsidiaries of that kind.
    """

    kind = AccountKind.GENERAL_LEDGER

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="gl_accounts",
    )
    group = models.ForeignKey(
        AccountGroup,
        on_delete=models.PROTECT,
        related_name="accounts",
    )
    account_number = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(9999)],
    )
    short_code = models.CharField(max_length=20)
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True, default="")
    subsidiary_type = models.CharField(
        max_length=12,
        choices=SubsidiaryType.choices,
        default=SubsidiaryType.NONE,
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["group", "account_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["group", "account_number"],
                name="uniq_gl_account_number",
            ),
            models.UniqueConstraint(
                fields=["business", "short_code"],
                name="uniq_gl_account_short_code",
            ),
            models.CheckConstraint(
                condition=models.Q(account_number__lte=9999),
                name="chk_gl_account_number_range",
            ),
        ]

    def __str__(self):
        return f"{self.formatted_number} {self.name}"

    @property
    def account_type(self) -> str:
        return self.group.account_type

    @property
    def formatted_number(self) -> str:
        return f"{self.group.formatted_number}.{self.account_number:04d}"

    @property
    def is_controlling(self) -> bool:
        return self.subsidiary_type != SubsidiaryType.NONE

    @property
    def is_posting_account(self) -> bool:
        return not self.is_controlling

    @property
    def controlling_account(self):
        """A general-ledger account is its own controlling account."""
        return self

    @property
    def display_name(self) -> str:
        return self.name


# =============================================================================
# Subsidiary Ledgers
# =============================================================================

class SubsidiaryAccount(models.Model):
    """
    Shared shape of the four subsidiary kinds, formatted TT.GG.AAAA.SS.

    The controlling account's subsidiary_type must match the concrete
    kind; save() refuses anything else.
    """

    kind = None
    subsidiary_type = None
    display_suffix = ""
    # Kind-specific text fields that search() also matches.
    search_fields = ()

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="+",
    )
    controlling_account = models.ForeignKey(
        GeneralLedgerAccount,
        on_delete=models.PROTECT,
        related_name="%(class)ss",
    )
    subsidiary_number = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(99)],
    )
    short_code = models.CharField(max_length=20)
    name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True
        ordering = ["controlling_account", "subsidiary_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["controlling_account", "subsidiary_number"],
                name="uniq_%(class)s_number",
            ),
            models.UniqueConstraint(
                fields=["business", "short_code"],
                name="uniq_%(class)s_short_code",
            ),
            models.CheckConstraint(
                condition=models.Q(subsidiary_number__lte=99),
                name="chk_%(class)s_number_range",
            ),
        ]

    def __str__(self):
        return f"{self.formatted_number} {self.display_name}"

    def save(self, *args, **kwargs):
        controlling = self.controlling_account
        if controlling.subsidiary_type != self.subsidiary_type:
            raise ValidationError(
                f"Account {controlling.formatted_number} controls "
                f"{controlling.subsidiary_type} subsidiaries, not {self.subsidiary_type}.",
                entity="GeneralLedgerAccount",
                entity_id=controlling.pk,
            )
        if controlling.business_id != self.business_id:
            raise ValidationError(
                "Controlling account belongs to another business.",
                entity="GeneralLedgerAccount",
                entity_id=controlling.pk,
            )
        super().save(*args, **kwargs)

    @property
    def account_type(self) -> str:
        return self.controlling_account.account_type

    @property
    def formatted_number(self) -> str:
        return f"{self.controlling_account.formatted_number}.{self.subsidiary_number:02d}"

    @property
    def is_controlling(self) -> bool:
        return False

    @property
    def is_posting_account(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return f"{self.name}{self.display_suffix}"


class ReceivableAccount(SubsidiaryAccount):
    """Customer balance under an A/R controlling account."""

    kind = AccountKind.RECEIVABLE
    subsidiary_type = SubsidiaryType.RECEIVABLE
    display_suffix = " (A/R)"
    search_fields = ("counterparty_name",)

    counterparty_name = models.CharField(max_length=255, blank=True, default="")


class PayableAccount(SubsidiaryAccount):
    """Vendor balance under an A/P controlling account."""

    kind = AccountKind.PAYABLE
    subsidiary_type = SubsidiaryType.PAYABLE
    display_suffix = " (A/P)"
    search_fields = ("counterparty_name",)

    counterparty_name = models.CharField(max_length=255, blank=True, default="")


class BankAccount(SubsidiaryAccount):
    kind = AccountKind.BANK
    subsidiary_type = SubsidiaryType.BANK
    display_suffix = " (Bank)"
    search_fields = ("bank_name",)

    bank_name = models.CharField(max_length=100, blank=True, default="")
    bank_account_number = models.CharField(max_length=50, blank=True, default="")
    routing_number = models.CharField(max_length=20, blank=True, default="")


class InventoryAccount(SubsidiaryAccount):
    kind = AccountKind.INVENTORY
    subsidiary_type = SubsidiaryType.INVENTORY
    display_suffix = " (Inv)"
    search_fields = ("sku",)

    sku = models.CharField(max_length=50, blank=True, default="")
    unit_of_measure = models.CharField(max_length=20, blank=True, default="")
    standard_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )


ACCOUNT_MODELS = {
    AccountKind.GENERAL_LEDGER: GeneralLedgerAccount,
    AccountKind.RECEIVABLE: ReceivableAccount,
    AccountKind.PAYABLE: PayableAccount,
    AccountKind.BANK: BankAccount,
    AccountKind.INVENTORY: InventoryAccount,
}
