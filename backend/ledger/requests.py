# ledger/requests.py
"""
Journal creation request.

The only input the posting engine accepts. Both dataclasses are frozen
and validate in __post_init__, so an invalid request (empty line list,
zero or negative amount, unknown journal type) never reaches the engine:

    request = JournalRequest(
        business_id=business.id,
        entry_date=date(2024, 3, 5),
        source_document_id=document.id,
        journal_type=JournalType.JOURNAL_ENTRY,
        lines=[
            JournalLineRequest.debit(cash.id, Decimal("100.00")),
            JournalLineRequest.credit(revenue.id, Decimal("100.00")),
        ],
    )

Balance is checked by the engine, which needs the period first.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from accounting.models import AccountKind
from core.exceptions import ValidationError
from ledger.models import ZERO, EntryType, JournalType

MONEY_PLACES = 2


def to_money(value, entity: str = "JournalLine") -> Decimal:
    """Coerce to Decimal, rejecting non-finite values and sub-cent precision."""
    if value is None:
        raise ValidationError("Amount is required.", entity=entity)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Amount {value!r} is not a number.", entity=entity)
    if not amount.is_finite():
        raise ValidationError(f"Amount {value!r} is not a number.", entity=entity)
    if amount.as_tuple().exponent < -MONEY_PLACES:
        raise ValidationError(
            f"Amount {amount} has more than {MONEY_PLACES} decimal places.",
            entity=entity,
        )
    return amount


@dataclass(frozen=True)
class JournalLineRequest:
    account_id: int
    entry_type: str
    amount: Decimal
    account_kind: str = AccountKind.GENERAL_LEDGER
    description: str = ""

    def __post_init__(self):
        if self.account_id is None:
            raise ValidationError("Journal line account is required.", entity="JournalLine")
        if self.account_kind not in AccountKind.values:
            raise ValidationError(f"Unknown account kind {self.account_kind!r}.", entity="JournalLine")
        if self.entry_type not in EntryType.values:
            raise ValidationError(f"Unknown entry type {self.entry_type!r}.", entity="JournalLine")

        amount = to_money(self.amount)
        if amount <= 0:
            raise ValidationError(
                f"Journal line amount must be positive, got {amount}.",
                entity="JournalLine",
            )
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "description", self.description or "")

    @classmethod
    def debit(cls, account_id, amount, description="", account_kind=AccountKind.GENERAL_LEDGER):
        return cls(account_id, EntryType.DEBIT, amount, account_kind, description)

    @classmethod
    def credit(cls, account_id, amount, description="", account_kind=AccountKind.GENERAL_LEDGER):
        return cls(account_id, EntryType.CREDIT, amount, account_kind, description)

    @classmethod
    def from_signed(cls, account_id, signed_amount, description="", account_kind=AccountKind.GENERAL_LEDGER):
        """Positive amounts become debits, negative amounts credits; zero is rejected."""
        signed = to_money(signed_amount)
        if signed == 0:
            raise ValidationError("Journal line amount cannot be zero.", entity="JournalLine")
        entry_type = EntryType.DEBIT if signed > 0 else EntryType.CREDIT
        return cls(account_id, entry_type, abs(signed), account_kind, description)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.entry_type == EntryType.DEBIT else -self.amount


@dataclass(frozen=True)
class JournalRequest:
    business_id: int
    entry_date: date
    source_document_id: Optional[int]
    journal_type: str
    lines: tuple
    reference: str = ""
    description: str = ""
    reverses_journal_id: Optional[int] = None

    def __post_init__(self):
        if self.business_id is None:
            raise ValidationError("Business is required.", entity="Journal")
        if not isinstance(self.entry_date, date):
            raise ValidationError("Entry date is required.", entity="Journal")
        if self.journal_type not in JournalType.values:
            raise ValidationError(f"Unknown journal type {self.journal_type!r}.", entity="Journal")

        lines = tuple(self.lines or ())
        if not lines:
            raise ValidationError("A journal needs at least one line.", entity="Journal")
        for line in lines:
            if not isinstance(line, JournalLineRequest):
                raise ValidationError("Journal lines must be JournalLineRequest values.", entity="Journal")
        object.__setattr__(self, "lines", lines)
        object.__setattr__(self, "reference", self.reference or "")
        object.__setattr__(self, "description", self.description or "")

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.entry_type == EntryType.DEBIT), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.entry_type == EntryType.CREDIT), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits
