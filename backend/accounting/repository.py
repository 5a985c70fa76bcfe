# accounting/repository.py
"""
Account lookups, one implementation per storage backend.

Every lookup is scoped to an explicit business id and parameterized by
AccountKind, so callers (the resolver, the posting engine) never branch
on model classes:

    repo = DjangoAccountRepository()
    bank = repo.find_by_number(business.id, AccountKind.BANK, 10, 15, 100, 1)

Backends:
- DjangoAccountRepository: the ORM, optionally pinned to a database alias
- InMemoryAccountRepository: plain instances held in a dict, for tests
  and for tools that work on a chart before it is saved
"""

from typing import Iterable, Optional, Protocol, Union

from django.db.models import Q

from accounting.models import (
    ACCOUNT_MODELS,
    AccountKind,
    AccountType,
    BankAccount,
    GeneralLedgerAccount,
    InventoryAccount,
    PayableAccount,
    ReceivableAccount,
)


Account = Union[
    GeneralLedgerAccount,
    ReceivableAccount,
    PayableAccount,
    BankAccount,
    InventoryAccount,
]


class AccountRepository(Protocol):
    def get(self, business_id: int, kind: str, account_id: int) -> Optional[Account]:
        ...

    def find_by_short_code(self, business_id: int, kind: str, short_code: str) -> Optional[Account]:
        ...

    def find_by_number(
        self,
        business_id: int,
        kind: str,
        type_number: int,
        group_number: int,
        account_number: int,
        subsidiary_number: Optional[int] = None,
    ) -> Optional[Account]:
        ...

    def search(self, business_id: int, kind: str, query: str) -> list:
        ...


def number_segments(account) -> tuple:
    """(type, group, account[, subsidiary]) numbers of an account."""
    gl = account.controlling_account
    segments = (gl.group.type_number, gl.group.group_number, gl.account_number)
    if account.kind == AccountKind.GENERAL_LEDGER:
        return segments
    return segments + (account.subsidiary_number,)


def _search_fields(kind) -> tuple:
    return ("short_code", "name") + tuple(getattr(ACCOUNT_MODELS[kind], "search_fields", ()))


# =============================================================================
# Django ORM
# =============================================================================

class DjangoAccountRepository:
    """Account lookups against the database."""

    def __init__(self, using: str = None):
        self.using = using

    def _queryset(self, kind, business_id):
        queryset = ACCOUNT_MODELS[kind].objects.using(self.using).filter(business_id=business_id)
        if kind == AccountKind.GENERAL_LEDGER:
            return queryset.select_related("group")
        return queryset.select_related("controlling_account__group")

    def get(self, business_id, kind, account_id):
        return self._queryset(kind, business_id).filter(pk=account_id).first()

    def find_by_short_code(self, business_id, kind, short_code):
        return self._queryset(kind, business_id).filter(short_code=short_code).first()

    def find_by_number(
        self,
        business_id,
        kind,
        type_number,
        group_number,
        account_number,
        subsidiary_number=None,
    ):
        account_type = AccountType.from_number(type_number)
        if account_type is None:
            return None

        is_gl = kind == AccountKind.GENERAL_LEDGER
        if is_gl != (subsidiary_number is None):
            return None

        prefix = "" if is_gl else "controlling_account__"
        filters = {
            f"{prefix}group__account_type": account_type,
            f"{prefix}group__group_number": group_number,
            f"{prefix}account_number": account_number,
        }
        if not is_gl:
            filters["subsidiary_number"] = subsidiary_number
        return self._queryset(kind, business_id).filter(**filters).first()

    def search(self, business_id, kind, query):
        condition = Q()
        for field in _search_fields(kind):
            condition |= Q(**{f"{field}__icontains": query})
        return list(
            self._queryset(kind, business_id).filter(condition).order_by("short_code", "pk")
        )


# =============================================================================
# In-memory
# =============================================================================

class InMemoryAccountRepository:
    """
    Account lookups over instances held in memory.

    Instances only need their relations attached (group, controlling
    account); nothing touches the database.
    """

    def __init__(self, accounts: Iterable = ()):
        self._accounts = {kind: [] for kind in AccountKind}
        for account in accounts:
            self.add(account)

    def add(self, account):
        self._accounts[account.kind].append(account)
        return account

    def _scoped(self, business_id, kind):
        return [a for a in self._accounts[kind] if a.business_id == business_id]

    def get(self, business_id, kind, account_id):
        for account in self._scoped(business_id, kind):
            if account.pk == account_id:
                return account
        return None

    def find_by_short_code(self, business_id, kind, short_code):
        for account in self._scoped(business_id, kind):
            if account.short_code == short_code:
                return account
        return None

    def find_by_number(
        self,
        business_id,
        kind,
        type_number,
        group_number,
        account_number,
        subsidiary_number=None,
    ):
        wanted = (type_number, group_number, account_number)
        if subsidiary_number is not None:
            wanted += (subsidiary_number,)
        for account in self._scoped(business_id, kind):
            if number_segments(account) == wanted:
                return account
        return None

    def search(self, business_id, kind, query):
        needle = query.lower()
        fields = _search_fields(kind)
        matches = [
            account
            for account in self._scoped(business_id, kind)
            if any(needle in (getattr(account, field, "") or "").lower() for field in fields)
        ]
        return sorted(matches, key=lambda a: (a.short_code, a.pk or 0))
