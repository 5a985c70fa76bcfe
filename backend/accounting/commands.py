# accounting/commands.py
"""
Command layer for the chart of accounts.

Pattern:
1. Load the business-scoped rows the command depends on (NotFound)
2. Apply business policies (can_*)
3. Perform the operation inside one transaction
4. Log the change and return the saved instance

Failures raise core.exceptions errors; nothing is saved on failure.
"""

import logging

from django.db import transaction

from accounting.models import (
    ACCOUNT_MODELS,
    AccountGroup,
    AccountKind,
    AccountType,
    GeneralLedgerAccount,
    SubsidiaryType,
)
from accounting.policies import (
    can_attach_subsidiary,
    can_change_subsidiary_type,
    can_delete_account_group,
    can_delete_gl_account,
    can_use_short_code,
)
from accounting.repository import DjangoAccountRepository
from business.models import Business
from core.exceptions import IllegalStateError, NotFound, ValidationError

logger = logging.getLogger(__name__)


def _get_business(business_id: int) -> Business:
    try:
        return Business.objects.get(pk=business_id)
    except Business.DoesNotExist:
        raise NotFound("Business", business_id)


def _check_range(value: int, upper: int, label: str, entity: str) -> None:
    if value is None or not 0 <= value <= upper:
        raise ValidationError(f"{label} must be between 0 and {upper}.", entity=entity)


def _check_short_code(business_id: int, short_code: str, entity: str) -> str:
    short_code = (short_code or "").strip()
    allowed, reason = can_use_short_code(DjangoAccountRepository(), business_id, short_code)
    if not allowed:
        raise ValidationError(reason, entity=entity)
    return short_code


def _lock_group(business_id: int, group_id: int) -> AccountGroup:
    group = AccountGroup.objects.select_for_update().filter(pk=group_id, business_id=business_id).first()
    if group is None:
        raise NotFound("AccountGroup", group_id)
    return group


def _lock_gl_account(business_id: int, account_id: int) -> GeneralLedgerAccount:
    account = (
        GeneralLedgerAccount.objects.select_for_update()
        .select_related("group")
        .filter(pk=account_id, business_id=business_id)
        .first()
    )
    if account is None:
        raise NotFound("GeneralLedgerAccount", account_id)
    return account


def _ensure(allowed: bool, reason: str, entity: str, entity_id: int) -> None:
    if not allowed:
        logger.warning(
            "Chart of accounts change rejected",
            extra={"entity": entity, "entity_id": entity_id, "reason": reason},
        )
        raise IllegalStateError(reason, entity=entity, entity_id=entity_id)


@transaction.atomic
def create_account_group(
    business_id: int,
    account_type: str,
    group_number: int,
    name: str,
    display_order: int = 0,
) -> AccountGroup:
    """
    Create an account group (TT.GG).

    Args:
        business_id: Owning business
        account_type: AccountType value, e.g. AccountType.ASSET
        group_number: 0-99, unique per (business, type)
        name: Display name
    """
    business = _get_business(business_id)

    if account_type not in AccountType.values:
        raise ValidationError(f"Unknown account type {account_type!r}.", entity="AccountGroup")
    _check_range(group_number, 99, "Group number", "AccountGroup")

    if AccountGroup.objects.filter(
        business=business,
        account_type=account_type,
        group_number=group_number,
    ).exists():
        raise ValidationError(
            f"Group {AccountType(account_type).number:02d}.{group_number:02d} already exists.",
            entity="AccountGroup",
        )

    group = AccountGroup.objects.create(
        business=business,
        account_type=account_type,
        group_number=group_number,
        name=name,
        display_order=display_order,
    )
    logger.info(
        "Account group created",
        extra={"business_id": business.id, "group_id": group.id, "number": group.formatted_number},
    )
    return group


@transaction.atomic
def create_gl_account(
    business_id: int,
    group_id: int,
    account_number: int,
    short_code: str,
    name: str,
    description: str = "",
    subsidiary_type: str = SubsidiaryType.NONE,
) -> GeneralLedgerAccount:
    """
    Create a general-ledger account (TT.GG.AAAA).

    A subsidiary_type other than NONE makes it a controlling account.
    """
    business = _get_business(business_id)
    try:
        group = AccountGroup.objects.get(pk=group_id, business=business)
    except AccountGroup.DoesNotExist:
        raise NotFound("AccountGroup", group_id)

    if subsidiary_type not in SubsidiaryType.values:
        raise ValidationError(f"Unknown subsidiary type {subsidiary_type!r}.", entity="GeneralLedgerAccount")
    _check_range(account_number, 9999, "Account number", "GeneralLedgerAccount")
    short_code = _check_short_code(business.id, short_code, "GeneralLedgerAccount")

    if group.accounts.filter(account_number=account_number).exists():
        raise ValidationError(
            f"Account {group.formatted_number}.{account_number:04d} already exists.",
            entity="GeneralLedgerAccount",
        )

    account = GeneralLedgerAccount.objects.create(
        business=business,
        group=group,
        account_number=account_number,
        short_code=short_code,
        name=name,
        description=description,
        subsidiary_type=subsidiary_type,
    )
    logger.info(
        "General ledger account created",
        extra={
            "business_id": business.id,
            "account_id": account.id,
            "number": account.formatted_number,
            "subsidiary_type": subsidiary_type,
        },
    )
    return account


@transaction.atomic
def create_subsidiary_account(
    business_id: int,
    kind: str,
    controlling_account_id: int,
    subsidiary_number: int,
    short_code: str,
    name: str,
    **details,
):
    """
    Create a receivable, payable, bank or inventory account (TT.GG.AAAA.SS).

    Args:
        kind: AccountKind of the subsidiary (not GENERAL_LEDGER)
        controlling_account_id: GL account whose subsidiary_type matches kind
        subsidiary_number: 0-99, unique under the controlling account
        **details: Kind-specific fields (bank_name, sku, counterparty_name, ...)
    """
    if kind not in AccountKind.values or kind == AccountKind.GENERAL_LEDGER:
        raise ValidationError(f"{kind!r} is not a subsidiary account kind.", entity="Account")
    model = ACCOUNT_MODELS[AccountKind(kind)]

    business = _get_business(business_id)
    try:
        controlling = GeneralLedgerAccount.objects.select_related("group").get(
            pk=controlling_account_id,
            business=business,
        )
    except GeneralLedgerAccount.DoesNotExist:
        raise NotFound("GeneralLedgerAccount", controlling_account_id)

    allowed, reason = can_attach_subsidiary(controlling, kind)
    if not allowed:
        raise ValidationError(reason, entity="GeneralLedgerAccount", entity_id=controlling.id)

    _check_range(subsidiary_number, 99, "Subsidiary number", model.__name__)
    short_code = _check_short_code(business.id, short_code, model.__name__)

    if model.objects.filter(
        controlling_account=controlling,
        subsidiary_number=subsidiary_number,
    ).exists():
        raise ValidationError(
            f"Account {controlling.formatted_number}.{subsidiary_number:02d} already exists.",
            entity=model.__name__,
        )

    unknown = set(details) - set(f.name for f in model._meta.concrete_fields)
    if unknown:
        raise ValidationError(
            f"Unknown fields for {model.__name__}: {', '.join(sorted(unknown))}.",
            entity=model.__name__,
        )

    account = model.objects.create(
        business=business,
        controlling_account=controlling,
        subsidiary_number=subsidiary_number,
        short_code=short_code,
        name=name,
        **details,
    )
    logger.info(
        "Subsidiary account created",
        extra={
            "business_id": business.id,
            "kind": kind,
            "account_id": account.id,
            "number": account.formatted_number,
        },
    )
    return account


# =============================================================================
# Chart maintenance
# =============================================================================

@transaction.atomic
def update_account_group(
    business_id: int,
    group_id: int,
    *,
    name: str = None,
    display_order: int = None,
    is_active: bool = None,
) -> AccountGroup:
    """Rename, reorder or (de)activate a group. Type and number are fixed."""
    group = _lock_group(business_id, group_id)

    if name is not None:
        if not name.strip():
            raise ValidationError("Name is required.", entity="AccountGroup", entity_id=group.id)
        group.name = name
    if display_order is not None:
        group.display_order = display_order
    if is_active is not None:
        group.is_active = is_active
    group.save()

    logger.info(
        "Account group updated",
        extra={"business_id": business_id, "group_id": group.id, "number": group.formatted_number},
    )
    return group


@transaction.atomic
def delete_account_group(business_id: int, group_id: int) -> None:
    """Delete a group that has no accounts."""
    group = _lock_group(business_id, group_id)
    _ensure(*can_delete_account_group(group), "AccountGroup", group.id)

    number = group.formatted_number
    group.delete()
    logger.info(
        "Account group deleted",
        extra={"business_id": business_id, "group_id": group_id, "number": number},
    )


@transaction.atomic
def update_gl_account(
    business_id: int,
    account_id: int,
    *,
    short_code: str = None,
    name: str = None,
    description: str = None,
    subsidiary_type: str = None,
    is_active: bool = None,
) -> GeneralLedgerAccount:
    """
    Change a general-ledger account. Arguments left as None keep their value.

    The number and group are fixed. A new short code must be unused across
    all account kinds. Deactivating an account stops further postings to it.
    """
    account = _lock_gl_account(business_id, account_id)

    if short_code is not None and short_code.strip() != account.short_code:
        account.short_code = _check_short_code(business_id, short_code, "GeneralLedgerAccount")
    if name is not None:
        if not name.strip():
            raise ValidationError("Name is required.", entity="GeneralLedgerAccount", entity_id=account.id)
        account.name = name
    if description is not None:
        account.description = description
    if subsidiary_type is not None:
        if subsidiary_type not in SubsidiaryType.values:
            raise ValidationError(
                f"Unknown subsidiary type {subsidiary_type!r}.",
                entity="GeneralLedgerAccount",
                entity_id=account.id,
            )
        _ensure(*can_change_subsidiary_type(account, subsidiary_type), "GeneralLedgerAccount", account.id)
        account.subsidiary_type = subsidiary_type
    if is_active is not None:
        account.is_active = is_active
    account.save()

    logger.info(
        "General ledger account updated",
        extra={
            "business_id": business_id,
            "account_id": account.id,
            "number": account.formatted_number,
            "is_active": account.is_active,
        },
    )
    return account


@transaction.atomic
def delete_gl_account(business_id: int, account_id: int) -> None:
    """
    Delete an account with no subsidiaries, no journal lines and no
    opening balance. Its empty ledger rows go with it.
    """
    account = _lock_gl_account(business_id, account_id)
    _ensure(*can_delete_gl_account(account), "GeneralLedgerAccount", account.id)

    number = account.formatted_number
    account.ledgers.all().delete()
    account.delete()
    logger.info(
        "General ledger account deleted",
        extra={"business_id": business_id, "account_id": account_id, "number": number},
    )
