# accounting/policies.py
"""
Business policy functions for the chart of accounts.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the command's job.

Usage:
    from accounting.policies import can_post_to_account

    # Option 1: Check and get boolean + reason
    allowed, reason = can_post_to_account(account)
    if not allowed:
        ...

    # Option 2: Assert and raise on failure
    assert_can_post_to_account(account)  # raises ValidationError
"""

from accounting.models import ACCOUNT_MODELS, KIND_PRIORITY, AccountKind, SubsidiaryType
from core.exceptions import ValidationError


def can_post_to_account(account) -> tuple[bool, str]:
    """
    Check if journal lines may reference this account.

    Controlling accounts only aggregate their subsidiaries.
    """
    if not account.is_active:
        return False, f"Account {account.formatted_number} is inactive."
    if account.is_controlling:
        return False, (
            f"Account {account.formatted_number} is a controlling account; "
            "post to one of its subsidiaries instead."
        )
    return True, ""


def assert_can_post_to_account(account) -> None:
    allowed, reason = can_post_to_account(account)
    if not allowed:
        raise ValidationError(reason, entity=type(account).__name__, entity_id=account.pk)


def can_attach_subsidiary(controlling, kind: str) -> tuple[bool, str]:
    """Check that a controlling account owns subsidiaries of this kind."""
    if controlling.subsidiary_type == SubsidiaryType.NONE:
        return False, f"Account {controlling.formatted_number} is a posting account and has no subsidiaries."
    if AccountKind.for_subsidiary_type(controlling.subsidiary_type) != kind:
        return False, (
            f"Account {controlling.formatted_number} controls "
            f"{controlling.subsidiary_type} accounts, not {AccountKind(kind).label}."
        )
    return True, ""


def can_use_short_code(repository, business_id: int, short_code: str) -> tuple[bool, str]:
    """Short codes are unique per business across all account kinds."""
    if not short_code or not short_code.strip():
        return False, "Short code is required."
    for kind in KIND_PRIORITY:
        existing = repository.find_by_short_code(business_id, kind, short_code)
        if existing is not None:
            return False, f"Short code '{short_code}' is already used by {existing.formatted_number}."
    return True, ""


# =============================================================================
# Chart Maintenance Policies
# =============================================================================

def subsidiary_count(account) -> int:
    """Number of subsidiary accounts (any kind) under a general-ledger account."""
    return sum(
        ACCOUNT_MODELS[kind].objects.filter(controlling_account=account).count()
        for kind in KIND_PRIORITY
        if kind != AccountKind.GENERAL_LEDGER
    )


def can_delete_account_group(group) -> tuple[bool, str]:
    count = group.accounts.count()
    if count:
        return False, f"Account group {group.formatted_number} still has {count} account(s)."
    return True, ""


def can_change_subsidiary_type(account, subsidiary_type: str) -> tuple[bool, str]:
    """
    A controlling account keeps its kind while it owns subsidiaries, and a
    posting account with direct postings cannot become a controlling one.
    """
    if subsidiary_type == account.subsidiary_type:
        return True, ""
    count = subsidiary_count(account)
    if count:
        return False, (
            f"Account {account.formatted_number} has {count} subsidiary account(s); "
            "its subsidiary type cannot change."
        )
    if subsidiary_type != SubsidiaryType.NONE and account.journal_lines.exists():
        return False, (
            f"Account {account.formatted_number} has posted journal lines "
            "and cannot become a controlling account."
        )
    return True, ""


def can_delete_gl_account(account) -> tuple[bool, str]:
    """Only accounts that never reached the ledger can be deleted."""
    count = subsidiary_count(account)
    if count:
        return False, f"Account {account.formatted_number} has {count} subsidiary account(s)."
    if account.journal_lines.exists():
        return False, f"Account {account.formatted_number} has posted journal lines."
    if account.ledgers.exclude(opening_balance=0).exists():
        return False, f"Account {account.formatted_number} carries an opening balance."
    return True, ""
