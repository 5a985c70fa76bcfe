# accounting/resolver.py
"""
Chart-of-accounts resolver.

Turns what a user typed into an account:

    resolve(repo, business_id, "CASH")           # short code
    resolve(repo, business_id, "10.15.0100")     # general-ledger number
    resolve(repo, business_id, "10.15.0100.01")  # subsidiary number

All functions are pure over an AccountRepository. No match, and any
malformed number, yields None (or an empty list); nothing here raises.
Controlling accounts never resolve, since they cannot take postings.
"""

from typing import Optional

from accounting.models import KIND_PRIORITY, AccountKind

SEPARATOR = "."


def resolve(repository, business_id: int, text: str):
    """
    Resolve free text to a posting account.

    Text containing the separator is tried as a formatted number first;
    short codes may contain dots too, so a miss falls back to short code.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None

    if SEPARATOR in text:
        account = resolve_by_formatted_number(repository, business_id, text)
        if account is not None:
            return account
    return resolve_by_short_code(repository, business_id, text)


def resolve_by_short_code(repository, business_id: int, code: str):
    """First match in KIND_PRIORITY order. A controlling GL match resolves to None."""
    for kind in KIND_PRIORITY:
        account = repository.find_by_short_code(business_id, kind, code)
        if account is None:
            continue
        if kind == AccountKind.GENERAL_LEDGER and account.is_controlling:
            return None
        return account
    return None


def parse_formatted_number(number: str) -> Optional[tuple]:
    """
    Split "TT.GG.AAAA[.SS]" into integers.

    Returns None unless there are three or four segments made of ASCII digits.
    """
    parts = number.strip().split(SEPARATOR)
    if len(parts) not in (3, 4):
        return None
    if not all(part.isascii() and part.isdigit() for part in parts):
        return None
    return tuple(int(part) for part in parts)


def resolve_by_formatted_number(repository, business_id: int, number: str):
    segments = parse_formatted_number(number)
    if segments is None:
        return None

    type_number, group_number, account_number = segments[:3]
    gl_account = repository.find_by_number(
        business_id,
        AccountKind.GENERAL_LEDGER,
        type_number,
        group_number,
        account_number,
    )
    if gl_account is None:
        return None

    if len(segments) == 3:
        return gl_account if gl_account.is_posting_account else None

    kind = AccountKind.for_subsidiary_type(gl_account.subsidiary_type)
    if kind is None:
        return None
    return repository.find_by_number(
        business_id,
        kind,
        type_number,
        group_number,
        account_number,
        segments[3],
    )


def search_all(repository, business_id: int, query: str) -> list:
    """
    Case-insensitive substring search across all five kinds.

    General-ledger results are limited to posting accounts and
    deduplicated; subsidiary kinds never collide so are appended as-is.
    """
    query = (query or "").strip()
    if not query:
        return []

    results = []
    seen = set()
    for account in repository.search(business_id, AccountKind.GENERAL_LEDGER, query):
        if account.is_posting_account and account.pk not in seen:
            seen.add(account.pk)
            results.append(account)

    for kind in KIND_PRIORITY[1:]:
        results.extend(repository.search(business_id, kind, query))
    return results
