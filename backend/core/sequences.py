# core/sequences.py
"""
Gapless number issuance.

Lock protocol
=============
1. The caller is inside a transaction (get_next opens one if needed and
   joins the caller's otherwise).
2. lock_sequence() takes an exclusive row lock with SELECT ... FOR UPDATE.
   A missing row is inserted (starting at 1) inside a savepoint; the
   loser of a concurrent insert falls back to locking the winner's row.
3. The current value is returned and value + 1 written back.
4. The lock is released when the OUTERMOST transaction commits or rolls
   back. A rollback also discards the increment, so a number is never
   reused and only skipped when the caller's own work is abandoned.

Callers for different (business, key) pairs touch different rows and
never wait on each other.

Formatting is separate: format_number("JE", 7) -> "JE-0007".
"""

import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from business.models import Business
from core.exceptions import NotFound
from core.models import NumberSequence

logger = logging.getLogger(__name__)


def lock_sequence(business_id: int, sequence_key: str, using: str = None) -> NumberSequence:
    """
    Return the sequence row, exclusively locked for the current transaction.

    Raises TransactionManagementError when called outside an atomic block,
    since the lock would be released as soon as the SELECT returned.
    """
    connection = transaction.get_connection(using)
    if not connection.in_atomic_block:
        raise transaction.TransactionManagementError(
            "lock_sequence() must run inside transaction.atomic(); "
            "the row lock lives only as long as the enclosing transaction."
        )

    queryset = NumberSequence.objects.using(connection.alias)
    try:
        return queryset.select_for_update().get(
            business_id=business_id,
            sequence_key=sequence_key,
        )
    except NumberSequence.DoesNotExist:
        pass

    if not Business.objects.using(connection.alias).filter(pk=business_id).exists():
        raise NotFound("Business", business_id)

    try:
        with transaction.atomic(using=connection.alias):
            return queryset.create(
                business_id=business_id,
                sequence_key=sequence_key,
                next_number=1,
            )
    except IntegrityError:
        # A concurrent caller created the row first; wait for its lock.
        return queryset.select_for_update().get(
            business_id=business_id,
            sequence_key=sequence_key,
        )


def get_next(business_id: int, sequence_key: str, using: str = None) -> int:
    """Issue the next number for (business, key). First call returns 1."""
    with transaction.atomic(using=using):
        sequence = lock_sequence(business_id, sequence_key, using=using)
        value = sequence.next_number
        sequence.next_number = value + 1
        sequence.save(update_fields=["next_number", "updated_at"])

    logger.debug(
        "Issued sequence number",
        extra={"business_id": business_id, "sequence_key": sequence_key, "number": value},
    )
    return value


def format_number(prefix: str, number: int, padding: int = None) -> str:
    """Render a document number as PREFIX-000N."""
    if padding is None:
        padding = getattr(settings, "LEDGER_SEQUENCE_PADDING", 4)
    return f"{prefix}-{number:0{padding}d}"
