# ledger/posting.py
"""
Journal posting engine.

create_journal() is the single choke point that writes journals.

Algorithm:
1. Resolve the business (NotFound)
2. Find the first OPEN period ending on or after the entry date
   (IllegalStateError if none)
3. The period must accept entries (IllegalStateError)
4. Closing entries need a CLOSING year; others an OPEN one (IllegalStateError)
5. Debits must equal credits exactly (ValidationError)
6. A reversed journal must exist in the same business (NotFound)
7. Every line's account must exist and take postings (NotFound / ValidationError)
8. Persist header + lines atomically; posting_date = period start date

There is no update path. Corrections are new journals with
reverses_journal_id set.
"""

import logging

from django.db import transaction

from accounting.models import ACCOUNT_MODELS, AccountKind
from accounting.policies import assert_can_post_to_account
from accounting.repository import DjangoAccountRepository
from business.models import Business
from core.exceptions import IllegalStateError, NotFound, ValidationError
from ledger.fiscal_calendar import find_posting_period
from ledger.models import EntryType, Journal, JournalLine
from ledger.policies import can_accept_entries, can_post_journal_type
from ledger.requests import JournalLineRequest, JournalRequest

logger = logging.getLogger(__name__)


def _build_lines(business_id: int, request: JournalRequest, repository) -> list:
    lines = []
    for line in request.lines:
        kind = AccountKind(line.account_kind)
        account = repository.get(business_id, kind, line.account_id)
        if account is None:
            raise NotFound(ACCOUNT_MODELS[kind].__name__, line.account_id)
        assert_can_post_to_account(account)

        lines.append(
            JournalLine(
                account_kind=kind,
                account_id=account.pk,
                gl_account_id=account.controlling_account.pk,
                entry_type=line.entry_type,
                amount=line.amount,
                description=line.description,
            )
        )
    return lines


@transaction.atomic
def create_journal(request: JournalRequest, repository=None) -> Journal:
    """
    Post a journal.

    Args:
        request: Validated JournalRequest (non-empty, positive amounts)
        repository: AccountRepository used to check line accounts
                    (defaults to the ORM)

    Returns:
        The persisted, immutable Journal
    """
    if repository is None:
        repository = DjangoAccountRepository()

    try:
        business = Business.objects.get(pk=request.business_id)
    except Business.DoesNotExist:
        raise NotFound("Business", request.business_id)

    period = find_posting_period(business.id, request.entry_date, request.journal_type)
    if period is None:
        logger.warning(
            "No open fiscal period for journal",
            extra={"business_id": business.id, "entry_date": request.entry_date.isoformat()},
        )
        raise IllegalStateError(
            f"No open fiscal period on or after {request.entry_date.isoformat()}.",
            entity="Business",
            entity_id=business.id,
        )

    allowed, reason = can_accept_entries(period)
    if not allowed:
        logger.warning(
            "Fiscal period rejected journal",
            extra={"business_id": business.id, "period_id": period.id, "reason": reason},
        )
        raise IllegalStateError(reason, entity="FiscalPeriod", entity_id=period.id)

    allowed, reason = can_post_journal_type(period, request.journal_type)
    if not allowed:
        logger.warning(
            "Journal type rejected for fiscal year",
            extra={
                "business_id": business.id,
                "journal_type": request.journal_type,
                "fiscal_year_id": period.fiscal_year_id,
            },
        )
        raise IllegalStateError(reason, entity="FiscalYear", entity_id=period.fiscal_year_id)

    if not request.is_balanced:
        logger.warning(
            "Unbalanced journal rejected",
            extra={
                "business_id": business.id,
                "source_document_id": request.source_document_id,
                "debits": str(request.total_debits),
                "credits": str(request.total_credits),
            },
        )
        raise ValidationError(
            f"Journal is not balanced. Debits={request.total_debits} Credits={request.total_credits}",
            entity="Journal",
            entity_id=request.source_document_id,
        )

    reverses = None
    if request.reverses_journal_id is not None:
        reverses = Journal.objects.filter(
            pk=request.reverses_journal_id,
            business=business,
        ).first()
        if reverses is None:
            raise NotFound("Journal", request.reverses_journal_id)

    lines = _build_lines(business.id, request, repository)

    journal = Journal.objects.create_posted(
        business=business,
        fiscal_period=period,
        journal_type=request.journal_type,
        entry_date=request.entry_date,
        posting_date=period.start_date,
        source_document_id=request.source_document_id,
        reference=request.reference,
        description=request.description,
        reverses_journal=reverses,
        lines=lines,
    )

    logger.info(
        "Journal posted",
        extra={
            "business_id": business.id,
            "journal_id": journal.id,
            "journal_type": journal.journal_type,
            "period_id": period.id,
            "posting_date": journal.posting_date.isoformat(),
            "total": str(request.total_debits),
            "line_count": len(lines),
        },
    )
    return journal


# =============================================================================
# Reversals
# =============================================================================

def reversal_request(journal: Journal, entry_date, description: str = None) -> JournalRequest:
    """Request for a journal that swaps every debit and credit of `journal`."""
    lines = [
        JournalLineRequest(
            account_id=line.account_id,
            entry_type=EntryType.CREDIT if line.entry_type == EntryType.DEBIT else EntryType.DEBIT,
            amount=line.amount,
            account_kind=line.account_kind,
            description=line.description,
        )
        for line in journal.lines.all()
    ]
    return JournalRequest(
        business_id=journal.business_id,
        entry_date=entry_date,
        source_document_id=journal.source_document_id,
        journal_type=journal.journal_type,
        lines=lines,
        reference=journal.reference,
        description=description or f"Reversal of journal {journal.pk}",
        reverses_journal_id=journal.pk,
    )


@transaction.atomic
def reverse_journal(business_id: int, journal_id: int, entry_date, description: str = None) -> Journal:
    """Post the reversing journal for journal_id. A journal is reversed at most once."""
    journal = Journal.objects.filter(pk=journal_id, business_id=business_id).first()
    if journal is None:
        raise NotFound("Journal", journal_id)
    if journal.reversals.exists():
        raise IllegalStateError(
            f"Journal {journal.pk} has already been reversed.",
            entity="Journal",
            entity_id=journal.pk,
        )
    return create_journal(reversal_request(journal, entry_date, description))
