# documents/commands.py
"""
Document lifecycle commands.

Every command runs in one transaction and locks the documents it moves
(SELECT ... FOR UPDATE, in id order for batches), so two callers cannot
post the same document twice.

Posting hands a JournalRequest to ledger.posting.create_journal() inside
the same transaction as the status change: the journal and the document
link are committed together or not at all.

Line input is a list of dicts:

    {"account_id": 12, "amount": "100.00"}                 signed amount
    {"account_id": 12, "debit": "100.00"}                  or debit / credit
    {"account_id": 3, "account_kind": "AR", "credit": 40, "description": "..."}
"""

import logging

from django.db import transaction
from django.utils import timezone

from accounting.models import AccountKind
from business.models import Business
from core.exceptions import IllegalStateError, NotFound, ValidationError
from core.sequences import format_number, get_next
from documents.kinds import build_journal_request, kind_for
from documents.models import Document, DocumentLine
from documents.policies import (
    can_complete_document,
    can_delete_document,
    can_edit_document,
    can_post_document,
    can_revert_document,
    can_void_document,
)
from ledger.models import FiscalYear, Journal
from ledger.posting import create_journal
from ledger.requests import JournalRequest, to_money

logger = logging.getLogger(__name__)

SUMMARY_DESCRIPTION = "Summary posting"


# =============================================================================
# Helpers
# =============================================================================

def _get_business(business_id: int) -> Business:
    try:
        return Business.objects.get(pk=business_id)
    except Business.DoesNotExist:
        raise NotFound("Business", business_id)


def _get_fiscal_year(business: Business, fiscal_year_id: int) -> FiscalYear:
    try:
        return FiscalYear.objects.get(pk=fiscal_year_id, business=business)
    except FiscalYear.DoesNotExist:
        raise NotFound("FiscalYear", fiscal_year_id)


def _lock_document(business_id: int, document_id: int) -> Document:
    document = (
        Document.objects.select_for_update()
        .filter(pk=document_id, business_id=business_id)
        .first()
    )
    if document is None:
        raise NotFound("Document", document_id)
    return document


def _ensure(check, document: Document) -> None:
    allowed, reason = check(document)
    if not allowed:
        logger.warning(
            "Document transition rejected",
            extra={"document_id": document.pk, "status": document.status, "reason": reason},
        )
        raise IllegalStateError(reason, entity="Document", entity_id=document.pk)


def _line_amount(data: dict, index: int):
    if "amount" in data:
        return to_money(data["amount"], entity="DocumentLine")
    debit = to_money(data.get("debit") or 0, entity="DocumentLine")
    credit = to_money(data.get("credit") or 0, entity="DocumentLine")
    if debit < 0 or credit < 0:
        raise ValidationError(
            f"Line {index}: debit and credit must not be negative; use a signed amount instead.",
            entity="DocumentLine",
        )
    if debit and credit:
        raise ValidationError(
            f"Line {index}: a line is either a debit or a credit, not both.",
            entity="DocumentLine",
        )
    return debit - credit


def _build_lines(document: Document, lines) -> list:
    built = []
    for index, data in enumerate(lines or (), start=1):
        account_kind = data.get("account_kind") or AccountKind.GENERAL_LEDGER
        if account_kind not in AccountKind.values:
            raise ValidationError(
                f"Line {index}: unknown account kind {account_kind!r}.",
                entity="DocumentLine",
            )
        built.append(
            DocumentLine(
                document=document,
                line_number=index,
                account_kind=account_kind,
                account_id=data.get("account_id"),
                amount=_line_amount(data, index),
                description=data.get("description") or "",
            )
        )
    return built


def _validate(kind, document: Document, lines: list) -> None:
    try:
        kind.validate(document, lines)
    except ValidationError as exc:
        logger.warning(
            "Document validation failed",
            extra={
                "document_id": document.pk,
                "document_number": document.document_number,
                "reason": exc.message,
            },
        )
        raise


def _prepare(document: Document) -> None:
    kind = kind_for(document.document_type)
    kind.prepare(document)
    if document.document_date is None:
        raise ValidationError("Document date is required.", entity="Document", entity_id=document.pk)


# =============================================================================
# Editing (OPEN documents)
# =============================================================================

@transaction.atomic
def create_document(
    business_id: int,
    document_type: str,
    document_date=None,
    lines=None,
    description: str = "",
    reference: str = "",
    fiscal_year_id: int = None,
) -> Document:
    """
    Create an OPEN document and assign its number.

    Args:
        business_id: Owning business
        document_type: DocumentType value with a registered kind
        document_date: Required except for closing entries, which take
                       the end date of fiscal_year_id
        lines: Line dicts (see module docstring); balance is checked on complete
        fiscal_year_id: Year being closed (closing entries only)

    Returns:
        The saved Document, numbered PREFIX-000N
    """
    business = _get_business(business_id)
    kind = kind_for(document_type)

    document = Document(
        business=business,
        document_type=document_type,
        document_date=document_date,
        description=description or "",
        reference=reference or "",
    )
    if fiscal_year_id is not None:
        document.fiscal_year = _get_fiscal_year(business, fiscal_year_id)
    _prepare(document)
    new_lines = _build_lines(document, lines)

    number = get_next(business.id, kind.prefix)
    document.document_number = format_number(kind.prefix, number)
    document.save()
    DocumentLine.objects.bulk_create(new_lines)

    logger.info(
        "Document created",
        extra={
            "business_id": business.id,
            "document_id": document.id,
            "document_number": document.document_number,
            "document_type": document_type,
        },
    )
    return document


@transaction.atomic
def update_document(
    business_id: int,
    document_id: int,
    *,
    document_date=None,
    lines=None,
    description: str = None,
    reference: str = None,
    fiscal_year_id: int = None,
) -> Document:
    """
    Change an OPEN document. Arguments left as None keep their value;
    passing lines replaces the whole line set.
    """
    document = _lock_document(business_id, document_id)
    _ensure(can_edit_document, document)

    if document_date is not None:
        document.document_date = document_date
    if description is not None:
        document.description = description
    if reference is not None:
        document.reference = reference
    if fiscal_year_id is not None:
        document.fiscal_year = _get_fiscal_year(document.business, fiscal_year_id)
    _prepare(document)
    document.save()

    if lines is not None:
        new_lines = _build_lines(document, lines)
        document.lines.all().delete()
        DocumentLine.objects.bulk_create(new_lines)

    logger.info(
        "Document updated",
        extra={"business_id": business_id, "document_id": document.id},
    )
    return document


@transaction.atomic
def delete_document(business_id: int, document_id: int) -> None:
    """Delete an OPEN document. Its number is not reissued."""
    document = _lock_document(business_id, document_id)
    _ensure(can_delete_document, document)

    number = document.document_number
    document.delete()
    logger.info(
        "Document deleted",
        extra={"business_id": business_id, "document_id": document_id, "document_number": number},
    )


# =============================================================================
# Lifecycle
# =============================================================================

@transaction.atomic
def complete_document(business_id: int, document_id: int) -> Document:
    """OPEN -> COMPLETED after kind validation (balance, accounts, required fields)."""
    document = _lock_document(business_id, document_id)
    _ensure(can_complete_document, document)

    _validate(kind_for(document.document_type), document, list(document.lines.all()))

    document.status = Document.Status.COMPLETED
    document.completed_at = timezone.now()
    document.save(update_fields=["status", "completed_at", "updated_at"])

    logger.info(
        "Document completed",
        extra={"business_id": business_id, "document_id": document.id},
    )
    return document


@transaction.atomic
def revert_document(business_id: int, document_id: int) -> Document:
    """COMPLETED -> OPEN so the document can be edited again."""
    document = _lock_document(business_id, document_id)
    _ensure(can_revert_document, document)

    document.status = Document.Status.OPEN
    document.completed_at = None
    document.save(update_fields=["status", "completed_at", "updated_at"])

    logger.info(
        "Document reverted",
        extra={"business_id": business_id, "document_id": document.id},
    )
    return document


def _mark_posted(documents: list, journal: Journal) -> None:
    now = timezone.now()
    for document in documents:
        document.journal = journal
        document.status = Document.Status.POSTED
        document.posted_at = now
        document.save(update_fields=["journal", "status", "posted_at", "updated_at"])


@transaction.atomic
def post_document(business_id: int, document_id: int, repository=None) -> Journal:
    """
    COMPLETED -> POSTED.

    Re-validates the document, builds its journal lines and posts them.
    The document keeps a link to the resulting Journal.
    """
    document = _lock_document(business_id, document_id)
    _ensure(can_post_document, document)

    lines = list(document.lines.all())
    _validate(kind_for(document.document_type), document, lines)

    journal = create_journal(build_journal_request(document, lines), repository=repository)
    _mark_posted([document], journal)

    logger.info(
        "Document posted",
        extra={
            "business_id": business_id,
            "document_id": document.id,
            "document_number": document.document_number,
            "journal_id": journal.id,
        },
    )
    return journal


@transaction.atomic
def post_documents(business_id: int, document_ids, repository=None) -> Journal:
    """
    Post several documents of one type as a single summary journal.

    The first id supplies the entry date and source document id. Every
    document is validated; any failure aborts the whole batch.
    """
    try:
        ordered_ids = list(dict.fromkeys(int(document_id) for document_id in document_ids or ()))
    except (TypeError, ValueError):
        raise ValidationError("Document ids must be integers.", entity="Document")
    if not ordered_ids:
        raise ValidationError("At least one document is required.", entity="Document")

    locked = {
        document.pk: document
        for document in Document.objects.select_for_update()
        .filter(business_id=business_id, pk__in=ordered_ids)
        .order_by("pk")
    }
    for document_id in ordered_ids:
        if document_id not in locked:
            raise NotFound("Document", document_id)
    documents = [locked[document_id] for document_id in ordered_ids]

    first = documents[0]
    kind = kind_for(first.document_type)

    journal_lines = []
    references = []
    descriptions = []
    for document in documents:
        _ensure(can_post_document, document)
        if document.document_type != first.document_type:
            logger.warning(
                "Summary posting rejected",
                extra={
                    "document_id": document.pk,
                    "document_type": document.document_type,
                    "expected": first.document_type,
                },
            )
            raise ValidationError(
                "All documents must be the same type for summary posting.",
                entity="Document",
                entity_id=document.pk,
            )
        lines = list(document.lines.all())
        _validate(kind, document, lines)
        journal_lines.extend(kind.to_journal_lines(document, lines))
        references.append(document.document_number)
        if document.description:
            descriptions.append(document.description)

    reference_length = Journal._meta.get_field("reference").max_length
    description_length = Journal._meta.get_field("description").max_length
    request = JournalRequest(
        business_id=business_id,
        entry_date=first.document_date,
        source_document_id=first.pk,
        journal_type=kind.journal_type,
        lines=journal_lines,
        reference=", ".join(references)[:reference_length],
        description=("; ".join(descriptions) or SUMMARY_DESCRIPTION)[:description_length],
    )
    journal = create_journal(request, repository=repository)
    _mark_posted(documents, journal)

    logger.info(
        "Documents posted as summary journal",
        extra={
            "business_id": business_id,
            "document_ids": ordered_ids,
            "journal_id": journal.id,
            "total": str(request.total_debits),
        },
    )
    return journal


@transaction.atomic
def void_document(business_id: int, document_id: int) -> Document:
    """
    POSTED -> VOIDED through the kind's void handler.

    No current kind defines one, so this raises IllegalStateError for
    every posted document until a handler is registered in documents.kinds.
    """
    document = _lock_document(business_id, document_id)
    _ensure(can_void_document, document)

    kind = kind_for(document.document_type)
    if kind.void is None:
        raise IllegalStateError(
            f"Voiding {document.get_document_type_display().lower()} documents is not supported.",
            entity="Document",
            entity_id=document.pk,
        )

    kind.void(document)
    document.status = Document.Status.VOIDED
    document.save(update_fields=["status", "updated_at"])

    logger.info(
        "Document voided",
        extra={"business_id": business_id, "document_id": document.id},
    )
    return document
