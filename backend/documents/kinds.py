# documents/kinds.py
"""
Document kinds.

Every document type is described by a DocumentKind entry in KINDS:

    validate(document, lines)          raise ValidationError if not postable
    to_journal_lines(document, lines)  pure mapping to JournalLineRequest values
    prepare(document)                  normalize header fields before saving
    default_description(document)      journal description when none is set
    void(document)                     reverse a posted document (optional)

Adding a document type means adding one entry here; the lifecycle in
documents/commands.py does not change. Types listed in DocumentType but
missing from KINDS are reserved: creating one fails with ValidationError.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from core.exceptions import ValidationError
from documents.models import Document, DocumentType
from ledger.models import ZERO
from ledger.requests import JournalLineRequest, JournalRequest


@dataclass(frozen=True)
class DocumentKind:
    document_type: str
    validate: Callable
    to_journal_lines: Callable
    default_description: Callable
    prepare: Callable = lambda document: None
    void: Optional[Callable] = None

    @property
    def prefix(self) -> str:
        return DocumentType(self.document_type).prefix

    @property
    def journal_type(self) -> str:
        return DocumentType(self.document_type).journal_type


# =============================================================================
# Shared validation
# =============================================================================

def validate_header(document: Document) -> None:
    if document.business_id is None:
        raise ValidationError("Business is required.", entity="Document", entity_id=document.pk)
    if not document.document_number:
        raise ValidationError("Document number is required.", entity="Document", entity_id=document.pk)
    if document.document_date is None:
        raise ValidationError("Document date is required.", entity="Document", entity_id=document.pk)


def validate_signed_lines(document: Document, lines: list, label: str) -> None:
    """At least two lines, each with an account and a non-zero amount, summing to zero."""
    if len(lines) < 2:
        raise ValidationError(
            f"{label} must have at least two lines.",
            entity="Document",
            entity_id=document.pk,
        )

    for index, line in enumerate(lines, start=1):
        if line.account_id is None:
            raise ValidationError(
                f"Line {index}: account is required.",
                entity="Document",
                entity_id=document.pk,
            )
        if line.amount is None or line.amount == ZERO:
            raise ValidationError(
                f"Line {index}: amount must be non-zero.",
                entity="Document",
                entity_id=document.pk,
            )

    if sum((line.amount for line in lines), ZERO) != ZERO:
        debits = sum((line.amount for line in lines if line.amount > 0), ZERO)
        credits = sum((-line.amount for line in lines if line.amount < 0), ZERO)
        raise ValidationError(
            f"{label} must be balanced. Debits: {debits}, Credits: {credits}",
            entity="Document",
            entity_id=document.pk,
        )


def signed_journal_lines(document: Document, lines: list) -> list:
    """Positive amounts debit, negative amounts credit, one journal line per document line."""
    return [
        JournalLineRequest.from_signed(
            line.account_id,
            line.amount,
            line.description,
            account_kind=line.account_kind,
        )
        for line in lines
    ]


# =============================================================================
# Journal entry
# =============================================================================

def validate_journal_entry(document: Document, lines: list) -> None:
    validate_header(document)
    validate_signed_lines(document, lines, "Journal entry")


# =============================================================================
# Closing entry
# =============================================================================

def validate_closing_entry(document: Document, lines: list) -> None:
    validate_header(document)
    if document.fiscal_year_id is None:
        raise ValidationError(
            "Fiscal year is required for closing entries.",
            entity="Document",
            entity_id=document.pk,
        )
    if document.fiscal_year.business_id != document.business_id:
        raise ValidationError(
            "Closing entry fiscal year belongs to another business.",
            entity="Document",
            entity_id=document.pk,
        )
    if document.document_date != document.fiscal_year.end_date:
        raise ValidationError(
            f"Closing entry must be dated {document.fiscal_year.end_date.isoformat()}, "
            "the last day of its fiscal year.",
            entity="Document",
            entity_id=document.pk,
        )
    validate_signed_lines(document, lines, "Closing entry")


def prepare_closing_entry(document: Document) -> None:
    """A closing entry is always dated the last day of its fiscal year."""
    if document.fiscal_year_id is not None:
        document.document_date = document.fiscal_year.end_date


KINDS = {
    DocumentType.JOURNAL_ENTRY: DocumentKind(
        document_type=DocumentType.JOURNAL_ENTRY,
        validate=validate_journal_entry,
        to_journal_lines=signed_journal_lines,
        default_description=lambda document: f"Journal Entry {document.document_number}",
    ),
    DocumentType.CLOSING_ENTRY: DocumentKind(
        document_type=DocumentType.CLOSING_ENTRY,
        validate=validate_closing_entry,
        to_journal_lines=signed_journal_lines,
        default_description=lambda document: f"Closing Entry - FY{document.fiscal_year.year}",
        prepare=prepare_closing_entry,
    ),
}


def kind_for(document_type: str) -> DocumentKind:
    """Look up the kind for a document type; reserved and unknown types raise ValidationError."""
    if document_type not in DocumentType.values:
        raise ValidationError(f"Unknown document type {document_type!r}.", entity="Document")
    kind = KINDS.get(DocumentType(document_type))
    if kind is None:
        raise ValidationError(
            f"{DocumentType(document_type).label} documents are not supported yet.",
            entity="Document",
        )
    return kind


def build_journal_request(document: Document, lines: list) -> JournalRequest:
    """The posting request for a single document. The document must already be valid."""
    kind = kind_for(document.document_type)
    return JournalRequest(
        business_id=document.business_id,
        entry_date=document.document_date,
        source_document_id=document.pk,
        journal_type=kind.journal_type,
        lines=kind.to_journal_lines(document, lines),
        reference=document.document_number,
        description=document.description or kind.default_description(document),
    )
