# documents/policies.py
"""
Workflow policies for source documents.

    OPEN       editable; may be completed or deleted
    COMPLETED  frozen; may be reverted to OPEN or posted
    POSTED     linked to exactly one journal; may be voided
    VOIDED     terminal

Each can_* returns (allowed, reason). Commands turn a refusal into an
IllegalStateError carrying the reason.
"""

from documents.models import Document


def can_edit_document(document: Document) -> tuple[bool, str]:
    if document.status != Document.Status.OPEN:
        return False, f"Document {document.document_number} is {document.status} and cannot be edited."
    return True, ""


def can_delete_document(document: Document) -> tuple[bool, str]:
    if document.status != Document.Status.OPEN:
        return False, f"Only OPEN documents can be deleted; {document.document_number} is {document.status}."
    return True, ""


def can_complete_document(document: Document) -> tuple[bool, str]:
    if document.status != Document.Status.OPEN:
        return False, f"Cannot complete document {document.document_number} in {document.status} status."
    return True, ""


def can_revert_document(document: Document) -> tuple[bool, str]:
    if document.status != Document.Status.COMPLETED:
        return False, f"Cannot revert document {document.document_number} in {document.status} status."
    return True, ""


def can_post_document(document: Document) -> tuple[bool, str]:
    if document.journal_id is not None:
        return False, f"Document {document.document_number} is already posted to journal {document.journal_id}."
    if document.status != Document.Status.COMPLETED:
        return False, f"Cannot post document {document.document_number} in {document.status} status."
    return True, ""


def can_void_document(document: Document) -> tuple[bool, str]:
    if document.status != Document.Status.POSTED:
        return False, f"Only POSTED documents can be voided; {document.document_number} is {document.status}."
    return True, ""
