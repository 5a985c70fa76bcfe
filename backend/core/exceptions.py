# core/exceptions.py
"""
Errors raised by the ledger command layer.

Every business failure carries the kind of entity it concerns and that
entity's id, so callers can render a message without parsing text:

    try:
        post_document(business.id, document_id)
    except IllegalStateError as exc:
        return {"error": str(exc), "entity": exc.entity, "id": exc.entity_id}

Nothing here is retried. A raised error inside a command aborts the
surrounding transaction, so no partial state is ever committed.
"""


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""

    def __init__(self, message: str, entity: str = None, entity_id=None):
        self.message = message
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "entity": self.entity,
            "entity_id": self.entity_id,
        }


class NotFound(LedgerError):
    """A referenced business, account, document, fiscal year or journal is missing."""

    def __init__(self, entity: str, entity_id, message: str = None):
        super().__init__(message or f"{entity} {entity_id} not found.", entity, entity_id)


class ValidationError(LedgerError):
    """Input is invalid: unbalanced lines, bad amounts, missing references."""


class IllegalStateError(LedgerError):
    """The requested transition is not allowed from the current state."""


class ImmutabilityViolation(RuntimeError):
    """
    Raised on any attempt to change a posted Journal or JournalLine.

    This is a programming error, not a business condition: posted
    journals are corrected by posting a reversing journal.
    """
