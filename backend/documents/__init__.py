# documents/__init__.py
"""
Documents app - source documents that post to the ledger.

This app provides:
- Document / DocumentLine: one table for every kind, tagged by document_type
- kinds: per-kind validation and line mapping (journal entry, closing entry)
- commands: the OPEN -> COMPLETED -> POSTED lifecycle, single and batch post
"""
