# documents/admin.py
"""Document admin (read-only; lifecycle changes go through documents/commands.py)."""

from django.contrib import admin

from core.admin import ReadOnlyInline, ReadOnlyModelAdmin
from documents.models import Document, DocumentLine


class DocumentLineInline(ReadOnlyInline):
    model = DocumentLine
    fields = ["line_number", "account_kind", "account_id", "amount", "description"]
    readonly_fields = fields


@admin.register(Document)
class DocumentAdmin(ReadOnlyModelAdmin):
    list_display = ["document_number", "document_type", "business", "document_date", "status", "journal"]
    list_filter = ["document_type", "status"]
    search_fields = ["document_number", "reference", "description"]
    inlines = [DocumentLineInline]
