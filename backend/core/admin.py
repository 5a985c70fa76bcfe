# core/admin.py
"""
Read-only admin base classes.

Ledger rows change only through the command layer (accounting/commands.py,
ledger/fiscal_calendar.py, documents/commands.py), which enforces the
lifecycle rules and the posting write barrier. The admin is for viewing.
"""

from django.contrib import admin

from core.models import NumberSequence


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Admin with add, change and delete disabled."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def changeform_view(self, request, object_id=None, form_url="", extra_context=None):
        extra_context = extra_context or {}
        extra_context["show_save"] = False
        extra_context["show_save_and_continue"] = False
        extra_context["show_save_and_add_another"] = False
        return super().changeform_view(request, object_id, form_url, extra_context)


class ReadOnlyInline(admin.TabularInline):
    extra = 0

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(NumberSequence)
class NumberSequenceAdmin(ReadOnlyModelAdmin):
    list_display = ["business", "sequence_key", "next_number", "updated_at"]
    list_filter = ["sequence_key"]
