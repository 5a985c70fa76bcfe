# accounting/admin.py
"""Chart of accounts admin (read-only; use accounting/commands.py to change it)."""

from django.contrib import admin

from accounting.models import (
    AccountGroup,
    BankAccount,
    GeneralLedgerAccount,
    InventoryAccount,
    PayableAccount,
    ReceivableAccount,
)
from core.admin import ReadOnlyModelAdmin


@admin.register(AccountGroup)
class AccountGroupAdmin(ReadOnlyModelAdmin):
    list_display = ["formatted_number", "name", "business", "account_type", "is_active"]
    list_filter = ["account_type", "is_active"]
    search_fields = ["name"]


@admin.register(GeneralLedgerAccount)
class GeneralLedgerAccountAdmin(ReadOnlyModelAdmin):
    list_display = ["formatted_number", "short_code", "name", "business", "subsidiary_type", "is_active"]
    list_filter = ["subsidiary_type", "is_active", "group__account_type"]
    search_fields = ["short_code", "name"]
    list_select_related = ["group"]


class SubsidiaryAccountAdmin(ReadOnlyModelAdmin):
    list_display = ["formatted_number", "short_code", "display_name", "business", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["short_code", "name"]
    list_select_related = ["controlling_account__group"]


admin.site.register(ReceivableAccount, SubsidiaryAccountAdmin)
admin.site.register(PayableAccount, SubsidiaryAccountAdmin)
admin.site.register(BankAccount, SubsidiaryAccountAdmin)
admin.site.register(InventoryAccount, SubsidiaryAccountAdmin)
