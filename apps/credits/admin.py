from django.contrib import admin
from .models import CreditAccount, CreditLedgerEntry

@admin.register(CreditAccount)
class CreditAccountAdmin(admin.ModelAdmin):
    list_display = ('provider', 'balance', 'updated_at')
    search_fields = ('provider__username', 'provider__email')
    readonly_fields = ('balance',)

@admin.register(CreditLedgerEntry)
class CreditLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ('provider', 'transaction_type', 'amount', 'balance_after', 'related_id', 'created_at')
    list_filter = ('transaction_type',)
    search_fields = ('provider__username', 'related_id')

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
