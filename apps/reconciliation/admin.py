from django.contrib import admin

from apps.reconciliation.models import BankTransaction


@admin.register(BankTransaction)
class BankTransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "bank_account", "description", "amount", "status", "financial_transaction")
    list_filter = ("status", "bank_account")
    search_fields = ("description",)
    date_hierarchy = "date"
    readonly_fields = ("financial_transaction", "matched_at", "matched_by", "raw_line")
