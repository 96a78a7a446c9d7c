from django.contrib import admin

from apps.ledger.models import FinancialTransaction


@admin.register(FinancialTransaction)
class FinancialTransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "type", "amount", "category", "status", "payment_method", "bank_account")
    list_filter = ("type", "status", "category")
    search_fields = ("description", "category")
    date_hierarchy = "date"
