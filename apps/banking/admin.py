from django.contrib import admin

from apps.banking.models import BankAccount


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "bank_name", "agency", "account_number", "current_balance", "is_active")
    list_filter = ("is_active", "bank_name")
    search_fields = ("name", "bank_name", "account_number")
    readonly_fields = ("current_balance",)
