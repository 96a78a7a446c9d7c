from django.contrib import admin

from apps.payables.models import Payable


@admin.register(Payable)
class PayableAdmin(admin.ModelAdmin):
    list_display = ("description", "category", "supplier_name", "amount", "total_paid", "due_date", "status")
    list_filter = ("status", "category")
    search_fields = ("description", "supplier_name")
    readonly_fields = ("total_paid", "status", "payment_date")
