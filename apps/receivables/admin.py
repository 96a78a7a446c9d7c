from django.contrib import admin

from apps.receivables.models import Receivable


@admin.register(Receivable)
class ReceivableAdmin(admin.ModelAdmin):
    list_display = (
        "sale",
        "installment_number",
        "total_installments",
        "payment_method",
        "gross_amount",
        "fee_amount",
        "net_amount",
        "due_date",
        "status",
        "paid_date",
    )
    list_filter = ("status", "payment_method", "receivable_mode")
    date_hierarchy = "due_date"
    readonly_fields = ("gross_amount", "fee_amount", "net_amount", "status", "paid_date")
