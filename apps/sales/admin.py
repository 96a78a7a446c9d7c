from django.contrib import admin

from apps.receivables.models import Receivable
from apps.sales.models import Sale


class ReceivableInline(admin.TabularInline):
    model = Receivable
    extra = 0
    can_delete = False
    fields = ("installment_number", "gross_amount", "fee_amount", "net_amount", "due_date", "status", "paid_date")
    readonly_fields = fields


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("id", "cashier", "total", "payment_method", "installments", "sale_date", "status")
    list_filter = ("status", "payment_method")
    date_hierarchy = "sale_date"
    inlines = [ReceivableInline]
