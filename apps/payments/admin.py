from django.contrib import admin

from apps.payments.models import PaymentMethodConfig


@admin.register(PaymentMethodConfig)
class PaymentMethodConfigAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "method",
        "provider",
        "installments_min",
        "installments_max",
        "fee_percent",
        "days_to_liquidate",
        "receivable_mode",
        "is_active",
    )
    list_filter = ("method", "receivable_mode", "is_active")
    search_fields = ("name", "provider")
