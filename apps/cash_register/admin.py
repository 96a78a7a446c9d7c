from django.contrib import admin

from apps.cash_register.models import CashMovement, CashRegisterSession


class CashMovementInline(admin.TabularInline):
    model = CashMovement
    extra = 0
    can_delete = False
    readonly_fields = ("direction", "amount", "reason", "created_by", "created_at")


@admin.register(CashRegisterSession)
class CashRegisterSessionAdmin(admin.ModelAdmin):
    list_display = ("terminal", "operator", "status", "opening_balance", "expected_balance", "closing_balance", "difference", "opened_at")
    list_filter = ("status", "terminal")
    readonly_fields = ("expected_balance", "closing_balance", "difference", "closed_at", "closed_by")
    inlines = [CashMovementInline]
