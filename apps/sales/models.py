import uuid

from django.db import models
from django.db.models import Q

from apps.payments.models import PaymentMethod


class SaleStatus(models.TextChoices):
    CONFIRMED = "CONFIRMED", "Confirmed"
    CANCELLED = "CANCELLED", "Cancelled"


class Sale(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cashier = models.ForeignKey("accounts.User", on_delete=models.PROTECT, related_name="sales")
    customer_name = models.CharField(max_length=160, blank=True)
    total = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    installments = models.PositiveSmallIntegerField(default=1)
    provider = models.CharField(max_length=60, blank=True)
    payment_config = models.ForeignKey(
        "payments.PaymentMethodConfig",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="sales",
    )
    cash_session = models.ForeignKey(
        "cash_register.CashRegisterSession",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="sales",
    )
    sale_date = models.DateField()
    status = models.CharField(max_length=16, choices=SaleStatus.choices, default=SaleStatus.CONFIRMED)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(total__gt=0), name="sale_total_positive"),
            models.CheckConstraint(condition=Q(installments__gte=1), name="sale_installments_gte_1"),
        ]
        indexes = [
            models.Index(fields=["status", "sale_date"], name="sale_status_date_idx"),
            models.Index(fields=["cashier", "created_at"], name="sale_cashier_created_idx"),
        ]

    def __str__(self):
        return f"Sale {self.pk} {self.total} {self.payment_method}"
