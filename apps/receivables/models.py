import uuid

from django.db import models
from django.db.models import F, Q

from apps.payments.models import PaymentMethod, ReceivableMode


class ReceivableStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    OVERDUE = "OVERDUE", "Overdue"
    CANCELLED = "CANCELLED", "Cancelled"


class Receivable(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey("sales.Sale", on_delete=models.CASCADE, related_name="receivables")
    customer_name = models.CharField(max_length=160, blank=True)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    installment_number = models.PositiveSmallIntegerField(default=1)
    total_installments = models.PositiveSmallIntegerField(default=1)
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2)
    fee_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    net_amount = models.DecimalField(max_digits=12, decimal_places=2)
    fee_percent = models.DecimalField(max_digits=6, decimal_places=3, default=0)
    days_to_liquidate = models.PositiveSmallIntegerField(default=0)
    receivable_mode = models.CharField(max_length=12, choices=ReceivableMode.choices, default=ReceivableMode.IMMEDIATE)
    payment_config = models.ForeignKey(
        "payments.PaymentMethodConfig",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="receivables",
    )
    bank_account = models.ForeignKey(
        "banking.BankAccount",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="receivables",
    )
    due_date = models.DateField()
    status = models.CharField(max_length=12, choices=ReceivableStatus.choices, default=ReceivableStatus.PENDING)
    paid_date = models.DateField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "installment_number"]
        constraints = [
            models.CheckConstraint(condition=Q(gross_amount__gt=0), name="receivable_gross_positive"),
            models.CheckConstraint(condition=Q(fee_amount__gte=0), name="receivable_fee_non_negative"),
            models.CheckConstraint(
                condition=Q(net_amount=F("gross_amount") - F("fee_amount")),
                name="receivable_net_equals_gross_minus_fee",
            ),
            models.CheckConstraint(
                condition=~Q(status="OVERDUE"),
                name="receivable_overdue_not_stored",
            ),
            models.UniqueConstraint(fields=["sale", "installment_number"], name="receivable_unique_installment"),
        ]
        indexes = [
            models.Index(fields=["status", "due_date"], name="receivable_status_due_idx"),
            models.Index(fields=["status", "receivable_mode", "due_date"], name="receivable_autosettle_idx"),
        ]

    def __str__(self):
        return self.describe()

    def describe(self):
        return f"Venta {self.sale_id} cuota {self.installment_number}/{self.total_installments}"

    def effective_status(self, today):
        if self.status == ReceivableStatus.PENDING and self.due_date < today:
            return ReceivableStatus.OVERDUE
        return self.status
