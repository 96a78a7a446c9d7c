import uuid

from django.db import models
from django.db.models import Q


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    DEBIT_CARD = "DEBIT_CARD", "Debit card"
    CREDIT_CARD = "CREDIT_CARD", "Credit card"
    PIX = "PIX", "Pix"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"


class ReceivableMode(models.TextChoices):
    IMMEDIATE = "IMMEDIATE", "Immediate"
    DEFERRED = "DEFERRED", "Deferred"


class PaymentMethodConfig(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    provider = models.CharField(max_length=60, blank=True)
    installments_min = models.PositiveSmallIntegerField(default=1)
    installments_max = models.PositiveSmallIntegerField(default=1)
    fee_percent = models.DecimalField(max_digits=6, decimal_places=3, default=0)
    days_to_liquidate = models.PositiveSmallIntegerField(default=0)
    receivable_mode = models.CharField(max_length=12, choices=ReceivableMode.choices, default=ReceivableMode.IMMEDIATE)
    bank_account = models.ForeignKey(
        "banking.BankAccount",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payment_configs",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["method", "provider", "installments_min"]
        constraints = [
            models.CheckConstraint(condition=Q(installments_min__gte=1), name="payment_cfg_installments_min_gte_1"),
            models.CheckConstraint(
                condition=Q(installments_max__gte=models.F("installments_min")),
                name="payment_cfg_installments_bracket_valid",
            ),
            models.CheckConstraint(
                condition=Q(fee_percent__gte=0) & Q(fee_percent__lte=100),
                name="payment_cfg_fee_percent_range",
            ),
            models.CheckConstraint(
                condition=~Q(method=PaymentMethod.CASH)
                | Q(days_to_liquidate=0, receivable_mode=ReceivableMode.IMMEDIATE, bank_account__isnull=True),
                name="payment_cfg_cash_same_day_no_bank",
            ),
        ]
        indexes = [
            models.Index(fields=["method", "is_active"], name="payment_cfg_method_active_idx"),
        ]

    def __str__(self):
        return self.name

    def covers(self, installments):
        return self.installments_min <= installments <= self.installments_max
