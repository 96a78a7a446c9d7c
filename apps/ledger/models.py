import uuid

from django.db import models
from django.db.models import Q


class TransactionType(models.TextChoices):
    REVENUE = "REVENUE", "Revenue"
    EXPENSE = "EXPENSE", "Expense"


class TransactionStatus(models.TextChoices):
    PAID = "PAID", "Paid"
    PENDING = "PENDING", "Pending"


class FinancialTransaction(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(max_length=10, choices=TransactionType.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField()
    category = models.CharField(max_length=80)
    description = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=10, choices=TransactionStatus.choices, default=TransactionStatus.PAID)
    payment_method = models.CharField(max_length=20, blank=True)
    receivable = models.OneToOneField(
        "receivables.Receivable",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="financial_transaction",
    )
    payable = models.ForeignKey(
        "payables.Payable",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="financial_transactions",
    )
    bank_account = models.ForeignKey(
        "banking.BankAccount",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="financial_transactions",
    )
    created_by = models.ForeignKey("accounts.User", null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="fin_tx_amount_positive"),
        ]
        indexes = [
            models.Index(fields=["type", "date"], name="fin_tx_type_date_idx"),
            models.Index(fields=["bank_account", "date"], name="fin_tx_account_date_idx"),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} {self.date}"

    @property
    def signed_amount(self):
        return self.amount if self.type == TransactionType.REVENUE else -self.amount
