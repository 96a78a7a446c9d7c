import uuid

from django.db import models
from django.db.models import Q


class BankTransactionStatus(models.TextChoices):
    UNMATCHED = "UNMATCHED", "Unmatched"
    MATCHED = "MATCHED", "Matched"


class BankTransaction(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    bank_account = models.ForeignKey("banking.BankAccount", on_delete=models.PROTECT, related_name="statement_lines")
    date = models.DateField()
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=10,
        choices=BankTransactionStatus.choices,
        default=BankTransactionStatus.UNMATCHED,
    )
    financial_transaction = models.OneToOneField(
        "ledger.FinancialTransaction",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="bank_line",
    )
    raw_line = models.CharField(max_length=500, blank=True)
    imported_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="imported_bank_lines",
    )
    matched_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="matched_bank_lines",
    )
    matched_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["bank_account", "date", "amount", "description"],
                name="bank_tx_natural_key",
            ),
            models.CheckConstraint(condition=~Q(amount=0), name="bank_tx_amount_not_zero"),
            models.CheckConstraint(
                condition=(
                    Q(status="UNMATCHED", financial_transaction__isnull=True)
                    | Q(status="MATCHED", financial_transaction__isnull=False)
                ),
                name="bank_tx_status_matches_link",
            ),
        ]
        indexes = [
            models.Index(fields=["bank_account", "status", "date"], name="bank_tx_account_status_idx"),
        ]

    def __str__(self):
        return f"{self.date} {self.description} {self.amount}"
