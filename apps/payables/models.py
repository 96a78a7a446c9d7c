import uuid

from django.db import models
from django.db.models import F, Q


class PayableStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PARTIAL = "PARTIAL", "Partial"
    PAID = "PAID", "Paid"
    OVERDUE = "OVERDUE", "Overdue"
    CANCELLED = "CANCELLED", "Cancelled"


class Payable(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    description = models.CharField(max_length=255)
    category = models.CharField(max_length=80)
    supplier_name = models.CharField(max_length=160, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    total_paid = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    due_date = models.DateField()
    status = models.CharField(max_length=12, choices=PayableStatus.choices, default=PayableStatus.PENDING)
    payment_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey("accounts.User", on_delete=models.PROTECT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "created_at"]
        indexes = [
            models.Index(fields=["status", "due_date"], name="payable_status_due_idx"),
            models.Index(fields=["category", "due_date"], name="payable_category_due_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="payable_amount_gt_zero"),
            models.CheckConstraint(
                condition=Q(total_paid__gte=0) & Q(total_paid__lte=F("amount")),
                name="payable_total_paid_within_amount",
            ),
            models.CheckConstraint(condition=~Q(status="OVERDUE"), name="payable_overdue_not_stored"),
        ]

    def __str__(self):
        return f"{self.description} ({self.amount})"

    @property
    def remaining(self):
        return self.amount - self.total_paid

    def effective_status(self, today):
        if self.status in {PayableStatus.PENDING, PayableStatus.PARTIAL} and self.due_date < today:
            return PayableStatus.OVERDUE
        return self.status
