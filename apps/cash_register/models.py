import uuid

from django.db import models
from django.db.models import Q


class SessionStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"


class MovementDirection(models.TextChoices):
    IN = "IN", "Suprimento"
    OUT = "OUT", "Sangria"


class CashRegisterSession(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    terminal = models.CharField(max_length=60)
    operator = models.ForeignKey("accounts.User", on_delete=models.PROTECT, related_name="cash_sessions")
    status = models.CharField(max_length=8, choices=SessionStatus.choices, default=SessionStatus.OPEN)
    opening_balance = models.DecimalField(max_digits=12, decimal_places=2)
    closing_balance = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    expected_balance = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    difference = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    notes = models.CharField(max_length=255, blank=True)
    opened_at = models.DateTimeField(auto_now_add=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="closed_cash_sessions",
    )

    class Meta:
        ordering = ["-opened_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["terminal"],
                condition=Q(status="OPEN"),
                name="cash_session_one_open_per_terminal",
            ),
            models.CheckConstraint(condition=Q(opening_balance__gte=0), name="cash_session_opening_non_negative"),
        ]
        indexes = [
            models.Index(fields=["terminal", "opened_at"], name="cash_session_terminal_idx"),
        ]

    def __str__(self):
        return f"{self.terminal} {self.opened_at:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def is_open(self):
        return self.status == SessionStatus.OPEN


class CashMovement(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(CashRegisterSession, on_delete=models.PROTECT, related_name="movements")
    direction = models.CharField(max_length=3, choices=MovementDirection.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255)
    created_by = models.ForeignKey("accounts.User", on_delete=models.PROTECT, related_name="cash_movements")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="cash_movement_amount_positive"),
        ]
