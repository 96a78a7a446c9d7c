import uuid

from django.db import models


class BankAccount(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120)
    bank_name = models.CharField(max_length=120)
    agency = models.CharField(max_length=20, blank=True)
    account_number = models.CharField(max_length=40, blank=True)
    initial_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    current_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["bank_name", "name"]

    def __str__(self):
        return f"{self.name} ({self.bank_name})"
