from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    FINANCE = "FINANCE", "Finance"
    CASHIER = "CASHIER", "Cashier"


class User(AbstractUser):
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.CASHIER)
    # POS terminal used when a cashier opens a session without naming one.
    default_terminal = models.CharField(max_length=60, blank=True)
