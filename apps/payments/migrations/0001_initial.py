import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("banking", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentMethodConfig",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120)),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("CASH", "Cash"),
                            ("DEBIT_CARD", "Debit card"),
                            ("CREDIT_CARD", "Credit card"),
                            ("PIX", "Pix"),
                            ("BANK_TRANSFER", "Bank transfer"),
                        ],
                        max_length=20,
                    ),
                ),
                ("provider", models.CharField(blank=True, max_length=60)),
                ("installments_min", models.PositiveSmallIntegerField(default=1)),
                ("installments_max", models.PositiveSmallIntegerField(default=1)),
                ("fee_percent", models.DecimalField(decimal_places=3, default=0, max_digits=6)),
                ("days_to_liquidate", models.PositiveSmallIntegerField(default=0)),
                (
                    "receivable_mode",
                    models.CharField(
                        choices=[("IMMEDIATE", "Immediate"), ("DEFERRED", "Deferred")],
                        default="IMMEDIATE",
                        max_length=12,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "bank_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_configs",
                        to="banking.bankaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["method", "provider", "installments_min"],
                "indexes": [models.Index(fields=["method", "is_active"], name="payment_cfg_method_active_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("installments_min__gte", 1)), name="payment_cfg_installments_min_gte_1"),
                    models.CheckConstraint(
                        condition=models.Q(("installments_max__gte", models.F("installments_min"))),
                        name="payment_cfg_installments_bracket_valid",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("fee_percent__gte", 0), ("fee_percent__lte", 100)),
                        name="payment_cfg_fee_percent_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("method", "CASH"), _negated=True),
                            models.Q(("bank_account__isnull", True), ("days_to_liquidate", 0), ("receivable_mode", "IMMEDIATE")),
                            _connector="OR",
                        ),
                        name="payment_cfg_cash_same_day_no_bank",
                    ),
                ],
            },
        ),
    ]
