import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("banking", "0001_initial"),
        ("payments", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Receivable",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_name", models.CharField(blank=True, max_length=160)),
                (
                    "payment_method",
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
                ("installment_number", models.PositiveSmallIntegerField(default=1)),
                ("total_installments", models.PositiveSmallIntegerField(default=1)),
                ("gross_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("fee_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=12)),
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
                ("due_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PAID", "Paid"),
                            ("OVERDUE", "Overdue"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="PENDING",
                        max_length=12,
                    ),
                ),
                ("paid_date", models.DateField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "bank_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receivables",
                        to="banking.bankaccount",
                    ),
                ),
                (
                    "payment_config",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receivables",
                        to="payments.paymentmethodconfig",
                    ),
                ),
                (
                    "sale",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="receivables",
                        to="sales.sale",
                    ),
                ),
            ],
            options={
                "ordering": ["due_date", "installment_number"],
                "indexes": [
                    models.Index(fields=["status", "due_date"], name="receivable_status_due_idx"),
                    models.Index(fields=["status", "receivable_mode", "due_date"], name="receivable_autosettle_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("gross_amount__gt", 0)), name="receivable_gross_positive"),
                    models.CheckConstraint(condition=models.Q(("fee_amount__gte", 0)), name="receivable_fee_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(("net_amount", models.F("gross_amount") - models.F("fee_amount"))),
                        name="receivable_net_equals_gross_minus_fee",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("status", "OVERDUE"), _negated=True),
                        name="receivable_overdue_not_stored",
                    ),
                    models.UniqueConstraint(fields=("sale", "installment_number"), name="receivable_unique_installment"),
                ],
            },
        ),
    ]
