import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("banking", "0001_initial"),
        ("ledger", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BankTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("date", models.DateField()),
                ("description", models.CharField(max_length=255)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[("UNMATCHED", "Unmatched"), ("MATCHED", "Matched")],
                        default="UNMATCHED",
                        max_length=10,
                    ),
                ),
                ("raw_line", models.CharField(blank=True, max_length=500)),
                ("matched_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "bank_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="statement_lines",
                        to="banking.bankaccount",
                    ),
                ),
                (
                    "financial_transaction",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bank_line",
                        to="ledger.financialtransaction",
                    ),
                ),
                (
                    "imported_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="imported_bank_lines",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "matched_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="matched_bank_lines",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["date", "created_at"],
                "indexes": [
                    models.Index(fields=["bank_account", "status", "date"], name="bank_tx_account_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("bank_account", "date", "amount", "description"),
                        name="bank_tx_natural_key",
                    ),
                    models.CheckConstraint(condition=models.Q(("amount", 0), _negated=True), name="bank_tx_amount_not_zero"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("financial_transaction__isnull", True), ("status", "UNMATCHED")),
                            models.Q(("financial_transaction__isnull", False), ("status", "MATCHED")),
                            _connector="OR",
                        ),
                        name="bank_tx_status_matches_link",
                    ),
                ],
            },
        ),
    ]
