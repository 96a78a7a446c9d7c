import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Payable",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("description", models.CharField(max_length=255)),
                ("category", models.CharField(max_length=80)),
                ("supplier_name", models.CharField(blank=True, max_length=160)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_paid", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("due_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PARTIAL", "Partial"),
                            ("PAID", "Paid"),
                            ("OVERDUE", "Overdue"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="PENDING",
                        max_length=12,
                    ),
                ),
                ("payment_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={
                "ordering": ["due_date", "created_at"],
                "indexes": [
                    models.Index(fields=["status", "due_date"], name="payable_status_due_idx"),
                    models.Index(fields=["category", "due_date"], name="payable_category_due_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payable_amount_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("total_paid__gte", 0), ("total_paid__lte", models.F("amount"))),
                        name="payable_total_paid_within_amount",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("status", "OVERDUE"), _negated=True),
                        name="payable_overdue_not_stored",
                    ),
                ],
            },
        ),
    ]
