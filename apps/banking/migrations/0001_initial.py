import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120)),
                ("bank_name", models.CharField(max_length=120)),
                ("agency", models.CharField(blank=True, max_length=20)),
                ("account_number", models.CharField(blank=True, max_length=40)),
                ("initial_balance", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("current_balance", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["bank_name", "name"],
            },
        ),
    ]
