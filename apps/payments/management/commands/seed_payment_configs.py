from decimal import Decimal

from django.core.management.base import BaseCommand

from apps.payments.models import PaymentMethod, PaymentMethodConfig, ReceivableMode

BASE_CONFIGS = [
    ("Efectivo", PaymentMethod.CASH, 1, 1, Decimal("0"), 0, ReceivableMode.IMMEDIATE),
    ("Debito", PaymentMethod.DEBIT_CARD, 1, 1, Decimal("1.990"), 0, ReceivableMode.IMMEDIATE),
    ("Pix", PaymentMethod.PIX, 1, 1, Decimal("0"), 0, ReceivableMode.IMMEDIATE),
    ("Credito una exhibicion", PaymentMethod.CREDIT_CARD, 1, 1, Decimal("3.490"), 30, ReceivableMode.IMMEDIATE),
    ("Credito a meses 2-6", PaymentMethod.CREDIT_CARD, 2, 6, Decimal("4.990"), 30, ReceivableMode.IMMEDIATE),
    ("Credito a meses 7-12", PaymentMethod.CREDIT_CARD, 7, 12, Decimal("5.990"), 30, ReceivableMode.IMMEDIATE),
    ("Transferencia", PaymentMethod.BANK_TRANSFER, 1, 1, Decimal("0"), 1, ReceivableMode.DEFERRED),
]


class Command(BaseCommand):
    help = "Seed provider-agnostic payment method configs. Existing rows with the same name are left untouched."

    def handle(self, *args, **options):
        created_count = 0
        for name, method, inst_min, inst_max, fee, days, mode in BASE_CONFIGS:
            _, created = PaymentMethodConfig.objects.get_or_create(
                name=name,
                defaults={
                    "method": method,
                    "installments_min": inst_min,
                    "installments_max": inst_max,
                    "fee_percent": fee,
                    "days_to_liquidate": days,
                    "receivable_mode": mode,
                },
            )
            if created:
                created_count += 1

        self.stdout.write(self.style.SUCCESS(f"Seed payment configs completed. created={created_count}"))
