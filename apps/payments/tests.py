from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import override_settings
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.common.exceptions import ConfigurationError
from apps.payments.models import PaymentMethod, PaymentMethodConfig, ReceivableMode
from apps.payments.services import DEFAULT_TERMS, resolve_config
from apps.receivables.models import Receivable
from apps.sales.models import Sale

User = get_user_model()


class PaymentConfigApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_pay", password="admin123", role="ADMIN")
        self.cashier = User.objects.create_user(username="cashier_pay", password="cashier123", role="CASHIER")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_admin_creates_config_and_cashier_can_only_read(self):
        self.auth_as("admin_pay", "admin123")
        response = self.client.post(
            "/api/v1/payment-configs/",
            {
                "name": "Credito 2-6",
                "method": "CREDIT_CARD",
                "installments_min": 2,
                "installments_max": 6,
                "fee_percent": "4.990",
                "days_to_liquidate": 30,
                "receivable_mode": "IMMEDIATE",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)

        self.auth_as("cashier_pay", "cashier123")
        list_response = self.client.get("/api/v1/payment-configs/", {"method": "credit_card"})
        self.assertEqual(list_response.status_code, 200)
        self.assertEqual(list_response.data["count"], 1)

        forbidden = self.client.post(
            "/api/v1/payment-configs/",
            {"name": "Pix", "method": "PIX"},
            format="json",
        )
        self.assertEqual(forbidden.status_code, 403)

    def test_invalid_bracket_and_fee_are_rejected(self):
        self.auth_as("admin_pay", "admin123")
        response = self.client.post(
            "/api/v1/payment-configs/",
            {"name": "Roto", "method": "CREDIT_CARD", "installments_min": 6, "installments_max": 2},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("installments_max", response.data["fields"])

        response = self.client.post(
            "/api/v1/payment-configs/",
            {"name": "Caro", "method": "DEBIT_CARD", "fee_percent": "120"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("fee_percent", response.data["fields"])

    def test_cash_config_must_settle_same_day_without_bank(self):
        self.auth_as("admin_pay", "admin123")
        for payload in (
            {"name": "Efectivo D+1", "method": "CASH", "days_to_liquidate": 1},
            {"name": "Efectivo diferido", "method": "CASH", "receivable_mode": "DEFERRED"},
        ):
            response = self.client.post("/api/v1/payment-configs/", payload, format="json")
            self.assertEqual(response.status_code, 400)
            self.assertIn("days_to_liquidate", response.data["fields"])

        ok = self.client.post("/api/v1/payment-configs/", {"name": "Efectivo", "method": "CASH"}, format="json")
        self.assertEqual(ok.status_code, 201)

        with self.assertRaises(IntegrityError), transaction.atomic():
            PaymentMethodConfig.objects.create(name="Efectivo D+1", method=PaymentMethod.CASH, days_to_liquidate=1)

    def test_delete_config_nulls_references_and_keeps_receivables(self):
        config = PaymentMethodConfig.objects.create(
            name="Pix D+1",
            method=PaymentMethod.PIX,
            days_to_liquidate=1,
            receivable_mode=ReceivableMode.IMMEDIATE,
        )
        sale = Sale.objects.create(
            cashier=self.admin,
            total=Decimal("50.00"),
            payment_method=PaymentMethod.PIX,
            payment_config=config,
            sale_date=timezone.localdate(),
        )
        receivable = Receivable.objects.create(
            sale=sale,
            payment_method=PaymentMethod.PIX,
            gross_amount=Decimal("50.00"),
            fee_amount=Decimal("0.00"),
            net_amount=Decimal("50.00"),
            payment_config=config,
            due_date=timezone.localdate(),
        )

        self.auth_as("admin_pay", "admin123")
        response = self.client.delete(f"/api/v1/payment-configs/{config.id}/")
        self.assertEqual(response.status_code, 204)

        receivable.refresh_from_db()
        sale.refresh_from_db()
        self.assertIsNone(receivable.payment_config_id)
        self.assertIsNone(sale.payment_config_id)
        self.assertEqual(receivable.net_amount, Decimal("50.00"))
        self.assertFalse(PaymentMethodConfig.objects.filter(pk=config.pk).exists())


class ResolveConfigTests(APITestCase):
    def test_prefers_provider_match_then_narrowest_bracket(self):
        wide = PaymentMethodConfig.objects.create(
            name="Credito 1-12", method=PaymentMethod.CREDIT_CARD, installments_min=1, installments_max=12, fee_percent=6
        )
        narrow = PaymentMethodConfig.objects.create(
            name="Credito 2-6", method=PaymentMethod.CREDIT_CARD, installments_min=2, installments_max=6, fee_percent=5
        )
        provider = PaymentMethodConfig.objects.create(
            name="Stone 1-12",
            method=PaymentMethod.CREDIT_CARD,
            provider="Stone",
            installments_min=1,
            installments_max=12,
            fee_percent=4,
        )

        self.assertEqual(resolve_config(method=PaymentMethod.CREDIT_CARD, installments=3).config, narrow)
        self.assertEqual(resolve_config(method=PaymentMethod.CREDIT_CARD, installments=10).config, wide)
        self.assertEqual(
            resolve_config(method=PaymentMethod.CREDIT_CARD, installments=3, provider="stone").config,
            provider,
        )
        self.assertEqual(
            resolve_config(method=PaymentMethod.CREDIT_CARD, installments=3, provider="Cielo").config,
            narrow,
        )

    def test_inactive_configs_are_ignored_and_default_is_same_day(self):
        PaymentMethodConfig.objects.create(
            name="Pix viejo", method=PaymentMethod.PIX, days_to_liquidate=2, is_active=False
        )
        terms = resolve_config(method=PaymentMethod.PIX)
        self.assertIsNone(terms.config)
        self.assertEqual(terms.days_to_liquidate, 0)
        self.assertEqual(terms.fee_percent, Decimal("0"))
        self.assertEqual(terms.receivable_mode, ReceivableMode.IMMEDIATE)

    def test_explicit_config_must_match_method_and_installments(self):
        debit = PaymentMethodConfig.objects.create(name="Debito", method=PaymentMethod.DEBIT_CARD)
        credit = PaymentMethodConfig.objects.create(
            name="Credito 1x", method=PaymentMethod.CREDIT_CARD, installments_min=1, installments_max=1
        )
        with self.assertRaises(ConfigurationError):
            resolve_config(method=PaymentMethod.CREDIT_CARD, config_id=debit.pk)
        with self.assertRaises(ConfigurationError):
            resolve_config(method=PaymentMethod.CREDIT_CARD, installments=3, config_id=credit.pk)
        with self.assertRaises(ConfigurationError):
            resolve_config(method=PaymentMethod.CREDIT_CARD, config_id="not-a-uuid")
        self.assertEqual(resolve_config(method=PaymentMethod.DEBIT_CARD, config_id=debit.pk).config, debit)

    @override_settings(SETTLEMENT_ALLOW_DEFAULT_CONFIG=False)
    def test_missing_config_is_an_error_when_defaults_are_disabled(self):
        with self.assertRaises(ConfigurationError):
            resolve_config(method=PaymentMethod.CREDIT_CARD, installments=2)
        self.assertIsNone(resolve_config(method=PaymentMethod.CASH).config)

    def test_unknown_method_is_rejected(self):
        with self.assertRaises(ConfigurationError):
            resolve_config(method="BITCOIN")

    def test_every_method_has_a_default(self):
        self.assertEqual(set(DEFAULT_TERMS), set(PaymentMethod))
