from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.banking import services
from apps.banking.models import BankAccount
from apps.common.exceptions import NotFoundError, ValidationError
from apps.payments.models import PaymentMethod, PaymentMethodConfig

User = get_user_model()


class BankAccountApiTests(APITestCase):
    def setUp(self):
        self.finance = User.objects.create_user(username="finance_bank", password="finance123", role="FINANCE")
        self.cashier = User.objects.create_user(username="cashier_bank", password="cashier123", role="CASHIER")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_create_seeds_current_balance_and_keeps_it_read_only(self):
        self.auth_as("finance_bank", "finance123")
        response = self.client.post(
            "/api/v1/bank-accounts/",
            {"name": "Operativa", "bank_name": "Banco Uno", "initial_balance": "1000.00", "current_balance": "5.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Decimal(response.data["current_balance"]), Decimal("1000.00"))

        account_id = response.data["id"]
        patch_response = self.client.patch(
            f"/api/v1/bank-accounts/{account_id}/",
            {"current_balance": "99999.00", "name": "Operativa principal"},
            format="json",
        )
        self.assertEqual(patch_response.status_code, 200)
        account = BankAccount.objects.get(pk=account_id)
        self.assertEqual(account.current_balance, Decimal("1000.00"))
        self.assertEqual(account.name, "Operativa principal")
        self.assertTrue(AuditLog.objects.filter(action="banking.account.create", entity_id=account_id).exists())

    def test_delete_is_rejected_while_linked_to_payment_config(self):
        self.auth_as("finance_bank", "finance123")
        account = BankAccount.objects.create(name="Cartao", bank_name="Banco Dos", initial_balance=0, current_balance=0)
        PaymentMethodConfig.objects.create(name="Debito", method=PaymentMethod.DEBIT_CARD, bank_account=account)

        response = self.client.delete(f"/api/v1/bank-accounts/{account.id}/")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "conflict")
        self.assertTrue(BankAccount.objects.filter(pk=account.pk).exists())

    def test_delete_unused_account(self):
        self.auth_as("finance_bank", "finance123")
        account = BankAccount.objects.create(name="Reserva", bank_name="Banco Tres")
        response = self.client.delete(f"/api/v1/bank-accounts/{account.id}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(BankAccount.objects.filter(pk=account.pk).exists())

    def test_cashier_cannot_access_bank_accounts(self):
        self.auth_as("cashier_bank", "cashier123")
        response = self.client.get("/api/v1/bank-accounts/")
        self.assertEqual(response.status_code, 403)


class BankBalanceServiceTests(APITestCase):
    def setUp(self):
        self.account = BankAccount.objects.create(
            name="Operativa",
            bank_name="Banco Uno",
            initial_balance=Decimal("1000.00"),
            current_balance=Decimal("1000.00"),
        )

    def test_credit_and_debit_move_current_balance(self):
        services.credit(self.account.pk, Decimal("100.00"), reason="test")
        services.debit(self.account.pk, "50.00", reason="test")
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("1050.00"))

    def test_non_positive_amount_is_rejected(self):
        with self.assertRaises(ValidationError):
            services.credit(self.account.pk, Decimal("0"))
        with self.assertRaises(ValidationError):
            services.debit(self.account.pk, Decimal("-5"))

    def test_inactive_account_cannot_move(self):
        self.account.is_active = False
        self.account.save(update_fields=["is_active"])
        with self.assertRaises(ValidationError):
            services.credit(self.account.pk, Decimal("10.00"))

    def test_unknown_account(self):
        with self.assertRaises(NotFoundError):
            services.credit("00000000-0000-0000-0000-000000000000", Decimal("10.00"))
