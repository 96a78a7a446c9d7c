from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.banking.models import BankAccount
from apps.ledger.models import TransactionStatus, TransactionType
from apps.ledger.services import post_transaction
from apps.reconciliation.models import BankTransaction, BankTransactionStatus

User = get_user_model()


class PostTransactionTests(TestCase):
    def setUp(self):
        self.account = BankAccount.objects.create(
            name="Principal", bank_name="Banco Uno", initial_balance=Decimal("500.00"), current_balance=Decimal("500.00")
        )

    def test_bank_is_moved_only_when_requested(self):
        today = timezone.localdate()
        post_transaction(
            type=TransactionType.REVENUE, amount="100", date=today, category="Otros", bank_account_id=self.account.pk
        )
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("500.00"))

        entry = post_transaction(
            type=TransactionType.EXPENSE,
            amount="40.555",
            date=today,
            category="Renta",
            bank_account_id=self.account.pk,
            apply_to_bank=True,
        )
        self.assertEqual(entry.amount, Decimal("40.56"))
        self.assertEqual(entry.signed_amount, Decimal("-40.56"))
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("459.44"))

    def test_non_positive_amount_is_rejected(self):
        with self.assertRaises(ValueError):
            post_transaction(type=TransactionType.REVENUE, amount="0", date=timezone.localdate(), category="Otros")


class FinancialTransactionApiTests(APITestCase):
    def setUp(self):
        User.objects.create_user(username="finance_ledger", password="finance123", role="FINANCE")
        User.objects.create_user(username="cashier_ledger", password="cashier123", role="CASHIER")
        self.account = BankAccount.objects.create(name="Principal", bank_name="Banco Uno")
        today = timezone.localdate()
        self.revenue = post_transaction(
            type=TransactionType.REVENUE, amount="300.00", date=today, category="Sales", bank_account_id=self.account.pk
        )
        post_transaction(type=TransactionType.EXPENSE, amount="120.00", date=today, category="Renta")
        post_transaction(
            type=TransactionType.EXPENSE,
            amount="999.00",
            date=today,
            category="Renta",
            status=TransactionStatus.PENDING,
        )
        post_transaction(
            type=TransactionType.REVENUE, amount="50.00", date=today - timedelta(days=40), category="Sales"
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_summary_counts_paid_entries_in_range(self):
        self.auth_as("finance_ledger", "finance123")
        date_from = (timezone.localdate() - timedelta(days=7)).isoformat()
        response = self.client.get("/api/v1/financial-transactions/summary/", {"date_from": date_from})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["revenue"], Decimal("300.00"))
        self.assertEqual(response.data["expense"], Decimal("120.00"))
        self.assertEqual(response.data["balance"], Decimal("180.00"))

    def test_list_filters_and_reconciled_flag(self):
        BankTransaction.objects.create(
            bank_account=self.account,
            date=self.revenue.date,
            description="PIX",
            amount=Decimal("300.00"),
            status=BankTransactionStatus.MATCHED,
            financial_transaction=self.revenue,
        )
        self.auth_as("finance_ledger", "finance123")

        response = self.client.get("/api/v1/financial-transactions/", {"category": "sales"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 2)

        detail = self.client.get(f"/api/v1/financial-transactions/{self.revenue.pk}/")
        self.assertTrue(detail.data["is_reconciled"])
        expenses = self.client.get("/api/v1/financial-transactions/", {"type": "expense"})
        self.assertEqual(expenses.data["count"], 2)
        self.assertFalse(expenses.data["results"][0]["is_reconciled"])

    def test_cashier_cannot_read_the_ledger(self):
        self.auth_as("cashier_ledger", "cashier123")
        self.assertEqual(self.client.get("/api/v1/financial-transactions/").status_code, 403)
