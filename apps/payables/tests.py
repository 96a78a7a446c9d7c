from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.banking.models import BankAccount
from apps.ledger.models import FinancialTransaction, TransactionType
from apps.payables.models import Payable, PayableStatus

User = get_user_model()


class PayablesApiTests(APITestCase):
    def setUp(self):
        self.finance = User.objects.create_user(username="finance_pay", password="finance123", role="FINANCE")
        self.cashier = User.objects.create_user(username="cashier_payables", password="cashier123", role="CASHIER")
        self.today = timezone.localdate()
        self.account = BankAccount.objects.create(
            name="Operativa",
            bank_name="Banco Uno",
            initial_balance=Decimal("1100.00"),
            current_balance=Decimal("1100.00"),
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def create_payable(self, amount="100.00", due_date=None, category="Aluguel"):
        response = self.client.post(
            "/api/v1/payables/",
            {
                "description": "Aluguel loja",
                "category": category,
                "supplier_name": "Imobiliaria",
                "amount": amount,
                "due_date": str(due_date or self.today),
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        return response.data["id"]

    def test_partial_then_full_payment(self):
        self.auth_as("finance_pay", "finance123")
        payable_id = self.create_payable("100.00")

        partial = self.client.post(f"/api/v1/payables/{payable_id}/pay/", {"amount_paid": "40.00"}, format="json")
        self.assertEqual(partial.status_code, 200)
        self.assertEqual(partial.data["status"], PayableStatus.PARTIAL)
        self.assertEqual(Decimal(partial.data["total_paid"]), Decimal("40.00"))

        full = self.client.post(f"/api/v1/payables/{payable_id}/pay/", {"amount_paid": "60.00"}, format="json")
        self.assertEqual(full.status_code, 200)
        self.assertEqual(full.data["status"], PayableStatus.PAID)

        entries = FinancialTransaction.objects.filter(payable_id=payable_id, type=TransactionType.EXPENSE)
        self.assertEqual(sorted(entry.amount for entry in entries), [Decimal("40.00"), Decimal("60.00")])
        self.assertEqual(AuditLog.objects.filter(action="payables.pay", entity_id=payable_id).count(), 2)

        paid_again = self.client.post(f"/api/v1/payables/{payable_id}/pay/", {"amount_paid": "1.00"}, format="json")
        self.assertEqual(paid_again.status_code, 409)

    def test_overpayment_is_rejected_without_changes(self):
        self.auth_as("finance_pay", "finance123")
        payable_id = self.create_payable("100.00")
        self.client.post(f"/api/v1/payables/{payable_id}/pay/", {"amount_paid": "30.00"}, format="json")

        response = self.client.post(f"/api/v1/payables/{payable_id}/pay/", {"amount_paid": "70.01"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("amount_paid", response.data["fields"])
        payable = Payable.objects.get(pk=payable_id)
        self.assertEqual(payable.total_paid, Decimal("30.00"))
        self.assertEqual(payable.status, PayableStatus.PARTIAL)

    def test_payment_from_bank_account_debits_balance(self):
        self.auth_as("finance_pay", "finance123")
        payable_id = self.create_payable("50.00")
        response = self.client.post(
            f"/api/v1/payables/{payable_id}/pay/",
            {"amount_paid": "50.00", "payment_method": "PIX", "account_id": str(self.account.id)},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("1050.00"))
        entry = FinancialTransaction.objects.get(payable_id=payable_id)
        self.assertEqual(entry.bank_account_id, self.account.id)

    def test_failed_bank_debit_rolls_back_payment(self):
        self.auth_as("finance_pay", "finance123")
        payable_id = self.create_payable("50.00")
        response = self.client.post(
            f"/api/v1/payables/{payable_id}/pay/",
            {"amount_paid": "50.00", "account_id": "00000000-0000-0000-0000-000000000000"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        payable = Payable.objects.get(pk=payable_id)
        self.assertEqual(payable.total_paid, Decimal("0.00"))
        self.assertEqual(payable.status, PayableStatus.PENDING)
        self.assertFalse(FinancialTransaction.objects.filter(payable_id=payable_id).exists())

    def test_cancel_only_without_payments(self):
        self.auth_as("finance_pay", "finance123")
        untouched = self.create_payable("20.00")
        paid_some = self.create_payable("20.00")
        self.client.post(f"/api/v1/payables/{paid_some}/pay/", {"amount_paid": "5.00"}, format="json")

        self.assertEqual(self.client.post(f"/api/v1/payables/{untouched}/cancel/").status_code, 200)
        self.assertEqual(self.client.post(f"/api/v1/payables/{paid_some}/cancel/").status_code, 409)
        cancelled_pay = self.client.post(f"/api/v1/payables/{untouched}/pay/", {"amount_paid": "5.00"}, format="json")
        self.assertEqual(cancelled_pay.status_code, 409)

    def test_overdue_filter_and_effective_status(self):
        self.auth_as("finance_pay", "finance123")
        late = self.create_payable("10.00", due_date=self.today - timedelta(days=3))
        self.create_payable("10.00", due_date=self.today + timedelta(days=3))

        response = self.client.get("/api/v1/payables/", {"status": "overdue"})
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], late)
        self.assertEqual(response.data["results"][0]["effective_status"], PayableStatus.OVERDUE)
        self.assertEqual(response.data["results"][0]["status"], PayableStatus.PENDING)

    def test_amount_must_be_positive_and_cashier_is_forbidden(self):
        self.auth_as("finance_pay", "finance123")
        response = self.client.post(
            "/api/v1/payables/",
            {"description": "Luz", "category": "Utilidades", "amount": "0", "due_date": str(self.today)},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

        self.auth_as("cashier_payables", "cashier123")
        self.assertEqual(self.client.get("/api/v1/payables/").status_code, 403)
