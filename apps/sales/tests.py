from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.banking.models import BankAccount
from apps.ledger.models import FinancialTransaction
from apps.payments.models import PaymentMethod, PaymentMethodConfig
from apps.receivables.models import Receivable, ReceivableStatus
from apps.sales.models import Sale, SaleStatus

User = get_user_model()


class SalesApiTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin_sales", password="admin123", role="ADMIN")
        self.cashier = User.objects.create_user(username="cashier_sales", password="cashier123", role="CASHIER")
        self.other_cashier = User.objects.create_user(username="cashier_other", password="cashier123", role="CASHIER")
        self.account = BankAccount.objects.create(
            name="Adquirente", bank_name="Banco Uno", initial_balance=0, current_balance=0
        )
        self.credit = PaymentMethodConfig.objects.create(
            name="Credito a meses",
            method=PaymentMethod.CREDIT_CARD,
            installments_min=1,
            installments_max=12,
            fee_percent=Decimal("3.000"),
            bank_account=self.account,
        )
        self.debit = PaymentMethodConfig.objects.create(
            name="Debito", method=PaymentMethod.DEBIT_CARD, bank_account=self.account
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def _credit_sale(self, total="300.00", installments=3):
        return self.client.post(
            "/api/v1/sales/",
            {"total": total, "payment_method": "CREDIT_CARD", "installments": installments, "customer_name": "Ana"},
            format="json",
        )

    def test_create_installment_sale(self):
        self.auth_as("cashier_sales", "cashier123")
        response = self._credit_sale()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["payment_config"], self.credit.id)
        receivables = sorted(response.data["receivables"], key=lambda item: item["installment_number"])
        self.assertEqual([item["gross_amount"] for item in receivables], ["100.00", "100.00", "100.00"])
        self.assertEqual([item["fee_amount"] for item in receivables], ["3.00", "3.00", "3.00"])
        self.assertEqual([item["status"] for item in receivables], ["PAID", "PENDING", "PENDING"])
        today = timezone.localdate()
        self.assertEqual(receivables[2]["due_date"], (today + timedelta(days=60)).isoformat())

        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("97.00"))
        self.assertEqual(FinancialTransaction.objects.count(), 1)
        audit = AuditLog.objects.get(action="sale.create")
        self.assertEqual(audit.actor_role, "CASHIER")
        self.assertEqual(len(audit.payload["receivables"]), 3)

    def test_installments_only_for_credit_card(self):
        self.auth_as("cashier_sales", "cashier123")
        response = self.client.post(
            "/api/v1/sales/",
            {"total": "100.00", "payment_method": "DEBIT_CARD", "installments": 2},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("installments", response.data["fields"])
        self.assertEqual(Sale.objects.count(), 0)

    def test_explicit_config_for_other_method_is_rejected(self):
        self.auth_as("cashier_sales", "cashier123")
        response = self.client.post(
            "/api/v1/sales/",
            {"total": "100.00", "payment_method": "CREDIT_CARD", "payment_config_id": str(self.debit.id)},
            format="json",
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["code"], "configuration_error")
        self.assertEqual(Sale.objects.count(), 0)
        self.assertEqual(Receivable.objects.count(), 0)

    def test_cancel_cascades_to_open_receivables_only(self):
        self.auth_as("cashier_sales", "cashier123")
        sale_id = self._credit_sale().data["id"]

        response = self.client.post(f"/api/v1/sales/{sale_id}/cancel/", {"reason": "Devolucion"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], SaleStatus.CANCELLED)
        statuses = sorted(Receivable.objects.filter(sale_id=sale_id).values_list("status", flat=True))
        self.assertEqual(statuses, [ReceivableStatus.CANCELLED, ReceivableStatus.CANCELLED, ReceivableStatus.PAID])

        again = self.client.post(f"/api/v1/sales/{sale_id}/cancel/", {}, format="json")
        self.assertEqual(again.status_code, 409)

        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("97.00"))

    def test_cashier_cannot_cancel_someone_elses_sale(self):
        self.auth_as("cashier_sales", "cashier123")
        sale_id = self._credit_sale().data["id"]

        self.auth_as("cashier_other", "cashier123")
        response = self.client.post(f"/api/v1/sales/{sale_id}/cancel/", {}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Sale.objects.get(pk=sale_id).status, SaleStatus.CONFIRMED)

        self.auth_as("admin_sales", "admin123")
        self.assertEqual(self.client.post(f"/api/v1/sales/{sale_id}/cancel/", {}, format="json").status_code, 200)

    def test_delete_requires_admin_and_removes_receivables(self):
        self.auth_as("cashier_sales", "cashier123")
        sale_id = self._credit_sale().data["id"]
        self.assertEqual(self.client.delete(f"/api/v1/sales/{sale_id}/").status_code, 403)

        self.auth_as("admin_sales", "admin123")
        self.assertEqual(self.client.delete(f"/api/v1/sales/{sale_id}/").status_code, 204)
        self.assertFalse(Sale.objects.filter(pk=sale_id).exists())
        self.assertEqual(Receivable.objects.count(), 0)
        entry = FinancialTransaction.objects.get()
        self.assertIsNone(entry.receivable_id)

    def test_list_filters_by_status(self):
        self.auth_as("cashier_sales", "cashier123")
        first = self._credit_sale().data["id"]
        self._credit_sale(total="50.00", installments=1)
        self.client.post(f"/api/v1/sales/{first}/cancel/", {}, format="json")

        response = self.client.get("/api/v1/sales/", {"status": "cancelled"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], first)
