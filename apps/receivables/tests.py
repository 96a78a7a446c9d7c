from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.banking.models import BankAccount
from apps.common.exceptions import ConflictError, ValidationError
from apps.ledger.models import FinancialTransaction, TransactionType
from apps.payments.models import PaymentMethod, PaymentMethodConfig, ReceivableMode
from apps.payments.services import SettlementTerms
from apps.receivables import services
from apps.receivables.models import Receivable, ReceivableStatus
from apps.receivables.settlement import build_schedule, split_total
from apps.sales.services import create_sale

User = get_user_model()


def terms(fee="0", days=0, mode=ReceivableMode.IMMEDIATE):
    return SettlementTerms(fee_percent=Decimal(fee), days_to_liquidate=days, receivable_mode=mode)


class SettlementScheduleTests(TestCase):
    def test_three_credit_installments_at_five_percent(self):
        sale_date = timezone.localdate()
        schedule = build_schedule(total=Decimal("300.00"), installments=3, terms=terms("5", 30), sale_date=sale_date)

        self.assertEqual(len(schedule), 3)
        for index, item in enumerate(schedule):
            self.assertEqual(item.gross_amount, Decimal("100.00"))
            self.assertEqual(item.fee_amount, Decimal("5.00"))
            self.assertEqual(item.net_amount, Decimal("95.00"))
            self.assertEqual(item.due_date, sale_date + timedelta(days=30 + 30 * index))
            self.assertFalse(item.paid_on_creation)

    def test_remainder_goes_to_last_installment(self):
        self.assertEqual(split_total(Decimal("100.00"), 3), [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")])
        self.assertEqual(split_total(Decimal("0.05"), 3), [Decimal("0.01"), Decimal("0.01"), Decimal("0.03")])

    def test_amounts_always_add_up_to_the_total(self):
        sale_date = timezone.localdate()
        for total in ("0.13", "10.00", "99.99", "1234.56", "1000.01"):
            for count in (1, 2, 3, 7, 12):
                for fee in ("0", "2.5", "3.333", "4.99"):
                    schedule = build_schedule(
                        total=Decimal(total), installments=count, terms=terms(fee, 30), sale_date=sale_date
                    )
                    gross = sum(item.gross_amount for item in schedule)
                    net_plus_fee = sum(item.net_amount + item.fee_amount for item in schedule)
                    self.assertEqual(gross, Decimal(total))
                    self.assertEqual(net_plus_fee, Decimal(total))

    def test_total_below_one_cent_per_installment_is_rejected(self):
        with self.assertRaises(ValidationError):
            split_total(Decimal("0.02"), 3)

    def test_same_day_immediate_is_paid_only_for_installments_due_today(self):
        sale_date = timezone.localdate()
        schedule = build_schedule(total=Decimal("90.00"), installments=3, terms=terms(), sale_date=sale_date)
        self.assertEqual([item.paid_on_creation for item in schedule], [True, False, False])

        deferred = build_schedule(
            total=Decimal("90.00"),
            installments=1,
            terms=terms(mode=ReceivableMode.DEFERRED),
            sale_date=sale_date,
        )
        self.assertFalse(deferred[0].paid_on_creation)


class SettlementCreationTests(TestCase):
    def setUp(self):
        self.cashier = User.objects.create_user(username="cashier_settle", password="cashier123", role="CASHIER")
        self.account = BankAccount.objects.create(
            name="Adquirente",
            bank_name="Banco Uno",
            initial_balance=Decimal("1000.00"),
            current_balance=Decimal("1000.00"),
        )

    def test_same_day_debit_is_paid_posts_revenue_and_credits_bank(self):
        PaymentMethodConfig.objects.create(
            name="Debito", method=PaymentMethod.DEBIT_CARD, days_to_liquidate=0, bank_account=self.account
        )
        _, receivables = create_sale(cashier=self.cashier, total="100.00", payment_method=PaymentMethod.DEBIT_CARD)

        receivable = receivables[0]
        self.assertEqual(receivable.status, ReceivableStatus.PAID)
        self.assertEqual(receivable.paid_date, timezone.localdate())
        entry = FinancialTransaction.objects.get(receivable=receivable)
        self.assertEqual(entry.type, TransactionType.REVENUE)
        self.assertEqual(entry.amount, Decimal("100.00"))
        self.assertEqual(entry.description, f"Venta {receivable.sale_id} cuota 1/1")
        self.assertEqual(str(receivable), entry.description)
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("1100.00"))

    def test_pix_with_one_day_liquidation_stays_pending(self):
        PaymentMethodConfig.objects.create(name="Pix D+1", method=PaymentMethod.PIX, days_to_liquidate=1)
        _, receivables = create_sale(cashier=self.cashier, total="80.00", payment_method=PaymentMethod.PIX)

        self.assertEqual(receivables[0].status, ReceivableStatus.PENDING)
        self.assertEqual(receivables[0].due_date, timezone.localdate() + timedelta(days=1))
        self.assertFalse(FinancialTransaction.objects.exists())

    def test_failure_while_posting_rolls_back_sale_and_installments(self):
        PaymentMethodConfig.objects.create(
            name="Debito", method=PaymentMethod.DEBIT_CARD, bank_account=self.account
        )
        self.account.is_active = False
        self.account.save(update_fields=["is_active"])

        with self.assertRaises(ValidationError):
            create_sale(cashier=self.cashier, total="100.00", payment_method=PaymentMethod.DEBIT_CARD)
        self.assertFalse(Receivable.objects.exists())
        self.assertFalse(FinancialTransaction.objects.exists())


class ReceivableLifecycleTests(TestCase):
    def setUp(self):
        self.cashier = User.objects.create_user(username="cashier_life", password="cashier123", role="CASHIER")
        self.today = timezone.localdate()
        PaymentMethodConfig.objects.create(
            name="Credito", method=PaymentMethod.CREDIT_CARD, installments_max=12, fee_percent=5, days_to_liquidate=30
        )
        PaymentMethodConfig.objects.create(
            name="Transferencia",
            method=PaymentMethod.BANK_TRANSFER,
            days_to_liquidate=1,
            receivable_mode=ReceivableMode.DEFERRED,
        )

    def _credit_sale(self, total="300.00", installments=1, sale_date=None):
        _, receivables = create_sale(
            cashier=self.cashier,
            total=total,
            payment_method=PaymentMethod.CREDIT_CARD,
            installments=installments,
            sale_date=sale_date,
        )
        return receivables

    def test_receive_posts_net_amount_once(self):
        receivable = self._credit_sale(installments=3)[0]
        receivable, entry = services.receive(receivable_id=receivable.pk, payment_date=self.today)

        self.assertEqual(receivable.status, ReceivableStatus.PAID)
        self.assertEqual(entry.amount, Decimal("95.00"))
        with self.assertRaises(ConflictError):
            services.receive(receivable_id=receivable.pk)
        self.assertEqual(FinancialTransaction.objects.filter(receivable=receivable).count(), 1)

    def test_cancel_does_not_post_and_cannot_be_received(self):
        receivable = self._credit_sale()[0]
        services.cancel(receivable_id=receivable.pk)
        self.assertFalse(FinancialTransaction.objects.exists())
        with self.assertRaises(ConflictError):
            services.receive(receivable_id=receivable.pk)
        with self.assertRaises(ConflictError):
            services.cancel(receivable_id=receivable.pk)

    def test_maybe_settle_is_idempotent_and_respects_liquidation_window(self):
        matured = self._credit_sale(sale_date=self.today - timedelta(days=31))[0]
        not_yet = self._credit_sale(sale_date=self.today - timedelta(days=29))[0]

        self.assertTrue(services.maybe_settle(matured.pk, today=self.today))
        self.assertFalse(services.maybe_settle(matured.pk, today=self.today))
        self.assertFalse(services.maybe_settle(not_yet.pk, today=self.today))

        matured.refresh_from_db()
        not_yet.refresh_from_db()
        self.assertEqual(matured.status, ReceivableStatus.PAID)
        self.assertEqual(matured.paid_date, self.today)
        self.assertEqual(not_yet.status, ReceivableStatus.PENDING)
        self.assertEqual(FinancialTransaction.objects.filter(receivable=matured).count(), 1)

    def test_deferred_receivables_are_never_auto_settled(self):
        _, receivables = create_sale(
            cashier=self.cashier,
            total="40.00",
            payment_method=PaymentMethod.BANK_TRANSFER,
            sale_date=self.today - timedelta(days=10),
        )
        self.assertEqual(services.auto_settle_due(today=self.today), [])
        receivable = Receivable.objects.get(pk=receivables[0].pk)
        self.assertEqual(receivable.status, ReceivableStatus.PENDING)
        self.assertEqual(receivable.effective_status(self.today), ReceivableStatus.OVERDUE)

    def test_one_failing_item_does_not_stop_auto_settlement(self):
        first = self._credit_sale(sale_date=self.today - timedelta(days=40))[0]
        second = self._credit_sale(sale_date=self.today - timedelta(days=35))[0]
        original = services.post_receivable_settlement

        def flaky(*, receivable, paid_date, created_by=None):
            if receivable.pk == first.pk:
                raise RuntimeError("ledger unavailable")
            return original(receivable=receivable, paid_date=paid_date, created_by=created_by)

        with mock.patch("apps.receivables.services.post_receivable_settlement", side_effect=flaky):
            with self.assertLogs("apps.receivables.services", level="ERROR"):
                settled = services.auto_settle_due(today=self.today)

        self.assertEqual(settled, [second.pk])
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, ReceivableStatus.PENDING)
        self.assertEqual(second.status, ReceivableStatus.PAID)


class ReceivableApiTests(APITestCase):
    def setUp(self):
        self.finance = User.objects.create_user(username="finance_rec", password="finance123", role="FINANCE")
        self.cashier = User.objects.create_user(username="cashier_rec", password="cashier123", role="CASHIER")
        self.today = timezone.localdate()
        PaymentMethodConfig.objects.create(
            name="Credito", method=PaymentMethod.CREDIT_CARD, installments_max=12, fee_percent=5, days_to_liquidate=30
        )
        PaymentMethodConfig.objects.create(
            name="Transferencia",
            method=PaymentMethod.BANK_TRANSFER,
            days_to_liquidate=1,
            receivable_mode=ReceivableMode.DEFERRED,
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_listing_auto_settles_matured_items_once(self):
        _, receivables = create_sale(
            cashier=self.cashier,
            total="100.00",
            payment_method=PaymentMethod.CREDIT_CARD,
            sale_date=self.today - timedelta(days=31),
        )
        self.auth_as("finance_rec", "finance123")

        first = self.client.get("/api/v1/receivables/")
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data["results"][0]["status"], ReceivableStatus.PAID)

        second = self.client.get("/api/v1/receivables/")
        self.assertEqual(second.data["results"][0]["status"], ReceivableStatus.PAID)
        self.assertEqual(FinancialTransaction.objects.filter(receivable_id=receivables[0].pk).count(), 1)

    def test_overdue_is_consistent_between_list_and_detail(self):
        _, receivables = create_sale(
            cashier=self.cashier,
            total="60.00",
            payment_method=PaymentMethod.BANK_TRANSFER,
            sale_date=self.today - timedelta(days=5),
        )
        create_sale(cashier=self.cashier, total="70.00", payment_method=PaymentMethod.BANK_TRANSFER)
        self.auth_as("finance_rec", "finance123")

        overdue = self.client.get("/api/v1/receivables/", {"status": "overdue"})
        self.assertEqual(overdue.data["count"], 1)
        self.assertEqual(overdue.data["results"][0]["effective_status"], ReceivableStatus.OVERDUE)

        pending = self.client.get("/api/v1/receivables/", {"status": "pending"})
        self.assertEqual(pending.data["count"], 1)
        self.assertEqual(pending.data["results"][0]["effective_status"], ReceivableStatus.PENDING)

        detail = self.client.get(f"/api/v1/receivables/{receivables[0].pk}/")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.data["effective_status"], ReceivableStatus.OVERDUE)
        self.assertEqual(detail.data["status"], ReceivableStatus.PENDING)

    def test_receive_endpoint_and_conflict(self):
        _, receivables = create_sale(cashier=self.cashier, total="300.00", payment_method=PaymentMethod.CREDIT_CARD, installments=3)
        self.auth_as("finance_rec", "finance123")
        url = f"/api/v1/receivables/{receivables[1].pk}/receive/"

        response = self.client.post(url, {"payment_date": str(self.today)}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], ReceivableStatus.PAID)
        self.assertIsNotNone(response.data["financial_transaction"])

        again = self.client.post(url, {}, format="json")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.data["code"], "conflict")

    def test_summary_and_unknown_id(self):
        create_sale(cashier=self.cashier, total="300.00", payment_method=PaymentMethod.CREDIT_CARD, installments=3)
        self.auth_as("finance_rec", "finance123")

        summary = self.client.get("/api/v1/receivables/summary/")
        self.assertEqual(summary.status_code, 200)
        self.assertEqual(summary.data["pending"]["count"], 3)
        self.assertEqual(summary.data["pending"]["net_amount"], Decimal("285.00"))

        missing = self.client.post("/api/v1/receivables/00000000-0000-0000-0000-000000000000/receive/", {}, format="json")
        self.assertEqual(missing.status_code, 404)

    def test_cashier_cannot_manage_receivables(self):
        self.auth_as("cashier_rec", "cashier123")
        self.assertEqual(self.client.get("/api/v1/receivables/").status_code, 403)
