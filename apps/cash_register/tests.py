from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework.test import APITestCase

from apps.banking.models import BankAccount
from apps.cash_register import services
from apps.cash_register.models import CashMovement, SessionStatus
from apps.common.exceptions import ConflictError, ValidationError
from apps.payments.models import PaymentMethod, PaymentMethodConfig
from apps.sales.services import cancel_sale, create_sale

User = get_user_model()


class CashSessionServiceTests(TestCase):
    def setUp(self):
        self.cashier = User.objects.create_user(username="cashier_cash", password="cashier123", role="CASHIER")

    def test_expected_balance_example(self):
        session = services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="1000.00")
        create_sale(
            cashier=self.cashier,
            total="100.00",
            payment_method=PaymentMethod.CASH,
            cash_session_id=session.pk,
        )
        services.suprimento(session_id=session.pk, amount="50.00", actor=self.cashier)
        services.sangria(session_id=session.pk, amount="20.00", reason="Deposito banco", actor=self.cashier)

        self.assertEqual(services.compute_expected(session), Decimal("1130.00"))
        closed = services.close_session(session_id=session.pk, closing_balance="1125.00", actor=self.cashier)
        self.assertEqual(closed.status, SessionStatus.CLOSED)
        self.assertEqual(closed.expected_balance, Decimal("1130.00"))
        self.assertEqual(closed.difference, Decimal("-5.00"))
        self.assertIsNotNone(closed.closed_at)

    def test_only_one_open_session_per_terminal(self):
        services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="100.00")
        with self.assertRaises(ConflictError):
            services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="100.00")
        other = services.open_session(terminal="PDV-02", operator=self.cashier, opening_balance="0")
        self.assertTrue(other.is_open)

    def test_terminal_can_reopen_after_close(self):
        first = services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="100.00")
        services.close_session(session_id=first.pk, closing_balance="100.00", actor=self.cashier)
        second = services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="100.00")
        self.assertNotEqual(first.pk, second.pk)

    def test_closed_session_rejects_movements_and_second_close(self):
        session = services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="100.00")
        services.close_session(session_id=session.pk, closing_balance="100.00", actor=self.cashier)

        with self.assertRaises(ConflictError):
            services.sangria(session_id=session.pk, amount="10.00", reason="Troco", actor=self.cashier)
        with self.assertRaises(ConflictError):
            services.close_session(session_id=session.pk, closing_balance="100.00", actor=self.cashier)
        with self.assertRaises(ConflictError):
            create_sale(
                cashier=self.cashier,
                total="10.00",
                payment_method=PaymentMethod.CASH,
                cash_session_id=session.pk,
            )

    def test_movement_validation(self):
        session = services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="100.00")
        with self.assertRaises(ValidationError):
            services.sangria(session_id=session.pk, amount="10.00", reason="ab", actor=self.cashier)
        with self.assertRaises(ValidationError):
            services.suprimento(session_id=session.pk, amount="0", actor=self.cashier)

        movement = services.suprimento(session_id=session.pk, amount="15.00", actor=self.cashier)
        self.assertEqual(movement.reason, "Ingreso de efectivo a caja")

    def test_non_cash_and_cancelled_sales_stay_out_of_the_drawer(self):
        account = BankAccount.objects.create(
            name="Adquirente", bank_name="Banco Uno", initial_balance=0, current_balance=0
        )
        PaymentMethodConfig.objects.create(name="Debito", method=PaymentMethod.DEBIT_CARD, bank_account=account)
        session = services.open_session(terminal="PDV-01", operator=self.cashier, opening_balance="200.00")

        create_sale(
            cashier=self.cashier,
            total="80.00",
            payment_method=PaymentMethod.DEBIT_CARD,
            cash_session_id=session.pk,
        )
        cancelled, _ = create_sale(
            cashier=self.cashier,
            total="30.00",
            payment_method=PaymentMethod.CASH,
            cash_session_id=session.pk,
        )
        cancel_sale(sale_id=cancelled.pk)

        self.assertEqual(services.compute_expected(session), Decimal("200.00"))
        account.refresh_from_db()
        self.assertEqual(account.current_balance, Decimal("80.00"))

        report = services.session_report(session)
        self.assertEqual(report["sales"][PaymentMethod.DEBIT_CARD]["total"], Decimal("80.00"))
        self.assertEqual(report["sales"][PaymentMethod.CASH]["count"], 0)

    def test_cash_sale_requires_session(self):
        with self.assertRaises(ValidationError):
            create_sale(cashier=self.cashier, total="10.00", payment_method=PaymentMethod.CASH)

    @override_settings(CASH_SALE_REQUIRES_SESSION=False)
    def test_cash_sale_without_session_when_allowed(self):
        sale, receivables = create_sale(cashier=self.cashier, total="10.00", payment_method=PaymentMethod.CASH)
        self.assertIsNone(sale.cash_session_id)
        self.assertIsNone(receivables[0].bank_account_id)


class CashSessionApiTests(APITestCase):
    def setUp(self):
        self.cashier = User.objects.create_user(username="cashier_api", password="cashier123", role="CASHIER")
        self.finance = User.objects.create_user(username="finance_cash", password="finance123", role="FINANCE")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_full_cycle_over_api(self):
        self.auth_as("cashier_api", "cashier123")
        opened = self.client.post(
            "/api/v1/cash-sessions/open/",
            {"terminal": "PDV-07", "opening_balance": "1000.00"},
            format="json",
        )
        self.assertEqual(opened.status_code, 201)
        session_id = opened.data["id"]

        duplicate = self.client.post(
            "/api/v1/cash-sessions/open/",
            {"terminal": "PDV-07", "opening_balance": "10.00"},
            format="json",
        )
        self.assertEqual(duplicate.status_code, 409)

        sale = self.client.post(
            "/api/v1/sales/",
            {"total": "100.00", "payment_method": "CASH", "cash_session_id": session_id},
            format="json",
        )
        self.assertEqual(sale.status_code, 201)
        self.assertEqual(
            self.client.post(
                f"/api/v1/cash-sessions/{session_id}/suprimento/", {"amount": "50.00"}, format="json"
            ).status_code,
            201,
        )
        bad_sangria = self.client.post(
            f"/api/v1/cash-sessions/{session_id}/sangria/", {"amount": "20.00", "reason": ""}, format="json"
        )
        self.assertEqual(bad_sangria.status_code, 400)
        self.assertEqual(
            self.client.post(
                f"/api/v1/cash-sessions/{session_id}/sangria/",
                {"amount": "20.00", "reason": "Deposito"},
                format="json",
            ).status_code,
            201,
        )

        current = self.client.get("/api/v1/cash-sessions/current/", {"terminal": "PDV-07"})
        self.assertEqual(current.status_code, 200)
        self.assertEqual(current.data["current_balance"], Decimal("1130.00"))

        report = self.client.get(f"/api/v1/cash-sessions/{session_id}/report/")
        self.assertEqual(report.status_code, 200)
        self.assertEqual(report.data["expected_balance"], Decimal("1130.00"))
        self.assertEqual(report.data["sales"]["CASH"]["total"], Decimal("100.00"))

        closed = self.client.post(
            f"/api/v1/cash-sessions/{session_id}/close/", {"closing_balance": "1130.00"}, format="json"
        )
        self.assertEqual(closed.status_code, 200)
        self.assertEqual(closed.data["difference"], Decimal("0.00"))
        self.assertEqual(CashMovement.objects.filter(session_id=session_id).count(), 2)

        after_close = self.client.post(
            f"/api/v1/cash-sessions/{session_id}/suprimento/", {"amount": "5.00"}, format="json"
        )
        self.assertEqual(after_close.status_code, 409)

    def test_finance_views_but_cannot_operate(self):
        self.auth_as("finance_cash", "finance123")
        self.assertEqual(self.client.get("/api/v1/cash-sessions/").status_code, 200)
        response = self.client.post(
            "/api/v1/cash-sessions/open/",
            {"terminal": "PDV-01", "opening_balance": "0"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_open_and_current_fall_back_to_default_terminal(self):
        self.cashier.default_terminal = "PDV-03"
        self.cashier.save(update_fields=["default_terminal"])
        self.auth_as("cashier_api", "cashier123")

        opened = self.client.post("/api/v1/cash-sessions/open/", {"opening_balance": "50.00"}, format="json")
        self.assertEqual(opened.status_code, 201)
        self.assertEqual(opened.data["terminal"], "PDV-03")
        current = self.client.get("/api/v1/cash-sessions/current/")
        self.assertEqual(current.data["id"], opened.data["id"])

        self.auth_as("finance_cash", "finance123")
        self.assertEqual(self.client.get("/api/v1/cash-sessions/current/").status_code, 400)
