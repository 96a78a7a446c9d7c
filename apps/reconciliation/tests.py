from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.banking.models import BankAccount
from apps.cash_register.services import compute_expected, open_session
from apps.common.exceptions import ConflictError, ValidationError
from apps.ledger.models import FinancialTransaction, TransactionStatus, TransactionType
from apps.ledger.services import BANK_ADJUSTMENT_CATEGORY, post_transaction
from apps.payments.models import PaymentMethod, PaymentMethodConfig
from apps.receivables.models import Receivable, ReceivableStatus
from apps.reconciliation import services
from apps.reconciliation.models import BankTransaction, BankTransactionStatus
from apps.reconciliation.parsers import parse_amount, parse_date, parse_statement_line, parse_statement_text
from apps.sales.services import create_sale

User = get_user_model()


class StatementParserTests(SimpleTestCase):
    def test_parse_amount_formats(self):
        cases = {
            "1.234,56": Decimal("1234.56"),
            "1,234.56": Decimal("1234.56"),
            "-45,90": Decimal("-45.90"),
            "(12.00)": Decimal("-12.00"),
            "R$ 99,90": Decimal("99.90"),
            "150,00 D": Decimal("-150.00"),
            "150,00 C": Decimal("150.00"),
            "12.50-": Decimal("-12.50"),
            "1.234": Decimal("1234.00"),
            "+7": Decimal("7.00"),
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(parse_amount(raw), expected)

    def test_parse_amount_rejects_garbage(self):
        for raw in ("", "abc", None, "R$"):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_amount(raw))

    def test_parse_amount_rejects_booleans_and_oversized_values(self):
        for raw in (True, False, "1e20", 1e20, Decimal("1e30"), 10_000_000_000, "10.000.000.000,00", Decimal("NaN")):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_amount(raw))
        self.assertEqual(parse_amount(Decimal("9999999999.99")), Decimal("9999999999.99"))
        self.assertEqual(parse_amount(12), Decimal("12.00"))

    def test_parse_date_formats(self):
        for raw in ("2026-03-05", "05/03/2026", "05-03-2026", "05/03/26"):
            with self.subTest(raw=raw):
                self.assertEqual(parse_date(raw), date(2026, 3, 5))
        self.assertIsNone(parse_date("2026/13/40"))
        self.assertIsNone(parse_date(""))

    def test_comma_delimited_line_keeps_decimal_comma(self):
        line = parse_statement_line("2026-03-05,Deposito en efectivo,12,50")
        self.assertEqual(line.amount, Decimal("12.50"))
        self.assertEqual(line.description, "Deposito en efectivo")

    def test_comma_delimited_line_accepts_negative_decimal_comma_forms(self):
        for raw in ("(50,00)", "50,00-", "50,00D", "50,00 D", "-50,00"):
            with self.subTest(raw=raw):
                line = parse_statement_line(f"2026-03-05,Tarifa,{raw}")
                self.assertIsNotNone(line)
                self.assertEqual(line.amount, Decimal("-50.00"))
                self.assertEqual(line.description, "Tarifa")
        self.assertEqual(parse_statement_line("2026-03-05,Abono,50,00C").amount, Decimal("50.00"))

    def test_parse_statement_text_skips_headers_and_counts_invalid(self):
        text = (
            "data;descricao;valor\n"
            "05/03/2026;PIX RECEBIDO;150,00\n"
            "\n"
            "# comentario\n"
            "06/03/2026;TARIFA;-12,50\n"
            "linha ruim\n"
            "07/03/2026;SEM VALOR;0,00\n"
        )
        lines, invalid = parse_statement_text(text)
        self.assertEqual(invalid, 2)
        self.assertEqual([line.amount for line in lines], [Decimal("150.00"), Decimal("-12.50")])
        self.assertEqual(lines[1].natural_key, (date(2026, 3, 6), Decimal("-12.50"), "TARIFA"))


class ReconciliationServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="finance_rec", password="finance123", role="FINANCE")
        self.account = BankAccount.objects.create(
            name="Principal", bank_name="Banco Uno", initial_balance=Decimal("1000.00"), current_balance=Decimal("1000.00")
        )
        self.other_account = BankAccount.objects.create(name="Reserva", bank_name="Banco Dos")
        self.today = timezone.localdate()

    def _import(self, *records, account=None):
        return services.import_statement(
            bank_account_id=(account or self.account).pk,
            records=[{"date": self.today.isoformat(), "description": desc, "amount": amount} for desc, amount in records],
            actor=self.user,
        )

    def _entry(self, type=TransactionType.REVENUE, amount="150.00", account=None, status=TransactionStatus.PAID):
        return post_transaction(
            type=type,
            amount=amount,
            date=self.today,
            category="Otros",
            status=status,
            bank_account_id=(account or self.account).pk,
        )

    def test_import_skips_duplicates_and_leaves_balance_alone(self):
        result = self._import(("PIX RECEBIDO", "150,00"), ("PIX RECEBIDO", "150,00"), ("TARIFA", "-12,50"))
        self.assertEqual(len(result.created), 2)
        self.assertEqual(result.skipped_duplicates, 1)

        again = self._import(("TARIFA", "-12,50"), ("DEPOSITO", "80,00"))
        self.assertEqual(len(again.created), 1)
        self.assertEqual(again.skipped_duplicates, 1)

        self.assertEqual(BankTransaction.objects.count(), 3)
        self.assertTrue(all(line.status == BankTransactionStatus.UNMATCHED for line in BankTransaction.objects.all()))
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("1000.00"))

    def test_same_line_on_another_account_is_not_a_duplicate(self):
        self._import(("PIX RECEBIDO", "150,00"))
        result = self._import(("PIX RECEBIDO", "150,00"), account=self.other_account)
        self.assertEqual(len(result.created), 1)

    def test_invalid_records_are_counted(self):
        result = services.import_statement(
            bank_account_id=self.account.pk,
            records=[{"date": "ayer", "description": "X", "amount": "1"}, {"date": "2026-03-05", "amount": "1"}],
        )
        self.assertEqual(result.invalid_lines, 2)
        self.assertEqual(result.created, [])

    def test_non_numeric_and_oversized_amounts_count_as_invalid(self):
        day = self.today.isoformat()
        result = services.import_statement(
            bank_account_id=self.account.pk,
            records=[
                {"date": day, "description": "BOOL", "amount": True},
                {"date": day, "description": "ENORME", "amount": "1e20"},
                {"date": day, "description": "ENORME NUMERICO", "amount": 10_000_000_000},
                {"date": day, "description": "VALIDO", "amount": "25,00"},
            ],
        )
        self.assertEqual(result.invalid_lines, 3)
        self.assertEqual([line.description for line in result.created], ["VALIDO"])

    def test_match_links_without_touching_the_transaction(self):
        line = self._import(("PIX RECEBIDO", "150,00")).created[0]
        entry = self._entry(status=TransactionStatus.PENDING)

        matched = services.match(bank_transaction_id=line.pk, financial_transaction_id=entry.pk, actor=self.user)
        self.assertEqual(matched.status, BankTransactionStatus.MATCHED)
        self.assertEqual(matched.financial_transaction_id, entry.pk)
        self.assertIsNotNone(matched.matched_at)
        entry.refresh_from_db()
        self.assertEqual(entry.status, TransactionStatus.PENDING)

        with self.assertRaises(ConflictError):
            services.match(bank_transaction_id=line.pk, financial_transaction_id=self._entry().pk)
        second_line = self._import(("PIX RECEBIDO 2", "150,00")).created[0]
        with self.assertRaises(ConflictError):
            services.match(bank_transaction_id=second_line.pk, financial_transaction_id=entry.pk)

    def test_match_rejects_sign_and_account_mismatch(self):
        debit_line = self._import(("TARIFA", "-12,50")).created[0]
        with self.assertRaises(ValidationError):
            services.match(bank_transaction_id=debit_line.pk, financial_transaction_id=self._entry().pk)
        with self.assertRaises(ValidationError):
            services.match(
                bank_transaction_id=debit_line.pk,
                financial_transaction_id=self._entry(
                    type=TransactionType.EXPENSE, amount="12.50", account=self.other_account
                ).pk,
            )
        debit_line.refresh_from_db()
        self.assertEqual(debit_line.status, BankTransactionStatus.UNMATCHED)

    def test_create_and_match_books_the_bank_movement(self):
        line = self._import(("TARIFA MENSAL", "-12,50")).created[0]

        matched = services.create_and_match(bank_transaction_id=line.pk, actor=self.user)
        entry = matched.financial_transaction
        self.assertEqual(entry.type, TransactionType.EXPENSE)
        self.assertEqual(entry.amount, Decimal("12.50"))
        self.assertEqual(entry.category, BANK_ADJUSTMENT_CATEGORY)
        self.assertEqual(entry.description, "TARIFA MENSAL")
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("987.50"))

        with self.assertRaises(ConflictError):
            services.create_and_match(bank_transaction_id=line.pk)
        self.assertEqual(FinancialTransaction.objects.count(), 1)

    def test_credit_line_settles_pending_receivable(self):
        PaymentMethodConfig.objects.create(
            name="Pix", method=PaymentMethod.PIX, days_to_liquidate=1, bank_account=self.account
        )
        cashier = User.objects.create_user(username="cashier_rec", password="cashier123", role="CASHIER")
        _, receivables = create_sale(cashier=cashier, total="200.00", payment_method=PaymentMethod.PIX)
        receivable = receivables[0]
        self.assertEqual(receivable.status, ReceivableStatus.PENDING)
        line = self._import(("PIX LIQUIDACAO", "200,00")).created[0]

        matched = services.settle_receivable_and_match(
            bank_transaction_id=line.pk, receivable_id=receivable.pk, actor=self.user
        )
        receivable.refresh_from_db()
        self.assertEqual(receivable.status, ReceivableStatus.PAID)
        self.assertEqual(receivable.paid_date, self.today)
        self.assertEqual(matched.financial_transaction.receivable_id, receivable.pk)
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("1200.00"))

        other_line = self._import(("PIX OUTRO", "200,00")).created[0]
        with self.assertRaises(ConflictError):
            services.settle_receivable_and_match(bank_transaction_id=other_line.pk, receivable_id=receivable.pk)
        other_line.refresh_from_db()
        self.assertEqual(other_line.status, BankTransactionStatus.UNMATCHED)

    def test_debit_line_cannot_settle_receivable(self):
        line = self._import(("TARIFA", "-12,50")).created[0]
        with self.assertRaises(ValidationError):
            services.settle_receivable_and_match(bank_transaction_id=line.pk, receivable_id=line.pk)

    def test_cash_receivable_cannot_be_settled_from_a_bank_line(self):
        cashier = User.objects.create_user(username="cashier_cash_rec", password="cashier123", role="CASHIER")
        session = open_session(terminal="PDV-01", operator=cashier, opening_balance="0")
        _, receivables = create_sale(
            cashier=cashier, total="100.00", payment_method=PaymentMethod.CASH, cash_session_id=session.pk
        )
        receivable = receivables[0]
        Receivable.objects.filter(pk=receivable.pk).update(status=ReceivableStatus.PENDING, paid_date=None)
        line = self._import(("DEPOSITO", "100,00")).created[0]

        with self.assertRaises(ValidationError):
            services.settle_receivable_and_match(bank_transaction_id=line.pk, receivable_id=receivable.pk)

        self.assertEqual(compute_expected(session), Decimal("100.00"))
        self.account.refresh_from_db()
        self.assertEqual(self.account.current_balance, Decimal("1000.00"))
        line.refresh_from_db()
        self.assertEqual(line.status, BankTransactionStatus.UNMATCHED)
        self.assertEqual(Receivable.objects.get(pk=receivable.pk).status, ReceivableStatus.PENDING)

    def test_reconciliation_view_lists_open_items_in_window(self):
        self._import(("PIX RECEBIDO", "150,00"))
        matched_line = self._import(("DEPOSITO", "80,00")).created[0]
        services.match(
            bank_transaction_id=matched_line.pk, financial_transaction_id=self._entry(amount="80.00").pk
        )
        loose_entry = self._entry(amount="150.00")
        post_transaction(
            type=TransactionType.REVENUE,
            amount="10.00",
            date=self.today - timedelta(days=45),
            category="Otros",
            bank_account_id=self.account.pk,
        )

        view = services.reconciliation_view(bank_account_id=self.account.pk)
        self.assertEqual(view["date_from"], self.today - timedelta(days=services.DEFAULT_WINDOW_DAYS))
        self.assertEqual([line.description for line in view["bank_lines"]], ["PIX RECEBIDO"])
        self.assertEqual([entry.pk for entry in view["system_entries"]], [loose_entry.pk])


class ReconciliationApiTests(APITestCase):
    def setUp(self):
        User.objects.create_user(username="finance_api_rec", password="finance123", role="FINANCE")
        User.objects.create_user(username="cashier_api_rec", password="cashier123", role="CASHIER")
        self.account = BankAccount.objects.create(name="Principal", bank_name="Banco Uno")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_import_then_list_unmatched(self):
        self.auth_as("finance_api_rec", "finance123")
        today = timezone.localdate().strftime("%d/%m/%Y")
        response = self.client.post(
            "/api/v1/bank-transactions/import/",
            {
                "bank_account": str(self.account.pk),
                "raw_text": f"data;descricao;valor\n{today};PIX RECEBIDO;150,00\n{today};TARIFA;-3,90\nlixo\n",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["created_count"], 2)
        self.assertEqual(response.data["invalid_lines"], 1)
        self.assertEqual(response.data["skipped_duplicates"], 0)

        listed = self.client.get("/api/v1/bank-transactions/", {"status": "unmatched"})
        self.assertEqual(listed.data["count"], 2)

        view = self.client.get("/api/v1/reconciliation/", {"bank_account": str(self.account.pk)})
        self.assertEqual(view.status_code, 200)
        self.assertEqual(len(view.data["bank_lines"]), 2)
        self.assertEqual(view.data["system_entries"], [])

    def test_create_and_match_endpoint(self):
        self.auth_as("finance_api_rec", "finance123")
        line = BankTransaction.objects.create(
            bank_account=self.account, date=timezone.localdate(), description="JUROS", amount=Decimal("4.20")
        )
        response = self.client.post(
            f"/api/v1/bank-transactions/{line.pk}/create-and-match/", {"category": "Intereses"}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], BankTransactionStatus.MATCHED)
        self.assertEqual(FinancialTransaction.objects.get().category, "Intereses")

        again = self.client.post(f"/api/v1/bank-transactions/{line.pk}/create-and-match/", {}, format="json")
        self.assertEqual(again.status_code, 409)

    def test_import_requires_payload_and_role(self):
        self.auth_as("finance_api_rec", "finance123")
        response = self.client.post(
            "/api/v1/bank-transactions/import/", {"bank_account": str(self.account.pk)}, format="json"
        )
        self.assertEqual(response.status_code, 400)

        self.auth_as("cashier_api_rec", "cashier123")
        self.assertEqual(self.client.get("/api/v1/bank-transactions/").status_code, 403)
