import logging
from dataclasses import dataclass, field
from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.banking.services import lock_account
from apps.common.exceptions import ConflictError, NotFoundError, ValidationError
from apps.ledger.models import FinancialTransaction, TransactionType
from apps.ledger.services import BANK_ADJUSTMENT_CATEGORY, post_transaction
from apps.payments.models import PaymentMethod
from apps.receivables import services as receivables
from apps.reconciliation.models import BankTransaction, BankTransactionStatus
from apps.reconciliation.parsers import parse_records, parse_statement_text

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


@dataclass
class ImportResult:
    created: list = field(default_factory=list)
    skipped_duplicates: int = 0
    invalid_lines: int = 0


def import_statement(*, bank_account_id, records=None, raw_text=None, actor=None):
    if records is None and not raw_text:
        raise ValidationError({"records": "Envia records o raw_text."})
    if records is not None:
        lines, invalid = parse_records(records)
    else:
        lines, invalid = parse_statement_text(raw_text)

    result = ImportResult(invalid_lines=invalid)
    with transaction.atomic():
        account = lock_account(bank_account_id)
        seen = set()
        for line in lines:
            if line.natural_key in seen:
                result.skipped_duplicates += 1
                continue
            seen.add(line.natural_key)
            if BankTransaction.objects.filter(
                bank_account=account,
                date=line.date,
                amount=line.amount,
                description=line.description,
            ).exists():
                result.skipped_duplicates += 1
                continue
            try:
                with transaction.atomic():
                    created = BankTransaction.objects.create(
                        bank_account=account,
                        date=line.date,
                        description=line.description,
                        amount=line.amount,
                        raw_line=line.raw,
                        imported_by=actor,
                    )
            except IntegrityError:
                result.skipped_duplicates += 1
                continue
            result.created.append(created)

    logger.info(
        "statement import on %s: created=%s duplicates=%s invalid=%s",
        bank_account_id,
        len(result.created),
        result.skipped_duplicates,
        result.invalid_lines,
    )
    return result


def _lock_unmatched_line(bank_transaction_id):
    try:
        line = BankTransaction.objects.select_for_update().get(pk=bank_transaction_id)
    except (BankTransaction.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Movimiento bancario no encontrado.") from None
    if line.status == BankTransactionStatus.MATCHED:
        raise ConflictError("El movimiento bancario ya esta conciliado.")
    return line


def _link(line, entry, actor):
    line.financial_transaction = entry
    line.status = BankTransactionStatus.MATCHED
    line.matched_at = timezone.now()
    line.matched_by = actor
    line.save(update_fields=["financial_transaction", "status", "matched_at", "matched_by"])
    logger.info("bank line %s matched to financial transaction %s", line.pk, entry.pk)
    return line


def match(*, bank_transaction_id, financial_transaction_id, actor=None):
    with transaction.atomic():
        line = _lock_unmatched_line(bank_transaction_id)
        try:
            entry = FinancialTransaction.objects.select_for_update().get(pk=financial_transaction_id)
        except (FinancialTransaction.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError("Transaccion financiera no encontrada.") from None
        if BankTransaction.objects.filter(financial_transaction=entry).exists():
            raise ConflictError("La transaccion financiera ya esta conciliada con otro movimiento.")
        if entry.bank_account_id is not None and entry.bank_account_id != line.bank_account_id:
            raise ValidationError({"financial_transaction_id": "La transaccion pertenece a otra cuenta bancaria."})
        if (entry.type == TransactionType.REVENUE) != (line.amount > 0):
            raise ValidationError({"financial_transaction_id": "El tipo de la transaccion no coincide con el signo del movimiento."})
        return _link(line, entry, actor)


def create_and_match(*, bank_transaction_id, data=None, actor=None):
    # Nothing in the system accounted for this movement yet, so it is applied to the bank balance.
    data = data or {}
    with transaction.atomic():
        line = _lock_unmatched_line(bank_transaction_id)
        entry = post_transaction(
            type=TransactionType.REVENUE if line.amount > 0 else TransactionType.EXPENSE,
            amount=abs(line.amount),
            date=line.date,
            category=(data.get("category") or BANK_ADJUSTMENT_CATEGORY).strip(),
            description=(data.get("description") or line.description).strip(),
            payment_method=data.get("payment_method", ""),
            bank_account_id=line.bank_account_id,
            created_by=actor,
            apply_to_bank=True,
        )
        return _link(line, entry, actor)


def settle_receivable_and_match(*, bank_transaction_id, receivable_id, actor=None):
    with transaction.atomic():
        line = _lock_unmatched_line(bank_transaction_id)
        if line.amount <= 0:
            raise ValidationError({"bank_transaction_id": "Solo un credito bancario puede liquidar una cuenta por cobrar."})
        receivable = receivables.get_receivable(receivable_id)
        if receivable.payment_method == PaymentMethod.CASH:
            raise ValidationError({"receivable_id": "Una cuenta por cobrar en efectivo se cuenta en la caja, no en el banco."})
        if receivable.bank_account_id is not None and receivable.bank_account_id != line.bank_account_id:
            raise ValidationError({"receivable_id": "La cuenta por cobrar se liquida en otra cuenta bancaria."})
        _, entry = receivables.receive(
            receivable_id=receivable.pk,
            payment_date=line.date,
            actor=actor,
            bank_account_id=line.bank_account_id,
        )
        return _link(line, entry, actor)


def reconciliation_view(*, bank_account_id, date_from=None, date_to=None):
    date_to = date_to or timezone.localdate()
    date_from = date_from or date_to - timedelta(days=DEFAULT_WINDOW_DAYS)
    bank_lines = BankTransaction.objects.filter(
        bank_account_id=bank_account_id,
        status=BankTransactionStatus.UNMATCHED,
        date__gte=date_from,
        date__lte=date_to,
    ).order_by("date", "created_at")
    system_entries = FinancialTransaction.objects.filter(
        bank_account_id=bank_account_id,
        bank_line__isnull=True,
        date__gte=date_from,
        date__lte=date_to,
    ).order_by("date", "created_at")
    return {"date_from": date_from, "date_to": date_to, "bank_lines": bank_lines, "system_entries": system_entries}
