import logging
from decimal import Decimal

from django.db.models import DecimalField, Q, Sum
from django.db.models.functions import Coalesce

from apps.banking import services as banking
from apps.common.money import to_money
from apps.ledger.models import FinancialTransaction, TransactionStatus, TransactionType

logger = logging.getLogger(__name__)

SALES_CATEGORY = "Sales"
BANK_ADJUSTMENT_CATEGORY = "Bank adjustment"


def post_transaction(
    *,
    type,
    amount,
    date,
    category,
    description="",
    status=TransactionStatus.PAID,
    payment_method="",
    bank_account_id=None,
    receivable=None,
    payable=None,
    created_by=None,
    apply_to_bank=False,
):
    # Caller holds the atomic block; the bank balance change rolls back with it.
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("El monto del movimiento debe ser mayor a 0.")

    entry = FinancialTransaction.objects.create(
        type=type,
        amount=amount,
        date=date,
        category=category,
        description=description[:255],
        status=status,
        payment_method=payment_method,
        bank_account_id=bank_account_id,
        receivable=receivable,
        payable=payable,
        created_by=created_by,
    )
    if apply_to_bank and bank_account_id is not None:
        reason = f"financial_transaction:{entry.pk}"
        if type == TransactionType.REVENUE:
            banking.credit(bank_account_id, amount, reason=reason)
        else:
            banking.debit(bank_account_id, amount, reason=reason)
    logger.info("posted %s %s on %s (%s)", type, amount, date, category)
    return entry


def post_receivable_settlement(*, receivable, paid_date, created_by=None):
    return post_transaction(
        type=TransactionType.REVENUE,
        amount=receivable.net_amount,
        date=paid_date,
        category=SALES_CATEGORY,
        description=receivable.describe(),
        payment_method=receivable.payment_method,
        bank_account_id=receivable.bank_account_id,
        receivable=receivable,
        created_by=created_by,
        apply_to_bank=receivable.bank_account_id is not None,
    )


def post_payable_payment(*, payable, amount, payment_date, payment_method="", bank_account_id=None, created_by=None):
    return post_transaction(
        type=TransactionType.EXPENSE,
        amount=amount,
        date=payment_date,
        category=payable.category,
        description=payable.description,
        payment_method=payment_method,
        bank_account_id=bank_account_id,
        payable=payable,
        created_by=created_by,
        apply_to_bank=bank_account_id is not None,
    )


def cash_flow_summary(queryset):
    money = DecimalField(max_digits=14, decimal_places=2)
    totals = queryset.filter(status=TransactionStatus.PAID).aggregate(
        revenue=Coalesce(Sum("amount", filter=Q(type=TransactionType.REVENUE)), Decimal("0"), output_field=money),
        expense=Coalesce(Sum("amount", filter=Q(type=TransactionType.EXPENSE)), Decimal("0"), output_field=money),
    )
    totals["balance"] = totals["revenue"] - totals["expense"]
    return {key: to_money(value) for key, value in totals.items()}
