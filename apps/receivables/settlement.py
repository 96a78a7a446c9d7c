"""Splits a sale into installments and persists its receivables.

Shares are truncated to cents with the leftover on the last installment; the
fee is rounded half-up per installment and net is what remains.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.conf import settings

from apps.common.exceptions import ValidationError
from apps.common.money import CENT, round_half_up, to_money, truncate
from apps.ledger.services import post_receivable_settlement
from apps.payments.models import PaymentMethod, ReceivableMode
from apps.receivables.models import Receivable, ReceivableStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Installment:
    number: int
    gross_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    due_date: object
    paid_on_creation: bool


def split_total(total, count):
    total = to_money(total)
    if count < 1:
        raise ValidationError({"installments": "La cantidad de cuotas debe ser mayor o igual a 1."})
    if total <= 0:
        raise ValidationError({"total": "El total debe ser mayor a 0."})
    if total < CENT * count:
        raise ValidationError({"installments": "El total no alcanza para la cantidad de cuotas indicada."})

    share = truncate(total / count)
    shares = [share] * (count - 1)
    shares.append(total - share * (count - 1))
    return shares


def installment_fee(share, fee_percent):
    return round_half_up(share * Decimal(fee_percent) / Decimal("100"))


def is_liquid_on_creation(terms):
    return terms.days_to_liquidate == 0 and terms.receivable_mode == ReceivableMode.IMMEDIATE


def due_date_for(sale_date, terms, index, interval_days=None):
    if interval_days is None:
        interval_days = settings.SETTLEMENT_INSTALLMENT_INTERVAL_DAYS
    return sale_date + timedelta(days=terms.days_to_liquidate + interval_days * index)


def build_schedule(*, total, installments, terms, sale_date):
    liquid = is_liquid_on_creation(terms)
    schedule = []
    for index, share in enumerate(split_total(total, installments)):
        fee = installment_fee(share, terms.fee_percent)
        due_date = due_date_for(sale_date, terms, index)
        schedule.append(
            Installment(
                number=index + 1,
                gross_amount=share,
                fee_amount=fee,
                net_amount=share - fee,
                due_date=due_date,
                paid_on_creation=liquid and due_date <= sale_date,
            )
        )
    return schedule


def create_settlement(sale, terms, *, actor=None):
    # Runs inside the caller's atomic block; installments born paid post and credit the bank here.
    bank_account_id = terms.bank_account_id if sale.payment_method != PaymentMethod.CASH else None
    schedule = build_schedule(
        total=sale.total,
        installments=sale.installments,
        terms=terms,
        sale_date=sale.sale_date,
    )

    receivables = []
    for item in schedule:
        receivable = Receivable.objects.create(
            sale=sale,
            customer_name=sale.customer_name,
            payment_method=sale.payment_method,
            installment_number=item.number,
            total_installments=len(schedule),
            gross_amount=item.gross_amount,
            fee_amount=item.fee_amount,
            net_amount=item.net_amount,
            fee_percent=terms.fee_percent,
            days_to_liquidate=terms.days_to_liquidate,
            receivable_mode=terms.receivable_mode,
            payment_config=terms.config,
            bank_account_id=bank_account_id,
            due_date=item.due_date,
            status=ReceivableStatus.PAID if item.paid_on_creation else ReceivableStatus.PENDING,
            paid_date=sale.sale_date if item.paid_on_creation else None,
        )
        if item.paid_on_creation:
            post_receivable_settlement(receivable=receivable, paid_date=sale.sale_date, created_by=actor)
        receivables.append(receivable)

    logger.info(
        "settlement for sale %s: %s installment(s) via %s, %s paid on creation",
        sale.pk,
        len(receivables),
        sale.payment_method,
        sum(1 for item in schedule if item.paid_on_creation),
    )
    return receivables
