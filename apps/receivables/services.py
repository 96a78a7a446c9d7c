import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, DecimalField, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.common.exceptions import ConflictError, NotFoundError
from apps.common.money import to_money
from apps.ledger.services import post_receivable_settlement
from apps.payments.models import ReceivableMode
from apps.receivables.models import Receivable, ReceivableStatus

logger = logging.getLogger(__name__)


def _today():
    return timezone.localdate()


def get_receivable(receivable_id, *, lock=False):
    queryset = Receivable.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=receivable_id)
    except (Receivable.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Cuenta por cobrar no encontrada.") from None


def _ensure_open(receivable):
    if receivable.status == ReceivableStatus.PAID:
        raise ConflictError("La cuenta por cobrar ya fue recibida.")
    if receivable.status == ReceivableStatus.CANCELLED:
        raise ConflictError("La cuenta por cobrar esta cancelada.")


def _settle(receivable, *, paid_date, actor=None):
    receivable.status = ReceivableStatus.PAID
    receivable.paid_date = paid_date
    receivable.save(update_fields=["status", "paid_date", "bank_account", "updated_at"])
    return post_receivable_settlement(receivable=receivable, paid_date=paid_date, created_by=actor)


def receive(*, receivable_id, payment_date=None, actor=None, bank_account_id=None):
    payment_date = payment_date or _today()
    with transaction.atomic():
        receivable = get_receivable(receivable_id, lock=True)
        _ensure_open(receivable)
        if bank_account_id is not None:
            receivable.bank_account_id = bank_account_id
        entry = _settle(receivable, paid_date=payment_date, actor=actor)
    logger.info("receivable %s received on %s for %s", receivable.pk, payment_date, receivable.net_amount)
    return receivable, entry


def cancel(*, receivable_id):
    with transaction.atomic():
        receivable = get_receivable(receivable_id, lock=True)
        _ensure_open(receivable)
        receivable.status = ReceivableStatus.CANCELLED
        receivable.cancelled_at = timezone.now()
        receivable.save(update_fields=["status", "cancelled_at", "updated_at"])
    logger.info("receivable %s cancelled", receivable.pk)
    return receivable


def cancel_open_receivables_for_sale(sale):
    open_ids = list(
        Receivable.objects.select_for_update()
        .filter(sale=sale, status=ReceivableStatus.PENDING)
        .values_list("id", flat=True)
    )
    if open_ids:
        Receivable.objects.filter(pk__in=open_ids).update(
            status=ReceivableStatus.CANCELLED,
            cancelled_at=timezone.now(),
            updated_at=timezone.now(),
        )
    logger.info("sale %s cancelled %s open receivable(s)", sale.pk, len(open_ids))
    return len(open_ids)


def is_auto_settleable(receivable, today):
    return (
        receivable.status == ReceivableStatus.PENDING
        and receivable.receivable_mode == ReceivableMode.IMMEDIATE
        and receivable.due_date <= today
    )


def auto_settle_candidates(today):
    return Receivable.objects.filter(
        status=ReceivableStatus.PENDING,
        receivable_mode=ReceivableMode.IMMEDIATE,
        due_date__lte=today,
    )


def maybe_settle(receivable_id, *, today=None):
    today = today or _today()
    with transaction.atomic():
        receivable = get_receivable(receivable_id, lock=True)
        if not is_auto_settleable(receivable, today):
            return False
        _settle(receivable, paid_date=today)
    logger.info("receivable %s auto-settled on %s", receivable.pk, today)
    return True


def auto_settle_due(*, today=None):
    today = today or _today()
    settled = []
    for receivable_id in auto_settle_candidates(today).values_list("id", flat=True):
        try:
            if maybe_settle(receivable_id, today=today):
                settled.append(receivable_id)
        except Exception:
            logger.exception("auto-settlement failed for receivable %s", receivable_id)
    return settled


def filter_by_status(queryset, status, today=None):
    today = today or _today()
    status = (status or "").upper()
    if status == ReceivableStatus.OVERDUE:
        return queryset.filter(status=ReceivableStatus.PENDING, due_date__lt=today)
    if status == ReceivableStatus.PENDING:
        return queryset.filter(status=ReceivableStatus.PENDING, due_date__gte=today)
    return queryset.filter(status=status)


def summary(queryset, today=None):
    today = today or _today()
    money = DecimalField(max_digits=14, decimal_places=2)
    buckets = {
        "pending": Q(status=ReceivableStatus.PENDING, due_date__gte=today),
        "overdue": Q(status=ReceivableStatus.PENDING, due_date__lt=today),
        "paid": Q(status=ReceivableStatus.PAID),
    }
    aggregates = {}
    for name, condition in buckets.items():
        aggregates[f"{name}_net"] = Coalesce(Sum("net_amount", filter=condition), Decimal("0"), output_field=money)
        aggregates[f"{name}_count"] = Count("id", filter=condition)
    totals = queryset.aggregate(**aggregates)
    return {
        name: {"count": totals[f"{name}_count"], "net_amount": to_money(totals[f"{name}_net"])}
        for name in buckets
    }
