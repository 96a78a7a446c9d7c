import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.common.exceptions import ConflictError, NotFoundError, ValidationError
from apps.common.money import to_money
from apps.ledger.services import post_payable_payment
from apps.payables.models import Payable, PayableStatus

logger = logging.getLogger(__name__)


def get_payable(payable_id, *, lock=False):
    queryset = Payable.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=payable_id)
    except (Payable.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Cuenta por pagar no encontrada.") from None


def pay_payable(*, payable_id, amount_paid, payment_date=None, payment_method="", account_id=None, actor=None):
    try:
        amount_paid = to_money(amount_paid)
    except ValueError as exc:
        raise ValidationError({"amount_paid": str(exc)}) from None
    if amount_paid <= 0:
        raise ValidationError({"amount_paid": "El monto pagado debe ser mayor a 0."})
    payment_date = payment_date or timezone.localdate()

    with transaction.atomic():
        payable = get_payable(payable_id, lock=True)
        if payable.status == PayableStatus.CANCELLED:
            raise ConflictError("La cuenta por pagar esta cancelada.")
        if payable.status == PayableStatus.PAID:
            raise ConflictError("La cuenta por pagar ya fue pagada.")
        if amount_paid > payable.remaining:
            raise ValidationError(
                {"amount_paid": f"El monto excede el saldo pendiente ({to_money(payable.remaining)})."}
            )

        payable.total_paid = to_money(payable.total_paid + amount_paid)
        payable.status = PayableStatus.PAID if payable.total_paid >= payable.amount else PayableStatus.PARTIAL
        payable.payment_date = payment_date
        payable.save(update_fields=["total_paid", "status", "payment_date", "updated_at"])
        entry = post_payable_payment(
            payable=payable,
            amount=amount_paid,
            payment_date=payment_date,
            payment_method=payment_method,
            bank_account_id=account_id,
            created_by=actor,
        )
    logger.info("payable %s paid %s (%s/%s)", payable.pk, amount_paid, payable.total_paid, payable.amount)
    return payable, entry


def cancel_payable(*, payable_id):
    with transaction.atomic():
        payable = get_payable(payable_id, lock=True)
        if payable.status == PayableStatus.CANCELLED:
            raise ConflictError("La cuenta por pagar ya estaba cancelada.")
        if payable.total_paid > 0:
            raise ConflictError("No puedes cancelar una cuenta por pagar con pagos registrados.")
        payable.status = PayableStatus.CANCELLED
        payable.save(update_fields=["status", "updated_at"])
    logger.info("payable %s cancelled", payable.pk)
    return payable


def filter_by_status(queryset, status, today=None):
    today = today or timezone.localdate()
    status = (status or "").upper()
    open_statuses = [PayableStatus.PENDING, PayableStatus.PARTIAL]
    if status == PayableStatus.OVERDUE:
        return queryset.filter(status__in=open_statuses, due_date__lt=today)
    if status in open_statuses:
        return queryset.filter(status=status, due_date__gte=today)
    return queryset.filter(status=status)
