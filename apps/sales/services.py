import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.cash_register.models import SessionStatus
from apps.cash_register.services import get_session, lock_open_session
from apps.common.exceptions import ConflictError, NotFoundError, ValidationError
from apps.common.money import to_money
from apps.payments.models import PaymentMethod
from apps.payments.services import resolve_config
from apps.receivables.services import cancel_open_receivables_for_sale
from apps.receivables.settlement import create_settlement
from apps.sales.models import Sale, SaleStatus

logger = logging.getLogger(__name__)


def get_sale(sale_id, *, lock=False):
    queryset = Sale.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=sale_id)
    except (Sale.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Venta no encontrada.") from None


def create_sale(
    *,
    cashier,
    total,
    payment_method,
    installments=1,
    provider="",
    payment_config_id=None,
    cash_session_id=None,
    customer_name="",
    sale_date=None,
):
    try:
        total = to_money(total)
    except ValueError as exc:
        raise ValidationError({"total": str(exc)}) from None
    if total <= 0:
        raise ValidationError({"total": "El total debe ser mayor a 0."})
    if payment_method not in PaymentMethod.values:
        raise ValidationError({"payment_method": f"Metodo de pago invalido: {payment_method}."})
    if payment_method == PaymentMethod.CASH and cash_session_id is None and settings.CASH_SALE_REQUIRES_SESSION:
        raise ValidationError({"cash_session": "Las ventas en efectivo requieren una caja abierta."})

    sale_date = sale_date or timezone.localdate()
    with transaction.atomic():
        session = lock_open_session(cash_session_id) if cash_session_id is not None else None
        terms = resolve_config(
            method=payment_method,
            installments=installments,
            provider=provider,
            config_id=payment_config_id,
        )
        sale = Sale.objects.create(
            cashier=cashier,
            customer_name=(customer_name or "").strip(),
            total=total,
            payment_method=payment_method,
            installments=installments,
            provider=(provider or "").strip(),
            payment_config=terms.config,
            cash_session=session,
            sale_date=sale_date,
        )
        receivables = create_settlement(sale, terms, actor=cashier)
    logger.info("sale %s created: %s %s x%s", sale.pk, total, payment_method, installments)
    return sale, receivables


def cancel_sale(*, sale_id, reason=""):
    with transaction.atomic():
        sale = get_sale(sale_id, lock=True)
        if sale.status == SaleStatus.CANCELLED:
            raise ConflictError("La venta ya estaba cancelada.")
        if sale.cash_session_id is not None and sale.payment_method == PaymentMethod.CASH:
            session = get_session(sale.cash_session_id, lock=True)
            if session.status != SessionStatus.OPEN:
                raise ConflictError("La caja de la venta ya fue cerrada.")

        sale.status = SaleStatus.CANCELLED
        sale.cancelled_at = timezone.now()
        sale.cancel_reason = (reason or "")[:255]
        sale.save(update_fields=["status", "cancelled_at", "cancel_reason"])
        cancelled = cancel_open_receivables_for_sale(sale)
    logger.info("sale %s cancelled (%s receivables)", sale.pk, cancelled)
    return sale, cancelled


def delete_sale(*, sale_id):
    with transaction.atomic():
        sale = get_sale(sale_id, lock=True)
        receivables = sale.receivables.count()
        sale.delete()
    logger.warning("sale %s deleted with %s receivables", sale_id, receivables)
    return receivables
