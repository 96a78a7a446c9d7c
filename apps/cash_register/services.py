import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, DecimalField, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.cash_register.models import CashMovement, CashRegisterSession, MovementDirection, SessionStatus
from apps.common.exceptions import ConflictError, NotFoundError, ValidationError
from apps.common.money import ZERO, to_money
from apps.payments.models import PaymentMethod

logger = logging.getLogger(__name__)

MIN_SANGRIA_REASON = 3
DEFAULT_SUPRIMENTO_REASON = "Ingreso de efectivo a caja"

_MONEY = DecimalField(max_digits=14, decimal_places=2)


def _positive(amount, label):
    try:
        amount = to_money(amount)
    except ValueError as exc:
        raise ValidationError({label: str(exc)}) from None
    if amount <= 0:
        raise ValidationError({label: "El monto debe ser mayor a 0."})
    return amount


def get_session(session_id, *, lock=False):
    queryset = CashRegisterSession.objects.all()
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=session_id)
    except (CashRegisterSession.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Caja no encontrada.") from None


def current_session(terminal):
    return CashRegisterSession.objects.filter(terminal=terminal, status=SessionStatus.OPEN).first()


def lock_open_session(session_id):
    session = get_session(session_id, lock=True)
    if not session.is_open:
        raise ConflictError("La caja esta cerrada.")
    return session


def open_session(*, terminal, operator, opening_balance):
    terminal = (terminal or "").strip()
    if not terminal:
        raise ValidationError({"terminal": "La terminal es obligatoria."})
    try:
        opening_balance = to_money(opening_balance)
    except ValueError as exc:
        raise ValidationError({"opening_balance": str(exc)}) from None
    if opening_balance < 0:
        raise ValidationError({"opening_balance": "El saldo inicial no puede ser negativo."})

    try:
        with transaction.atomic():
            session = CashRegisterSession.objects.create(
                terminal=terminal,
                operator=operator,
                opening_balance=opening_balance,
            )
    except IntegrityError:
        raise ConflictError("Ya existe una caja abierta para esta terminal.") from None
    logger.info("cash session %s opened on %s with %s", session.pk, terminal, opening_balance)
    return session


def add_movement(*, session_id, direction, amount, reason, actor):
    amount = _positive(amount, "amount")
    reason = (reason or "").strip()
    if direction == MovementDirection.OUT and len(reason) < MIN_SANGRIA_REASON:
        raise ValidationError({"reason": f"El motivo es obligatorio (minimo {MIN_SANGRIA_REASON} caracteres)."})
    if direction == MovementDirection.IN and not reason:
        reason = DEFAULT_SUPRIMENTO_REASON

    with transaction.atomic():
        session = lock_open_session(session_id)
        movement = CashMovement.objects.create(
            session=session,
            direction=direction,
            amount=amount,
            reason=reason,
            created_by=actor,
        )
    logger.info("cash session %s %s %s", session.pk, movement.get_direction_display().lower(), amount)
    return movement


def sangria(*, session_id, amount, reason, actor):
    return add_movement(session_id=session_id, direction=MovementDirection.OUT, amount=amount, reason=reason, actor=actor)


def suprimento(*, session_id, amount, reason="", actor):
    return add_movement(session_id=session_id, direction=MovementDirection.IN, amount=amount, reason=reason, actor=actor)


def _movement_totals(session):
    return session.movements.aggregate(
        suprimentos=Coalesce(Sum("amount", filter=Q(direction=MovementDirection.IN)), Decimal("0"), output_field=_MONEY),
        sangrias=Coalesce(Sum("amount", filter=Q(direction=MovementDirection.OUT)), Decimal("0"), output_field=_MONEY),
    )


def _settled_sales(session):
    from apps.sales.models import SaleStatus

    return session.sales.exclude(status=SaleStatus.CANCELLED)


def cash_sales_total(session):
    total = _settled_sales(session).filter(payment_method=PaymentMethod.CASH).aggregate(
        total=Coalesce(Sum("total"), Decimal("0"), output_field=_MONEY)
    )["total"]
    return to_money(total)


def compute_expected(session):
    totals = _movement_totals(session)
    return to_money(session.opening_balance + cash_sales_total(session) + totals["suprimentos"] - totals["sangrias"])


def close_session(*, session_id, closing_balance, actor, notes=""):
    try:
        closing_balance = to_money(closing_balance)
    except ValueError:
        raise ValidationError({"closing_balance": "Indica el saldo de cierre."}) from None
    if closing_balance < 0:
        raise ValidationError({"closing_balance": "El saldo de cierre no puede ser negativo."})

    with transaction.atomic():
        session = get_session(session_id, lock=True)
        if not session.is_open:
            raise ConflictError("Esta caja ya esta cerrada.")
        expected = compute_expected(session)
        session.expected_balance = expected
        session.closing_balance = closing_balance
        session.difference = to_money(closing_balance - expected)
        session.status = SessionStatus.CLOSED
        session.closed_at = timezone.now()
        session.closed_by = actor
        session.notes = (notes or "")[:255]
        session.save(
            update_fields=[
                "expected_balance",
                "closing_balance",
                "difference",
                "status",
                "closed_at",
                "closed_by",
                "notes",
            ]
        )
    if session.difference != ZERO:
        logger.warning("cash session %s closed with difference %s", session.pk, session.difference)
    else:
        logger.info("cash session %s closed balanced at %s", session.pk, expected)
    return session


def session_report(session):
    totals = _movement_totals(session)
    by_method = {method: {"count": 0, "total": ZERO} for method in PaymentMethod.values}
    rows = _settled_sales(session).values("payment_method").annotate(
        count=Count("id"),
        total=Coalesce(Sum("total"), Decimal("0"), output_field=_MONEY),
    )
    for row in rows:
        by_method[row["payment_method"]] = {"count": row["count"], "total": to_money(row["total"])}

    report = {
        "session_id": str(session.pk),
        "terminal": session.terminal,
        "status": session.status,
        "opened_at": session.opened_at,
        "closed_at": session.closed_at,
        "opening_balance": to_money(session.opening_balance),
        "suprimentos": to_money(totals["suprimentos"]),
        "sangrias": to_money(totals["sangrias"]),
        "sales": by_method,
        "sales_total": to_money(sum((item["total"] for item in by_method.values()), ZERO)),
        "expected_balance": compute_expected(session),
        "closing_balance": None,
        "difference": None,
    }
    if not session.is_open:
        report["expected_balance"] = session.expected_balance
        report["closing_balance"] = session.closing_balance
        report["difference"] = session.difference
    return report
