import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.banking.models import BankAccount
from apps.common.exceptions import NotFoundError, ValidationError
from apps.common.money import to_money

logger = logging.getLogger(__name__)


def lock_account(account_id):
    try:
        return BankAccount.objects.select_for_update().get(pk=account_id)
    except (BankAccount.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Cuenta bancaria no encontrada.") from None


def _apply_delta(account_id, delta, *, reason):
    with transaction.atomic():
        account = lock_account(account_id)
        if not account.is_active:
            raise ValidationError("La cuenta bancaria esta inactiva.")
        account.current_balance = to_money(account.current_balance + delta)
        account.save(update_fields=["current_balance", "updated_at"])
    logger.info("bank account %s %s %s (%s)", account.pk, "credit" if delta > 0 else "debit", abs(delta), reason)
    return account


def credit(account_id, amount, *, reason=""):
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("El monto a acreditar debe ser mayor a 0.")
    return _apply_delta(account_id, amount, reason=reason)


def debit(account_id, amount, *, reason=""):
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("El monto a debitar debe ser mayor a 0.")
    return _apply_delta(account_id, -amount, reason=reason)
