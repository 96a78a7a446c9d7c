import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F

from apps.common.exceptions import ConfigurationError, NotFoundError
from apps.payments.models import PaymentMethod, PaymentMethodConfig, ReceivableMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementTerms:
    fee_percent: Decimal
    days_to_liquidate: int
    receivable_mode: str
    bank_account_id: object = None
    config: PaymentMethodConfig = None

    @property
    def config_id(self):
        return self.config.pk if self.config is not None else None

    @classmethod
    def from_config(cls, config):
        return cls(
            fee_percent=config.fee_percent,
            days_to_liquidate=config.days_to_liquidate,
            receivable_mode=config.receivable_mode,
            bank_account_id=config.bank_account_id,
            config=config,
        )


_SAME_DAY = SettlementTerms(
    fee_percent=Decimal("0"),
    days_to_liquidate=0,
    receivable_mode=ReceivableMode.IMMEDIATE,
)

DEFAULT_TERMS = {
    PaymentMethod.CASH: _SAME_DAY,
    PaymentMethod.DEBIT_CARD: _SAME_DAY,
    PaymentMethod.CREDIT_CARD: _SAME_DAY,
    PaymentMethod.PIX: _SAME_DAY,
    PaymentMethod.BANK_TRANSFER: _SAME_DAY,
}


def default_terms(method):
    try:
        return DEFAULT_TERMS[PaymentMethod(method)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Metodo de pago sin configuracion por defecto: {method}.") from None


def _explicit_config(config_id, method, installments):
    try:
        config = PaymentMethodConfig.objects.get(pk=config_id)
    except (PaymentMethodConfig.DoesNotExist, DjangoValidationError, ValueError):
        raise ConfigurationError("La configuracion de pago indicada no existe.") from None
    if not config.is_active:
        raise ConfigurationError("La configuracion de pago indicada esta inactiva.")
    if config.method != method:
        raise ConfigurationError("La configuracion de pago no corresponde al metodo de la venta.")
    if not config.covers(installments):
        raise ConfigurationError(
            f"La configuracion de pago admite de {config.installments_min} a {config.installments_max} cuotas."
        )
    return config


def best_match(method, installments, provider=""):
    candidates = PaymentMethodConfig.objects.filter(
        method=method,
        is_active=True,
        installments_min__lte=installments,
        installments_max__gte=installments,
    ).annotate(bracket_width=F("installments_max") - F("installments_min"))

    provider = (provider or "").strip()
    if provider:
        exact = candidates.filter(provider__iexact=provider).order_by("bracket_width", "created_at").first()
        if exact is not None:
            return exact
    return candidates.filter(provider="").order_by("bracket_width", "created_at").first()


def resolve_config(*, method, installments=1, provider="", config_id=None):
    if method not in PaymentMethod.values:
        raise ConfigurationError(f"Metodo de pago invalido: {method}.")
    if installments < 1:
        raise ConfigurationError("La cantidad de cuotas debe ser mayor o igual a 1.")

    if config_id:
        return SettlementTerms.from_config(_explicit_config(config_id, method, installments))

    config = best_match(method, installments, provider)
    if config is not None:
        return SettlementTerms.from_config(config)

    if method != PaymentMethod.CASH and not settings.SETTLEMENT_ALLOW_DEFAULT_CONFIG:
        raise ConfigurationError(f"No existe una configuracion de pago activa para {method} en {installments} cuota(s).")
    logger.info("no payment config for %s x%s, using same-day default", method, installments)
    return default_terms(method)


def delete_config(config_id):
    from apps.receivables.models import Receivable
    from apps.sales.models import Sale

    with transaction.atomic():
        try:
            config = PaymentMethodConfig.objects.select_for_update().get(pk=config_id)
        except PaymentMethodConfig.DoesNotExist:
            raise NotFoundError("Configuracion de pago no encontrada.") from None
        detached_receivables = Receivable.objects.filter(payment_config=config).update(payment_config=None)
        detached_sales = Sale.objects.filter(payment_config=config).update(payment_config=None)
        config.delete()
    logger.info(
        "payment config %s deleted, detached %s receivables and %s sales",
        config_id,
        detached_receivables,
        detached_sales,
    )
    return {"receivables": detached_receivables, "sales": detached_sales}
