from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value):
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Monto invalido: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Monto invalido: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_half_up(value):
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def truncate(value):
    return value.quantize(CENT, rounding=ROUND_DOWN)
