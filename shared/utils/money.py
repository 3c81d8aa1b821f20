# shared/utils/money.py
"""
Currency helpers.

Amounts are kept as Decimal everywhere; they are rounded to two decimals
(half-up) when a line item is priced and formatted as fixed 2-decimal
strings only when they leave the system.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_decimal(value, default=None) -> Decimal:
    """
    Convert user/wire input into a Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal('0.1') and not its
    binary expansion. Blank input returns ``default`` when one is given;
    anything unparseable raises ValueError.
    """
    if isinstance(value, Decimal):
        result = value
    elif value is None or value == '':
        if default is not None:
            return default
        raise ValueError("Amount is required")
    elif isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, TypeError):
            raise ValueError(f"Invalid amount: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def quantize_money(amount) -> Decimal:
    """Round to cents using half-up rounding."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount) -> str:
    """Wire format: fixed two decimals, no grouping, e.g. '4500.00'."""
    return f"{quantize_money(amount):.2f}"


def format_pkr(amount, with_decimals=True) -> str:
    """Display format, e.g. 'Rs. 12,500' or 'Rs. 12,500.50'."""
    symbol = getattr(settings, 'BILLING_CURRENCY_SYMBOL', 'Rs.')
    value = quantize_money(amount)
    if not with_decimals or value == value.to_integral_value():
        return f"{symbol} {int(value):,}"
    return f"{symbol} {value:,.2f}"
