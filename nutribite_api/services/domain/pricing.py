"""
Pricing engine.

Turns a net unit price and a tax rate into tax amount and gross price:

    tax   = round(net * rate / 100, 2)
    gross = round(net + tax, 2)

The rate is first rounded to two decimals, the precision cart and order lines
store it with. Rounding is decimal half-up. The same function prices cart
lines and order lines, so a cart total always equals the order total built
from it.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from nutribite_shared.config.settings import settings

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Exact decimal for a price or rate; floats go through str()."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    net: Decimal
    tax_rate: Decimal
    tax: Decimal
    gross: Decimal


def price(
    net: Decimal | int | float | str,
    rate_percent: Decimal | int | float | str | None = None,
) -> PriceBreakdown:
    """
    Price one unit.

    Args:
        net: Net unit price.
        rate_percent: Tax rate in percent, TAX_RATE_PERCENT when omitted.

    Raises:
        ValueError: On a negative or non-finite price or rate.
    """
    net_d = to_decimal(net)
    rate_d = to_decimal(settings.tax_rate_percent if rate_percent is None else rate_percent)
    if not net_d.is_finite() or net_d < 0:
        raise ValueError(f"Invalid net price: {net!r}")
    if not rate_d.is_finite() or rate_d < 0:
        raise ValueError(f"Invalid tax rate: {rate_percent!r}")

    net_d = round_money(net_d)
    # Rates are stored with two decimals; price with the rate that is stored
    rate_d = round_money(rate_d)
    tax = round_money(net_d * rate_d / 100)
    gross = round_money(net_d + tax)
    return PriceBreakdown(net=net_d, tax_rate=rate_d, tax=tax, gross=gross)


def line_total(unit_gross: Decimal, quantity: int) -> Decimal:
    """Gross total of a line."""
    return round_money(to_decimal(unit_gross) * quantity)
