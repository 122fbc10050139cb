"""Fixed-point money helpers.

Amounts stay exact Decimals through every summation; rounding to the display
precision happens only in round_money()/format_money().
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from configurator.config_loader import MoneyFormat

ZERO = Decimal("0")
DEFAULT_PLACES = 2


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Coerce a catalog value to Decimal. Floats go through str() to avoid binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(amount: Decimal, places: int = DEFAULT_PLACES) -> Decimal:
    """Round half-up to the display precision."""
    quantum = Decimal(1).scaleb(-places)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, money_format: Optional["MoneyFormat"] = None) -> str:
    """Render an amount for display, e.g. 'R$ 1.234,50'."""
    if money_format is None:
        from configurator.config_loader import MoneyFormat
        money_format = MoneyFormat()

    rounded = round_money(amount, money_format.decimal_places)
    sign = "-" if rounded < 0 else ""
    integer_part, _, fraction = f"{abs(rounded):.{money_format.decimal_places}f}".partition(".")

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    text = money_format.thousands_separator.join(groups)
    if fraction:
        text = f"{text}{money_format.decimal_separator}{fraction}"

    return f"{sign}{money_format.symbol}{money_format.symbol_separator}{text}"
