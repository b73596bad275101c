from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, getcontext
from typing import Iterable, Union
from splitledger.core.config import settings

getcontext().prec = 65

Money = Decimal
ZERO = Money("0")
HUNDRED = Money("100")

def minimal_unit(scale: int = None) -> Money:
    """Smallest currency unit at the working scale, e.g. Decimal('0.01')."""
    if scale is None:
        scale = settings.MONEY_SCALE
    return Money(1).scaleb(-scale)

def split_unit(total: Money) -> Money:
    """Unit used when dividing ``total``: the currency unit, or finer if ``total`` carries more digits."""
    return min(minimal_unit(), Money(1).scaleb(total.as_tuple().exponent))

def to_money(value: Union[Money, int, str, float]) -> Money:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a money amount")
    # floats go through their shortest repr, never through binary arithmetic
    return Money(str(value))

def qround(d: Money) -> Money:
    """Round for display only."""
    return d.quantize(minimal_unit(), rounding=ROUND_HALF_UP)

def floor_units(d: Money, unit: Money = None) -> Money:
    return d.quantize(unit if unit is not None else minimal_unit(), rounding=ROUND_DOWN)

def money_sum(values: Iterable[Money]) -> Money:
    return sum(values, ZERO)
