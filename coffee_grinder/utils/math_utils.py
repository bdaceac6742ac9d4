# coffee_grinder/utils/math_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Tuple, Union

CENTS = Decimal('0.01')

Number = Union[Decimal, int, float, str]

def to_decimal(value: Number) -> Decimal:
    """Convert a value to a Decimal rounded to cents.

    Floats go through ``str`` so that 10.1 becomes Decimal('10.10') rather
    than its binary expansion.

    Args:
        value: Value to convert

    Returns:
        Decimal value with two places

    Raises:
        ValueError if the value is not numeric
    """
    if value is None:
        return Decimal('0.00')

    if isinstance(value, float):
        value = str(value)

    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a numeric amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")

    return result.quantize(CENTS, rounding=ROUND_HALF_UP)

def calculate_subtotal(quantity: int, unit_price: Number) -> Decimal:
    """Calculate a line subtotal.

    Args:
        quantity: Number of units
        unit_price: Price per unit

    Returns:
        quantity x unit price, in cents
    """
    return to_decimal(to_decimal(unit_price) * quantity)

def calculate_total(lines: Iterable[Tuple[int, Number]]) -> Decimal:
    """Sum (quantity, unit price) pairs into an order total."""
    total = Decimal('0.00')
    for quantity, unit_price in lines:
        total += calculate_subtotal(quantity, unit_price)
    return total

def format_currency(amount: Number, symbol: str = '$') -> str:
    """Format an amount for display, e.g. ``$1,234.50``.

    Negative amounts are rendered with a leading minus before the symbol.
    """
    value = to_decimal(amount)
    sign = '-' if value < 0 else ''
    return f"{sign}{symbol}{abs(value):,.2f}"
