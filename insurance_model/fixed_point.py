"""
18 decimal fixed point helpers.

Pool amounts are plain Python integers scaled by WAD. Division truncates
toward zero, so a computed allocation can come out short by one unit but
never long.
"""

from decimal import Decimal, InvalidOperation, localcontext

from .config import WAD
from .errors import DivisionByZero, InvalidAmount


def _div_toward_zero(numerator: int, denominator: int) -> int:
    if denominator == 0:
        raise DivisionByZero()
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_wad(a: int, b: int) -> int:
    """Returns a * b / WAD, truncated toward zero."""
    return _div_toward_zero(a * b, WAD)


def div_wad(a: int, b: int) -> int:
    """
    Returns a * WAD / b, truncated toward zero.

    Raises:
        DivisionByZero: if b is 0
    """
    return _div_toward_zero(a * WAD, b)


def to_wad(value) -> int:
    """
    Converts a token amount written in whole units to an integer WAD.

    Accepts ints, decimal strings and Decimals. Floats are refused since
    they cannot represent most decimal fractions exactly.

    Examples:
        to_wad(1) == 10**18
        to_wad("1.05") == 1_050_000_000_000_000_000
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmount(f"cannot convert {value!r} to WAD exactly")
    if isinstance(value, int):
        return value * WAD
    try:
        with localcontext() as ctx:
            ctx.prec = 78
            scaled = Decimal(value) * WAD
    except (InvalidOperation, TypeError) as exc:
        raise InvalidAmount(f"not a decimal amount: {value!r}") from exc
    if not scaled.is_finite():
        raise InvalidAmount(f"not a finite amount: {value!r}")
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(f"{value!r} has more than 18 decimals")
    return int(scaled)


def from_wad(amount: int) -> Decimal:
    """Converts an integer WAD back to a Decimal in whole units."""
    return Decimal(amount) / Decimal(WAD)
