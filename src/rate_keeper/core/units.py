"""
Fixed-point unit conversion.

Rates are unsigned integers scaled by ``DECIMAL`` (10**25). Human input such as
``"1.0001"`` is parsed with `decimal.Decimal` so no binary float ever touches a
fixed-point value.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

DECIMAL_PLACES = 25
DECIMAL = 10**DECIMAL_PLACES


def to_fixed(value: int | str | Decimal, decimal: int = DECIMAL) -> int:
    """
    Convert a human-readable number to fixed point (truncating extra digits).

    ``int`` inputs are treated as whole units: ``to_fixed(2) == 2 * decimal``.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a fixed-point value")
    if isinstance(value, float):
        raise TypeError("floats are not accepted; pass a decimal string instead")
    if isinstance(value, int):
        return value * decimal
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal number: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    with localcontext() as ctx:
        ctx.prec = 200
        return int((d * decimal).to_integral_value(rounding=ROUND_DOWN))


def format_fixed(value: int, decimal: int = DECIMAL) -> str:
    """Render a fixed-point integer as an exact decimal string (trailing zeros stripped)."""
    digits = str(decimal)
    if decimal <= 0 or digits.rstrip("0") != "1":
        raise ValueError(f"decimal must be a positive power of ten: {decimal}")
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), decimal)
    if frac == 0:
        return f"{sign}{whole}"
    places = len(digits) - 1
    frac_str = str(frac).rjust(places, "0").rstrip("0")
    return f"{sign}{whole}.{frac_str}"
