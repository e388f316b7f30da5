"""Fixed-point exponentiation (`rpow`) and checked fixed-point multiplication.

Every function is stateless and operates on plain Python ints.

Python ints never wrap, so a fixed unsigned integer width is
emulated explicitly: each intermediate product is compared against
``2**width - 1`` and `RpowOverflowError` is raised instead of returning a
truncated value. Pass ``width=None`` for plain arbitrary-precision arithmetic.

Rounding is explicit: `Rounding.FLOOR` uses `//` after every rescale,
`Rounding.HALF_UP` adds ``scale // 2`` first (the DSMath convention).
"""

from __future__ import annotations

from enum import Enum, unique

from .errors import RpowOverflowError

UINT128_MAX: int = 2**128 - 1
UINT256_MAX: int = 2**256 - 1
DEFAULT_WIDTH: int = 256


@unique
class Rounding(Enum):
    FLOOR = "floor"
    HALF_UP = "half_up"


# -- Helpers -----------------------------------------------------------------

def width_max(width: int | None) -> int | None:
    """Largest value representable in ``width`` bits (None = unbounded)."""
    if width is None:
        return None
    if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
        raise ValueError(f"width must be a positive int or None, got {width!r}")
    return (1 << width) - 1


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def _checked(value: int, limit: int | None, what: str) -> int:
    if limit is not None and value > limit:
        raise RpowOverflowError(f"{what} overflows the emulated width")
    return value


def mul_scale(
    a: int,
    c: int,
    scale: int,
    *,
    width: int | None = DEFAULT_WIDTH,
    rounding: Rounding = Rounding.FLOOR,
) -> int:
    """Fixed-point product ``a * c / scale`` with width-checked intermediates."""
    if scale == 0:
        raise ZeroDivisionError("fixed-point scale must be nonzero")
    limit = width_max(width)
    product = _checked(a * c, limit, "product")
    if rounding is Rounding.HALF_UP:
        product = _checked(product + scale // 2, limit, "rounded product")
    return product // scale


# -- Exponentiation ----------------------------------------------------------

def rpow(
    x: int,
    n: int,
    b: int,
    *,
    width: int | None = DEFAULT_WIDTH,
    rounding: Rounding = Rounding.FLOOR,
) -> int:
    """Raise fixed-point ``x`` (scale ``b``) to the integer power ``n``.

    Binary exponentiation: the running square of ``x`` is folded into the
    accumulator for every set bit of ``n``, so the cost is ``O(log n)``
    multiplications. Each multiplication is rescaled by ``b`` to stay in the
    fixed-point domain.

    Raises:
        ZeroDivisionError: ``b == 0``.
        TypeError / ValueError: non-int or negative operands.
        RpowOverflowError: an operand or intermediate exceeds ``2**width - 1``.
    """
    _require_uint("x", x)
    _require_uint("n", n)
    _require_uint("b", b)
    if b == 0:
        raise ZeroDivisionError("rpow scale b must be nonzero")

    limit = width_max(width)
    _checked(x, limit, "x")
    _checked(b, limit, "b")

    if n == 0:
        return b
    if x == 0:
        return 0

    z = x if n & 1 else b
    n >>= 1
    while n:
        x = mul_scale(x, x, b, width=width, rounding=rounding)
        if n & 1:
            z = mul_scale(z, x, b, width=width, rounding=rounding)
        n >>= 1
    return z


def rpow_exact(x: int, n: int, b: int) -> int:
    """Single-floor reference ``floor(x**n / b**(n-1))`` in arbitrary precision.

    Differs from `rpow` only by the per-step truncation `rpow` performs; used as
    the independent oracle in tests and for comparison output in the CLI.
    """
    _require_uint("x", x)
    _require_uint("n", n)
    _require_uint("b", b)
    if b == 0:
        raise ZeroDivisionError("rpow scale b must be nonzero")
    if n == 0:
        return b
    return x**n // b ** (n - 1)
