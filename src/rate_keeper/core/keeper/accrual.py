"""Pure accrual arithmetic for the compound rate keeper.

Every function is stateless: it projects a `KeeperState` to a timestamp without
mutating anything. Only whole capitalization periods are compounded; the
fractional remainder of a period is never interpolated.
"""

from __future__ import annotations

from ..dsmath import rpow
from ..errors import ClockRegressionError, InvalidConfigurationError, RpowOverflowError
from .types import Accrual, KeeperState


def require_timestamp(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidConfigurationError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidConfigurationError(f"{name} must be non-negative: {value}")
    return value


def periods_elapsed(state: KeeperState, now: int) -> int:
    """Whole periods between ``state.last_update`` and ``now`` (0 when period is 0)."""
    require_timestamp("now", now)
    if now < state.last_update:
        raise ClockRegressionError(
            f"timestamp {now} precedes last update {state.last_update}"
        )
    if state.period == 0:
        return 0
    return (now - state.last_update) // state.period


def accrue_to(state: KeeperState, now: int) -> Accrual:
    """Compound ``state.current_rate`` over the whole periods elapsed at ``now``.

    The result saturates at ``state.max_rate`` when it would exceed it, or when
    ``rpow`` overflows the emulated width.
    """
    periods = periods_elapsed(state, now)
    if periods == 0 or state.max_rate_reached:
        return Accrual(value=state.current_rate, periods=0)

    try:
        factor = rpow(state.rate, periods, state.decimal, width=state.width)
    except RpowOverflowError:
        return Accrual(value=state.max_rate, periods=periods, saturated=True)

    value = (state.current_rate * factor) // state.decimal
    if value >= state.max_rate:
        return Accrual(value=state.max_rate, periods=periods, saturated=True)
    return Accrual(value=value, periods=periods)


def current_rate_at(state: KeeperState, now: int) -> int:
    """The compound rate a read at ``now`` observes (getCurrentRate)."""
    return accrue_to(state, now).value


# Projection to any timestamp at or after `last_update` (getFutureCompoundRate);
# identical to a read at that time.
future_rate_at = current_rate_at
