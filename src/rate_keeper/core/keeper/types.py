"""Data types for the compound rate keeper.

All types are frozen dataclasses (immutable). Every transition returns a new
`KeeperState` built with `dataclasses.replace()`.

Units/conventions:
- `rate`, `current_rate`, `max_rate` are unsigned fixed-point ints scaled by `decimal`.
- `period` and timestamps are whole seconds.
- `width` is the emulated unsigned integer width in bits used for overflow checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..dsmath import DEFAULT_WIDTH, UINT128_MAX, width_max
from ..units import DECIMAL


def default_max_rate(decimal: int, width: int | None) -> int:
    """Saturation ceiling of ``UINT128_MAX`` whole units, clamped to the emulated width."""
    cap = UINT128_MAX * decimal
    limit = width_max(width)
    return cap if limit is None else min(cap, limit)


MAX_RATE: int = default_max_rate(DECIMAL, DEFAULT_WIDTH)


@unique
class Action(Enum):
    SET_RATE = "set_rate"
    SET_PERIOD = "set_period"
    SET_RATE_AND_PERIOD = "set_rate_and_period"
    ACCRUE = "accrue"


@unique
class Event(Enum):
    RATE_CHANGED = "RateChanged"
    PERIOD_CHANGED = "PeriodChanged"
    RATE_AND_PERIOD_CHANGED = "RateAndPeriodChanged"
    ACCRUED = "Accrued"


@dataclass(frozen=True)
class KeeperState:
    """Complete capitalization state of one keeper."""

    # Parameters
    rate: int = DECIMAL
    period: int = 0

    # Checkpoint
    last_update: int = 0
    current_rate: int = DECIMAL
    max_rate_reached: bool = False

    # Numeric domain
    decimal: int = DECIMAL
    max_rate: int = MAX_RATE
    width: int = DEFAULT_WIDTH


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to 0."""

    action: Action
    now: int
    new_rate: int = 0      # set_rate / set_rate_and_period
    new_period: int = 0    # set_period / set_rate_and_period


@dataclass(frozen=True)
class Effect:
    """Post-state observables emitted after a successful step."""

    event: Event
    timestamp: int
    periods_folded: int = 0
    current_rate: int = 0
    rate: int = 0
    period: int = 0
    last_update: int = 0
    saturated: bool = False


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: KeeperState | None = None
    effect: Effect | None = None
    rejection: str | None = None


@dataclass(frozen=True)
class Accrual:
    """Outcome of projecting a state to a timestamp (no mutation)."""

    value: int
    periods: int
    saturated: bool = False
