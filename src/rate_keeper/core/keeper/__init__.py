"""`keeper`: pure-Python capitalization state keeper.

- deterministic, integer-only transitions,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks,
- the caller supplies the timestamp; nothing here reads a clock.

Public API:
- `initial_state(rate, period, now) -> KeeperState`
- `current_rate_at(state, now) -> int` (read-only)
- `step(state, params) -> StepResult`
- `step_or_raise(state, params) -> StepResult` (raises on rejection)
"""

from .accrual import accrue_to, current_rate_at, future_rate_at, periods_elapsed
from .engine import step, step_or_raise
from .state import initial_state, state_from_dict, state_to_dict, validate_state
from .types import (
    MAX_RATE,
    Accrual,
    Action,
    ActionParams,
    Effect,
    Event,
    KeeperState,
    StepResult,
    default_max_rate,
)
from .updates import checkpoint

__all__ = [
    "step",
    "step_or_raise",
    "initial_state",
    "validate_state",
    "state_from_dict",
    "state_to_dict",
    "accrue_to",
    "checkpoint",
    "current_rate_at",
    "future_rate_at",
    "periods_elapsed",
    "MAX_RATE",
    "default_max_rate",
    "Accrual",
    "Action",
    "ActionParams",
    "Effect",
    "Event",
    "KeeperState",
    "StepResult",
]
