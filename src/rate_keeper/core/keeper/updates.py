"""State transition functions for the compound rate keeper.

One pure function per action. Each returns a new `KeeperState` with the action's
updates applied.

Semantics:
- every setter checkpoints first, so whole periods that already elapsed are
  compounded under the old parameters,
- updates are built with `dataclasses.replace()` on frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import replace

from .accrual import accrue_to
from .types import ActionParams, KeeperState


def checkpoint(state: KeeperState, now: int) -> KeeperState:
    """Fold whole elapsed periods into `current_rate`.

    `last_update` advances by whole periods only, so the partial-period
    remainder stays pending and counts toward the next period under whatever
    parameters are in force then. With ``period == 0`` or after saturation
    nothing is pending and `last_update` moves to ``now``.
    """
    acc = accrue_to(state, now)
    if state.period == 0 or state.max_rate_reached:
        last_update = now
    else:
        last_update = state.last_update + acc.periods * state.period
    return replace(
        state,
        current_rate=acc.value,
        last_update=last_update,
        max_rate_reached=state.max_rate_reached or acc.saturated,
    )


def apply_set_rate(state: KeeperState, params: ActionParams) -> KeeperState:
    return replace(checkpoint(state, params.now), rate=params.new_rate)


def apply_set_period(state: KeeperState, params: ActionParams) -> KeeperState:
    return replace(checkpoint(state, params.now), period=params.new_period)


def apply_set_rate_and_period(state: KeeperState, params: ActionParams) -> KeeperState:
    return replace(
        checkpoint(state, params.now),
        rate=params.new_rate,
        period=params.new_period,
    )


def apply_accrue(state: KeeperState, params: ActionParams) -> KeeperState:
    return checkpoint(state, params.now)
