"""Effect functions for the compound rate keeper.

One pure function per action. Effects are computed from the POST-state; the
PRE-state is only consulted for the number of periods the step folded in.
"""

from __future__ import annotations

from .accrual import periods_elapsed
from .types import ActionParams, Effect, Event, KeeperState


def _common_effects(prev: KeeperState, state: KeeperState, params: ActionParams) -> dict[str, bool | int]:
    folded = 0 if prev.max_rate_reached else periods_elapsed(prev, params.now)
    return dict(
        timestamp=params.now,
        periods_folded=folded,
        current_rate=state.current_rate,
        rate=state.rate,
        period=state.period,
        last_update=state.last_update,
        saturated=state.max_rate_reached and not prev.max_rate_reached,
    )


def effect_set_rate(prev: KeeperState, state: KeeperState, params: ActionParams) -> Effect:
    return Effect(event=Event.RATE_CHANGED, **_common_effects(prev, state, params))


def effect_set_period(prev: KeeperState, state: KeeperState, params: ActionParams) -> Effect:
    return Effect(event=Event.PERIOD_CHANGED, **_common_effects(prev, state, params))


def effect_set_rate_and_period(prev: KeeperState, state: KeeperState, params: ActionParams) -> Effect:
    return Effect(event=Event.RATE_AND_PERIOD_CHANGED, **_common_effects(prev, state, params))


def effect_accrue(prev: KeeperState, state: KeeperState, params: ActionParams) -> Effect:
    return Effect(event=Event.ACCRUED, **_common_effects(prev, state, params))
