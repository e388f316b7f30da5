"""Guard functions for the compound rate keeper.

One pure function per action. Each returns True iff the action is allowed in the
given PRE-state with the given parameters. Clock regression and parameter
domains are checked by the engine before any guard runs.
"""

from __future__ import annotations

from .types import ActionParams, KeeperState


def _not_saturated(state: KeeperState) -> bool:
    return not state.max_rate_reached


def guard_set_rate(state: KeeperState, params: ActionParams) -> bool:
    return _not_saturated(state)


def guard_set_period(state: KeeperState, params: ActionParams) -> bool:
    return _not_saturated(state)


def guard_set_rate_and_period(state: KeeperState, params: ActionParams) -> bool:
    return _not_saturated(state)


def guard_accrue(state: KeeperState, params: ActionParams) -> bool:
    # Accrual stays available after saturation (it is a no-op then).
    return True
