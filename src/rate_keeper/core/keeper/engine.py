"""Dispatch-table engine for the compound rate keeper.

``step(state, params)`` is the single entry point. It:

1. Validates parameter domains (unsigned, within the state's emulated width).
2. Rejects timestamps that precede the last checkpoint.
3. Dispatches to the correct guard / update / effect functions.
4. Checks all invariants on the post-state.
5. Returns a ``StepResult`` (accepted or rejected with reason).

A rejected step never yields a state, so callers keep their last valid checkpoint.
"""

from __future__ import annotations

from typing import Callable

from ..errors import (
    ClockRegressionError,
    InvalidConfigurationError,
    KeeperGuardError,
    KeeperInvariantError,
    MaxRateReachedError,
)
from .effects import (
    effect_accrue,
    effect_set_period,
    effect_set_rate,
    effect_set_rate_and_period,
)
from .guards import (
    guard_accrue,
    guard_set_period,
    guard_set_rate,
    guard_set_rate_and_period,
)
from .invariants import check_all
from .types import Action, ActionParams, Effect, KeeperState, StepResult
from .updates import (
    apply_accrue,
    apply_set_period,
    apply_set_rate,
    apply_set_rate_and_period,
)

GuardFn = Callable[[KeeperState, ActionParams], bool]
UpdateFn = Callable[[KeeperState, ActionParams], KeeperState]
EffectFn = Callable[[KeeperState, KeeperState, ActionParams], Effect]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, EffectFn]] = {
    Action.SET_RATE: (
        guard_set_rate, apply_set_rate, effect_set_rate,
    ),
    Action.SET_PERIOD: (
        guard_set_period, apply_set_period, effect_set_period,
    ),
    Action.SET_RATE_AND_PERIOD: (
        guard_set_rate_and_period, apply_set_rate_and_period, effect_set_rate_and_period,
    ),
    Action.ACCRUE: (
        guard_accrue, apply_accrue, effect_accrue,
    ),
}

# Per-action fields that must be unsigned ints within the state's width.
_PARAM_FIELDS: dict[Action, tuple[str, ...]] = {
    Action.SET_RATE: ("now", "new_rate"),
    Action.SET_PERIOD: ("now", "new_period"),
    Action.SET_RATE_AND_PERIOD: ("now", "new_rate", "new_period"),
    Action.ACCRUE: ("now",),
}


def _validate_params(state: KeeperState, params: ActionParams) -> str | None:
    """Check parameter domain bounds. Returns rejection reason or None."""
    limit = (1 << state.width) - 1
    for field in _PARAM_FIELDS.get(params.action, ()):
        val = getattr(params, field)
        if not isinstance(val, int) or isinstance(val, bool):
            return f"param_domain:{field}"
        if val < 0 or val > limit:
            return f"param_domain:{field}"
    return None


def step(state: KeeperState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(state, params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    if params.now < state.last_update:
        return StepResult(accepted=False, rejection="clock_regression")

    guard_fn, update_fn, effect_fn = entry

    if not guard_fn(state, params):
        reason = "max_rate_reached" if state.max_rate_reached else "guard"
        return StepResult(accepted=False, rejection=reason)

    new_state = update_fn(state, params)

    violations = check_all(new_state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    effect = effect_fn(state, new_state, params)
    return StepResult(accepted=True, state=new_state, effect=effect)


def step_or_raise(state: KeeperState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        InvalidConfigurationError: Parameter outside its domain.
        ClockRegressionError: ``params.now`` precedes ``state.last_update``.
        MaxRateReachedError: Setter after the compound rate saturated.
        KeeperGuardError: Any other guard failure.
        KeeperInvariantError: Post-state violates one or more invariants.
    """
    result = step(state, params)
    if result.accepted:
        return result

    reason = result.rejection or ""
    if reason.startswith("param_domain:") or reason.startswith("unknown_action:"):
        raise InvalidConfigurationError(reason)
    if reason == "clock_regression":
        raise ClockRegressionError(
            f"timestamp {params.now} precedes last update {state.last_update}"
        )
    if reason == "max_rate_reached":
        raise MaxRateReachedError("compound rate reached its maximum; parameters are frozen")
    if reason.startswith("invariant:"):
        violations = reason.removeprefix("invariant:").split(",")
        raise KeeperInvariantError(violations)
    raise KeeperGuardError(reason)
