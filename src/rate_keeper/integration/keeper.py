"""
Stateful compound rate keeper.

This is an imperative-shell wrapper around the functional core in
`rate_keeper.core.keeper`:
- owns exactly one `KeeperState` (no module-level singletons),
- reads the current time from an injected clock,
- serializes every read-modify-write behind a re-entrant lock,
- notifies subscribed listeners with the `Effect` of every accepted change.

Authorization is out of scope: callers must gate the setters themselves.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Mapping, Optional

from ..core.dsmath import DEFAULT_WIDTH
from ..core.errors import InvalidConfigurationError
from ..core.keeper import (
    Action,
    ActionParams,
    Effect,
    KeeperState,
    current_rate_at,
    future_rate_at,
    initial_state,
    state_from_dict,
    state_to_dict,
    step_or_raise,
    validate_state,
)
from ..core.units import DECIMAL, format_fixed
from ..state.canonical import state_digest

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Listener = Callable[[Effect], None]


def wall_clock() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


class CompoundRateKeeper:
    """Tracks one compound rate over time.

    Reads never mutate state; setters checkpoint pending accrual before they
    change a parameter.
    """

    def __init__(self, state: KeeperState, *, clock: Clock = wall_clock) -> None:
        self._state = validate_state(state)
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    @classmethod
    def create(
        cls,
        rate: int,
        period: int,
        *,
        clock: Clock = wall_clock,
        decimal: int = DECIMAL,
        max_rate: Optional[int] = None,
        width: int = DEFAULT_WIDTH,
    ) -> "CompoundRateKeeper":
        now = _read_clock(clock)
        state = initial_state(rate, period, now, decimal=decimal, max_rate=max_rate, width=width)
        logger.info(
            "keeper initialized: rate=%s period=%ds at %d",
            _fmt(rate, decimal), period, now,
        )
        return cls(state, clock=clock)

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any], *, clock: Clock = wall_clock) -> "CompoundRateKeeper":
        """Restore a keeper from `snapshot()` output, verifying its digest when present."""
        state_dict = snapshot.get("state")
        if not isinstance(state_dict, Mapping):
            raise InvalidConfigurationError("snapshot.state must be an object")
        try:
            digest = state_digest(state_dict)
            state = state_from_dict(state_dict)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidConfigurationError(f"malformed snapshot state: {exc}") from exc
        expected = snapshot.get("digest")
        if expected is not None and expected != digest:
            raise InvalidConfigurationError("snapshot digest mismatch")
        return cls(state, clock=clock)

    # -- Observation ---------------------------------------------------------

    @property
    def state(self) -> KeeperState:
        with self._lock:
            return self._state

    @property
    def rate(self) -> int:
        return self.state.rate

    @property
    def period(self) -> int:
        return self.state.period

    @property
    def last_update(self) -> int:
        return self.state.last_update

    @property
    def max_rate_reached(self) -> bool:
        return self.state.max_rate_reached

    def get_compound_rate(self) -> int:
        """Compound rate stored at the last checkpoint (no pending accrual)."""
        return self.state.current_rate

    def get_current_rate(self) -> int:
        """Compound rate including every whole period elapsed up to now."""
        with self._lock:
            now = _read_clock(self._clock)
            value = current_rate_at(self._state, now)
        logger.debug("current rate at %d: %s", now, value)
        return value

    def get_future_rate(self, timestamp: int) -> int:
        """Projected compound rate at ``timestamp`` if no parameter changes."""
        with self._lock:
            return future_rate_at(self._state, timestamp)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            state_dict = state_to_dict(self._state)
        return {"state": state_dict, "digest": state_digest(state_dict)}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for effects; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # -- Mutation ------------------------------------------------------------

    def set_rate(self, new_rate: int) -> Effect:
        return self._apply(Action.SET_RATE, new_rate=new_rate)

    def set_period(self, new_period: int) -> Effect:
        return self._apply(Action.SET_PERIOD, new_period=new_period)

    def set_rate_and_period(self, new_rate: int, new_period: int) -> Effect:
        return self._apply(Action.SET_RATE_AND_PERIOD, new_rate=new_rate, new_period=new_period)

    def accrue(self) -> Effect:
        """Fold whole elapsed periods into the stored rate without changing parameters."""
        return self._apply(Action.ACCRUE)

    def _apply(self, action: Action, **fields: int) -> Effect:
        with self._lock:
            params = ActionParams(action=action, now=_read_clock(self._clock), **fields)
            result = step_or_raise(self._state, params)
            assert result.state is not None and result.effect is not None
            self._state = result.state
            effect = result.effect
            listeners = list(self._listeners)

        logger.info(
            "%s at %d: rate=%s period=%ds compound=%s (folded %d periods)",
            effect.event.value,
            effect.timestamp,
            _fmt(effect.rate, result.state.decimal),
            effect.period,
            _fmt(effect.current_rate, result.state.decimal),
            effect.periods_folded,
        )
        if effect.saturated:
            logger.warning("compound rate saturated at its maximum; setters are now disabled")

        for listener in listeners:
            try:
                listener(effect)
            except Exception:
                logger.exception("effect listener %r failed", listener)
        return effect


def _read_clock(clock: Clock) -> int:
    now = clock()
    if not isinstance(now, int) or isinstance(now, bool) or now < 0:
        raise InvalidConfigurationError(f"clock must return a non-negative int, got {now!r}")
    return now


def _fmt(value: int, decimal: int) -> str:
    try:
        return format_fixed(value, decimal)
    except ValueError:
        return f"{value}/{decimal}"
