"""State construction and serialization for the compound rate keeper.

`initial_state()` validates the initial parameters and starts the compound rate
at 1.0 (``decimal``) with ``last_update = now``.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all valid states.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..dsmath import DEFAULT_WIDTH
from ..errors import InvalidConfigurationError
from ..units import DECIMAL
from .accrual import require_timestamp
from .invariants import check_all
from .types import KeeperState, default_max_rate

# Auto-derived from KeeperState field definitions (single source of truth).
STATE_VAR_NAMES: tuple[str, ...] = tuple(KeeperState.__dataclass_fields__)


def _require_uint(name: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidConfigurationError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidConfigurationError(f"{name} must be non-negative: {value}")
    return value


def validate_state(state: KeeperState) -> KeeperState:
    """Raise `InvalidConfigurationError` if ``state`` violates any invariant."""
    violations = check_all(state)
    if violations:
        raise InvalidConfigurationError(f"invalid keeper state: {', '.join(violations)}")
    return state


def initial_state(
    rate: int,
    period: int,
    now: int,
    *,
    decimal: int = DECIMAL,
    max_rate: int | None = None,
    width: int = DEFAULT_WIDTH,
) -> KeeperState:
    """Return a fresh keeper state.

    ``period == 0`` is accepted and means accrual is frozen until a nonzero
    period is set. Without an explicit ``max_rate`` the ceiling is
    ``UINT128_MAX`` whole units, clamped to the emulated width.
    """
    _require_uint("width", width)
    if width == 0:
        raise InvalidConfigurationError("width must be positive")
    if _require_uint("decimal", decimal) == 0:
        raise InvalidConfigurationError("decimal must be positive")
    if max_rate is None:
        max_rate = default_max_rate(decimal, width)
    state = KeeperState(
        rate=_require_uint("rate", rate),
        period=_require_uint("period", period),
        last_update=require_timestamp("now", now),
        current_rate=decimal,
        max_rate_reached=False,
        decimal=decimal,
        max_rate=_require_uint("max_rate", max_rate),
        width=width,
    )
    return validate_state(state)


def state_to_dict(state: KeeperState) -> dict[str, bool | int]:
    """Serialize a KeeperState to a plain dict."""
    return {name: getattr(state, name) for name in STATE_VAR_NAMES}


def state_from_dict(d: Mapping[str, Any]) -> KeeperState:
    """Deserialize a dict to a KeeperState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in STATE_VAR_NAMES:
        val = d[name]
        if isinstance(val, bool):
            kwargs[name] = val
        elif isinstance(val, int):
            kwargs[name] = int(val)  # normalize int subclasses (e.g. numpy)
        else:
            raise TypeError(f"state var {name!r} must be bool|int, got {type(val).__name__}")
    return KeeperState(**kwargs)
