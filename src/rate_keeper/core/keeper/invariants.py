"""Invariant checkers for the compound rate keeper.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).
"""

from __future__ import annotations

from typing import Callable

from .types import KeeperState

_INT_FIELDS = ("rate", "period", "last_update", "current_rate", "decimal", "max_rate")


def inv_width_positive(s: KeeperState) -> bool:
    return isinstance(s.width, int) and not isinstance(s.width, bool) and s.width > 0


def inv_decimal_positive(s: KeeperState) -> bool:
    return s.decimal > 0


def inv_fields_non_negative(s: KeeperState) -> bool:
    return all(getattr(s, name) >= 0 for name in _INT_FIELDS)


def inv_fields_fit_width(s: KeeperState) -> bool:
    if not inv_width_positive(s):
        return False
    limit = (1 << s.width) - 1
    return all(getattr(s, name) <= limit for name in _INT_FIELDS)


def inv_current_rate_capped(s: KeeperState) -> bool:
    return s.current_rate <= s.max_rate


def inv_saturated_at_max(s: KeeperState) -> bool:
    if not s.max_rate_reached:
        return True
    return s.current_rate == s.max_rate


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[KeeperState], bool]] = {
    "inv_width_positive": inv_width_positive,
    "inv_decimal_positive": inv_decimal_positive,
    "inv_fields_non_negative": inv_fields_non_negative,
    "inv_fields_fit_width": inv_fields_fit_width,
    "inv_current_rate_capped": inv_current_rate_capped,
    "inv_saturated_at_max": inv_saturated_at_max,
}


def check_all(state: KeeperState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
