"""Exception types for the compound rate keeper.

Used by ``step_or_raise()`` in ``keeper/engine.py`` and by the stateful
``CompoundRateKeeper`` for callers that prefer exceptions over ``StepResult``
inspection.
"""

from __future__ import annotations


class RateKeeperError(Exception):
    """Base class for every error raised by this package."""


class RpowOverflowError(RateKeeperError, OverflowError):
    """Raised when a fixed-point intermediate exceeds the emulated integer width."""


class InvalidConfigurationError(RateKeeperError, ValueError):
    """Raised for operands or configuration values outside their domain."""


class ClockRegressionError(RateKeeperError, ValueError):
    """Raised when the supplied timestamp precedes the last checkpoint."""


class KeeperGuardError(RateKeeperError):
    """Raised when an action's guard condition is not satisfied."""


class MaxRateReachedError(KeeperGuardError):
    """Raised when a setter runs after the compound rate saturated."""


class KeeperInvariantError(RateKeeperError):
    """Raised when a post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
