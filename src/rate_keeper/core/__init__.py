"""
Core fixed-point and accrual algorithms
"""

from .dsmath import UINT128_MAX, UINT256_MAX, Rounding, mul_scale, rpow, rpow_exact
from .errors import (
    ClockRegressionError,
    InvalidConfigurationError,
    KeeperGuardError,
    KeeperInvariantError,
    MaxRateReachedError,
    RateKeeperError,
    RpowOverflowError,
)
from .units import DECIMAL, format_fixed, to_fixed

__all__ = [
    "UINT128_MAX",
    "UINT256_MAX",
    "Rounding",
    "mul_scale",
    "rpow",
    "rpow_exact",
    "DECIMAL",
    "format_fixed",
    "to_fixed",
    "RateKeeperError",
    "RpowOverflowError",
    "InvalidConfigurationError",
    "ClockRegressionError",
    "MaxRateReachedError",
    "KeeperGuardError",
    "KeeperInvariantError",
]
