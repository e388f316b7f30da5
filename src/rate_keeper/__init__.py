"""
rate_keeper: fixed-point compound rate accrual.

Public API:
- `rpow(x, n, b)`: fixed-point exponentiation by squaring
- `CompoundRateKeeper`: stateful keeper over the pure `core.keeper` kernel
"""

from .core import DECIMAL, Rounding, RateKeeperError, RpowOverflowError, format_fixed, rpow, to_fixed
from .integration import CompoundRateKeeper, KeeperConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "DECIMAL",
    "Rounding",
    "RateKeeperError",
    "RpowOverflowError",
    "format_fixed",
    "rpow",
    "to_fixed",
    "CompoundRateKeeper",
    "KeeperConfig",
    "load_config",
]
