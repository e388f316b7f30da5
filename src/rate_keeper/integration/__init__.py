"""
Imperative shell: stateful keeper, configuration, scenario replay
"""

from .config import KeeperConfig, load_config, parse_config
from .keeper import CompoundRateKeeper, wall_clock
from .scenario import Scenario, ScenarioStep, load_scenario, parse_scenario, run_scenario

__all__ = [
    "CompoundRateKeeper",
    "wall_clock",
    "KeeperConfig",
    "load_config",
    "parse_config",
    "Scenario",
    "ScenarioStep",
    "load_scenario",
    "parse_scenario",
    "run_scenario",
]
