"""
Fail-closed YAML configuration for compound rate keepers.

Example::

    schema: rate-keeper/config/v1
    keeper:
      rate: "1.0001"    # decimal string, or a raw fixed-point int
      period: 86400     # seconds; 0 freezes accrual
      width: 256        # optional emulated integer width

Unquoted decimals (``rate: 1.0001``) are rejected: YAML would load them as
binary floats.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..core.dsmath import DEFAULT_WIDTH
from ..core.errors import InvalidConfigurationError
from ..core.keeper import KeeperState, initial_state
from ..core.units import DECIMAL, to_fixed

CONFIG_SCHEMA = "rate-keeper/config/v1"


@dataclass(frozen=True)
class KeeperConfig:
    rate: int
    period: int
    decimal: int = DECIMAL
    max_rate: Optional[int] = None
    width: int = DEFAULT_WIDTH

    def build(self, now: int) -> KeeperState:
        """Initial keeper state for this configuration at ``now``."""
        return initial_state(
            self.rate,
            self.period,
            now,
            decimal=self.decimal,
            max_rate=self.max_rate,
            width=self.width,
        )


def require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise InvalidConfigurationError(f"{name} must be an object")
    return obj


def require_uint(obj: Any, *, name: str) -> int:
    if not isinstance(obj, int) or isinstance(obj, bool) or obj < 0:
        raise InvalidConfigurationError(f"{name} must be a non-negative int")
    return obj


def require_fixed(obj: Any, *, name: str, decimal: int) -> int:
    """A fixed-point value given as a decimal string or a raw int."""
    if isinstance(obj, float):
        raise InvalidConfigurationError(f"{name} must be quoted (got float {obj!r})")
    if isinstance(obj, str):
        try:
            value = to_fixed(obj, decimal)
        except ValueError as exc:
            raise InvalidConfigurationError(f"{name}: {exc}") from exc
        if value < 0:
            raise InvalidConfigurationError(f"{name} must be non-negative")
        return value
    return require_uint(obj, name=name)


def parse_keeper_config(obj: Any, *, name: str = "keeper") -> KeeperConfig:
    section = require_mapping(obj, name=name)
    unknown = set(section) - {"rate", "period", "decimal", "max_rate", "width"}
    if unknown:
        raise InvalidConfigurationError(f"{name} has unknown fields: {', '.join(sorted(unknown))}")

    decimal = require_uint(section.get("decimal", DECIMAL), name=f"{name}.decimal")
    if decimal == 0:
        raise InvalidConfigurationError(f"{name}.decimal must be positive")
    if "rate" not in section:
        raise InvalidConfigurationError(f"{name}.rate is required")
    if "period" not in section:
        raise InvalidConfigurationError(f"{name}.period is required")

    max_rate = None
    if "max_rate" in section:
        max_rate = require_fixed(section["max_rate"], name=f"{name}.max_rate", decimal=decimal)

    width = require_uint(section.get("width", DEFAULT_WIDTH), name=f"{name}.width")
    if width == 0:
        raise InvalidConfigurationError(f"{name}.width must be positive")

    return KeeperConfig(
        rate=require_fixed(section["rate"], name=f"{name}.rate", decimal=decimal),
        period=require_uint(section["period"], name=f"{name}.period"),
        decimal=decimal,
        max_rate=max_rate,
        width=width,
    )


def parse_config(root: Any) -> KeeperConfig:
    doc = require_mapping(root, name="config")
    schema = doc.get("schema")
    if schema != CONFIG_SCHEMA:
        raise InvalidConfigurationError(f"unsupported config schema: {schema!r}")
    return parse_keeper_config(doc.get("keeper"))


def load_yaml(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidConfigurationError(f"cannot read {path}: {exc}") from exc
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise InvalidConfigurationError(f"invalid YAML in {path}: {exc}") from exc


def load_config(path: Path) -> KeeperConfig:
    return parse_config(load_yaml(path))
