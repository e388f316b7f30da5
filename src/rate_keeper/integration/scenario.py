"""
Replay a timed sequence of keeper operations.

A scenario pins the clock: every step runs at ``start + at`` seconds, so a
replay is bit-for-bit reproducible. Used by ``tools/rate_keeper_cli.py simulate``.

Example::

    schema: rate-keeper/scenario/v1
    start: 1700000000
    keeper:
      rate: "1.1"
      period: 31536000
    steps:
      - {at: 31536000, action: set_rate, rate: "1.2"}
      - {at: 94608000, action: read}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

from ..core.errors import InvalidConfigurationError, RateKeeperError
from .config import KeeperConfig, load_yaml, parse_keeper_config, require_fixed, require_mapping, require_uint
from .keeper import CompoundRateKeeper

logger = logging.getLogger(__name__)

SCENARIO_SCHEMA = "rate-keeper/scenario/v1"
STEP_ACTIONS = ("set_rate", "set_period", "set_rate_and_period", "accrue", "read")


@dataclass(frozen=True)
class ScenarioStep:
    at: int
    action: str
    rate: Optional[int] = None
    period: Optional[int] = None


@dataclass(frozen=True)
class Scenario:
    config: KeeperConfig
    start: int
    steps: tuple[ScenarioStep, ...]


class _PinnedClock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def parse_scenario(root: Any) -> Scenario:
    doc = require_mapping(root, name="scenario")
    if doc.get("schema") != SCENARIO_SCHEMA:
        raise InvalidConfigurationError(f"unsupported scenario schema: {doc.get('schema')!r}")
    config = parse_keeper_config(doc.get("keeper"))
    start = require_uint(doc.get("start", 0), name="scenario.start")

    raw_steps = doc.get("steps", [])
    if not isinstance(raw_steps, list):
        raise InvalidConfigurationError("scenario.steps must be a list")

    steps = []
    last_at = 0
    for idx, raw in enumerate(raw_steps):
        name = f"steps[{idx}]"
        entry = require_mapping(raw, name=name)
        at = require_uint(entry.get("at"), name=f"{name}.at")
        if at < last_at:
            raise InvalidConfigurationError(f"{name}.at goes back in time ({at} < {last_at})")
        last_at = at
        action = entry.get("action")
        if action not in STEP_ACTIONS:
            raise InvalidConfigurationError(f"{name}.action must be one of {', '.join(STEP_ACTIONS)}")
        rate = None
        period = None
        if action in ("set_rate", "set_rate_and_period"):
            rate = require_fixed(entry.get("rate"), name=f"{name}.rate", decimal=config.decimal)
        if action in ("set_period", "set_rate_and_period"):
            period = require_uint(entry.get("period"), name=f"{name}.period")
        steps.append(ScenarioStep(at=at, action=action, rate=rate, period=period))

    return Scenario(config=config, start=start, steps=tuple(steps))


def load_scenario(path: Path) -> Scenario:
    return parse_scenario(load_yaml(path))


def run_scenario(scenario: Scenario) -> Iterator[dict[str, Any]]:
    """Apply every step in order, yielding one JSON-ready record per step.

    A failing step is reported in its record and does not change the state.
    """
    clock = _PinnedClock(scenario.start)
    keeper = CompoundRateKeeper(scenario.config.build(scenario.start), clock=clock)

    for step in scenario.steps:
        clock.now = scenario.start + step.at
        record: dict[str, Any] = {"at": step.at, "action": step.action}
        try:
            if step.action == "read":
                record["current_rate"] = keeper.get_current_rate()
            else:
                effect = _dispatch(keeper, step)
                record["event"] = effect.event.value
                record["periods_folded"] = effect.periods_folded
        except RateKeeperError as exc:
            logger.info("step %s at %d rejected: %s", step.action, step.at, exc)
            record["error"] = f"{type(exc).__name__}: {exc}"
        record["compound_rate"] = keeper.get_compound_rate()
        record["digest"] = keeper.snapshot()["digest"]
        yield record


def _dispatch(keeper: CompoundRateKeeper, step: ScenarioStep):
    if step.action == "set_rate":
        return keeper.set_rate(step.rate)
    if step.action == "set_period":
        return keeper.set_period(step.period)
    if step.action == "set_rate_and_period":
        return keeper.set_rate_and_period(step.rate, step.period)
    return keeper.accrue()
