#!/usr/bin/env python3
"""
Command-line access to the compound rate keeper.

Subcommands:
- rpow:     fixed-point exponentiation, with the exact single-floor reference
- project:  compound rates a configured keeper reaches at future timestamps
- simulate: replay a YAML scenario, one canonical JSON line per step
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from rate_keeper.core.dsmath import Rounding, rpow, rpow_exact
from rate_keeper.core.errors import RateKeeperError
from rate_keeper.core.keeper import future_rate_at
from rate_keeper.core.units import format_fixed
from rate_keeper.integration.config import load_config
from rate_keeper.integration.scenario import load_scenario, run_scenario
from rate_keeper.state.canonical import canonical_json_bytes

logger = logging.getLogger("rate_keeper.cli")


def _cmd_rpow(args: argparse.Namespace) -> int:
    width = args.width or None
    value = rpow(args.x, args.n, args.b, width=width, rounding=Rounding(args.rounding))
    print(value)
    if args.exact:
        print(rpow_exact(args.x, args.n, args.b))
    return 0


def _cmd_project(args: argparse.Namespace) -> int:
    config = load_config(Path(args.config))
    state = config.build(args.start)
    for ts in args.at:
        value = future_rate_at(state, ts)
        record = {"timestamp": ts, "compound_rate": value}
        if args.human:
            record["compound_rate_decimal"] = format_fixed(value, config.decimal)
        print(canonical_json_bytes(record).decode("utf-8"))
    return 0


def _cmd_simulate(args: argparse.Namespace) -> int:
    scenario = load_scenario(Path(args.scenario))
    failed = 0
    for record in run_scenario(scenario):
        if "error" in record:
            failed += 1
        print(canonical_json_bytes(record).decode("utf-8"))
    if failed and args.strict:
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fixed-point compound rate keeper")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("rpow", help="Compute x^n in fixed-point scale b")
    p.add_argument("x", type=int)
    p.add_argument("n", type=int)
    p.add_argument("b", type=int)
    p.add_argument("--width", type=int, default=256, help="Emulated integer width in bits (0 = unbounded)")
    p.add_argument("--rounding", choices=[r.value for r in Rounding], default=Rounding.FLOOR.value)
    p.add_argument("--exact", action="store_true", help="Also print floor(x^n / b^(n-1))")
    p.set_defaults(func=_cmd_rpow)

    p = sub.add_parser("project", help="Project a configured keeper to future timestamps")
    p.add_argument("config", help="Path to a rate-keeper/config/v1 YAML file")
    p.add_argument("--start", type=int, required=True, help="Initialization timestamp")
    p.add_argument("--at", type=int, nargs="+", required=True, help="Timestamps to project to")
    p.add_argument("--human", action="store_true", help="Include decimal renderings")
    p.set_defaults(func=_cmd_project)

    p = sub.add_parser("simulate", help="Replay a rate-keeper/scenario/v1 YAML file")
    p.add_argument("scenario")
    p.add_argument("--strict", action="store_true", help="Exit 1 if any step is rejected")
    p.set_defaults(func=_cmd_simulate)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args)
    except (RateKeeperError, ValueError, ZeroDivisionError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
