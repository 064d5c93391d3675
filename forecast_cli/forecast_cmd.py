# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Forecast CLI Commands

Commands:
- run: Aggregate an evidence file into a ForecastCard (JSON on stdout)
- prior: Base-rate prior from a reference class
- blend: Blend a neutral posterior with a market probability
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

from pydantic import ValidationError


def _parse_rho(pairs: list[str] | None) -> dict[str, float] | None:
    if not pairs:
        return None
    out: dict[str, float] = {}
    for pair in pairs:
        cid, sep, raw = pair.rpartition("=")
        if not sep or not cid:
            raise ValueError(f"--rho expects CLUSTER=RHO, got {pair!r}")
        out[cid] = float(raw)
    return out


def _parse_now(raw: str | None) -> datetime | None:
    if not raw:
        return None
    s = raw.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    ts = datetime.fromisoformat(s)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def cmd_run(args: argparse.Namespace) -> int:
    """Aggregate evidence into a forecast card."""
    from forecast_core import SCORING_VERSION
    from forecast_core.engine import run_forecast
    from forecast_core.runtime_config import EngineRuntimeConfig
    from forecast_core.utils.trace import Trace

    evidence_path = Path(args.evidence_file)
    if not evidence_path.exists():
        print(f"✗ Evidence file not found: {evidence_path}", file=sys.stderr)
        return 1

    try:
        payload = json.loads(evidence_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Failed to parse JSON: {e}", file=sys.stderr)
        return 1

    if isinstance(payload, dict) and "evidence" in payload:
        evidence = payload.get("evidence")
        question = args.question or payload.get("question") or ""
    else:
        evidence = payload
        question = args.question or ""

    if not isinstance(evidence, list):
        print("✗ Evidence JSON must be a list or {evidence:[...]}.", file=sys.stderr)
        return 1

    reference_class = None
    if args.trials is not None:
        reference_class = (args.trials, args.successes)

    runtime = EngineRuntimeConfig.load_from_env()
    Trace.start(f"forecast-{uuid.uuid4().hex[:12]}", runtime=runtime)
    try:
        card = run_forecast(
            question,
            evidence,
            p0=args.p0,
            reference_class=reference_class,
            market_prob=args.market,
            alpha=args.alpha,
            drivers=args.driver or [],
            rho_overrides=_parse_rho(args.rho),
            now=_parse_now(args.now),
            config=runtime,
        )
    except ValidationError as e:
        print(f"✗ Invalid evidence: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    finally:
        Trace.stop()

    out = card.to_dict()
    out["scoringVersion"] = SCORING_VERSION
    text = json.dumps(out, ensure_ascii=False, indent=2)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Forecast card written to {args.output}")
    else:
        print(text)
    return 0


def cmd_prior(args: argparse.Namespace) -> int:
    """Print a base-rate prior."""
    from forecast_core.scoring.priors import prior_from_reference_class, wilson_interval

    p0 = prior_from_reference_class(args.trials, args.successes, z=args.z)
    lo, hi = wilson_interval(args.trials, args.successes, z=args.z)
    print(json.dumps({"p0": p0, "interval": [lo, hi]}))
    return 0


def cmd_blend(args: argparse.Namespace) -> int:
    """Print a market-blended probability."""
    from forecast_core.scoring.market import blend_market

    print(json.dumps({"pAware": blend_market(args.p_neutral, args.market, args.alpha)}))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="forecast-cli",
        description="Evidence aggregation commands",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Aggregate an evidence file into a forecast card",
    )
    run_parser.add_argument(
        "evidence_file",
        help="Path to JSON file with evidence (list or {question, evidence:[...]})",
    )
    run_parser.add_argument("--question", "-q", help="Question text (overrides the file)")
    prior_group = run_parser.add_mutually_exclusive_group()
    prior_group.add_argument("--p0", type=float, help="Explicit prior probability")
    prior_group.add_argument("--trials", type=int, help="Reference-class trials")
    run_parser.add_argument("--successes", type=int, help="Reference-class successes (requires --trials)")
    run_parser.add_argument("--market", type=float, help="Market-implied probability")
    run_parser.add_argument("--alpha", type=float, help="Market blend weight")
    run_parser.add_argument(
        "--driver",
        action="append",
        help="Key driver (repeatable)",
    )
    run_parser.add_argument(
        "--rho",
        action="append",
        help="Cluster correlation override CLUSTER=RHO (repeatable)",
    )
    run_parser.add_argument("--now", help="Reference time for recency (ISO, default: now)")
    run_parser.add_argument("--output", "-o", help="Write card JSON to this path")
    run_parser.set_defaults(func=cmd_run)

    # prior command
    prior_parser = subparsers.add_parser(
        "prior",
        help="Base-rate prior from a reference class",
    )
    prior_parser.add_argument("trials", type=int)
    prior_parser.add_argument("successes", type=int)
    prior_parser.add_argument("--z", type=float, default=1.96, help="Wilson z (default: 1.96)")
    prior_parser.set_defaults(func=cmd_prior)

    # blend command
    blend_parser = subparsers.add_parser(
        "blend",
        help="Blend a neutral posterior with a market probability",
    )
    blend_parser.add_argument("p_neutral", type=float)
    blend_parser.add_argument("market", type=float)
    blend_parser.add_argument("--alpha", type=float, default=0.1, help="Blend weight (default: 0.1)")
    blend_parser.set_defaults(func=cmd_blend)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the forecast CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.command == "run" and (args.trials is None) != (args.successes is None):
        parser.error("--trials and --successes must be given together")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
