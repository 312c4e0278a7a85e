"""
Command-line entry point: python -m lidov [options]

Runs the HD 80860 scenario (or one loaded from JSON) and writes the
time series. SIGINT/SIGTERM end the run at the next macro-step
boundary so the file always ends on a complete row.
"""

import argparse
import json
import signal
import sys
import threading
from dataclasses import asdict

from .defaults import MACRO_STEP_YEARS, YEAR, hd80860
from .driver import StopPolicy, run_scenario
from .errors import LidovError
from .params import load_scenario


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="lidov",
        description="Spin-orbit Lidov-Kozai simulation of a hierarchical triple")
    ap.add_argument("--config", type=str, default=None,
                    help="Scenario JSON file (default: built-in HD80860)")
    ap.add_argument("--output", type=str, default=None,
                    help="Time-series output path")
    ap.add_argument("--steps", type=int, default=None,
                    help="Number of macro-steps")
    ap.add_argument("--macro-step", type=float, default=None,
                    help=f"Macro-step in years (default {MACRO_STEP_YEARS:g})")
    ap.add_argument("--max-time", type=float, default=None,
                    help="Stop before exceeding this time in years")
    ap.add_argument("--progress-every", type=int, default=None,
                    help="Rows between progress lines (0 disables)")
    ap.add_argument("--record-initial", action="store_true",
                    help="Also write the t=0 state")
    ap.add_argument("--dump-config", action="store_true",
                    help="Print the resolved scenario as JSON and exit")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        scenario = load_scenario(args.config) if args.config else hd80860()
        changes = {
            "output": args.output,
            "n_steps": args.steps,
            "macro_step_years": args.macro_step,
            "max_time_years": args.max_time,
            "progress_every": args.progress_every,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        if args.record_initial:
            changes["record_initial"] = True
        scenario = scenario.replace_run(**changes)
    except (LidovError, OSError) as exc:
        print(f"lidov: {exc}", file=sys.stderr)
        return 2

    if args.dump_config:
        print(json.dumps(asdict(scenario), indent=2))
        return 0

    stop = threading.Event()

    def _request_stop(signum, frame):
        print(f"Signal {signum} received, stopping at next boundary", file=sys.stderr)
        stop.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    run = scenario.run
    max_time = None if run.max_time_years is None else run.max_time_years * YEAR
    policy = StopPolicy(max_steps=run.n_steps, max_time=max_time, stop_event=stop)
    try:
        summary = run_scenario(scenario, policy=policy)
    except LidovError as exc:
        print(f"lidov: {exc}", file=sys.stderr)
        return 1
    print(f"Wrote {summary.rows} rows to {run.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
