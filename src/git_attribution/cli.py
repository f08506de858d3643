from __future__ import annotations

import argparse
import datetime as dt
import json
import sys
from pathlib import Path

from .attribution_periods import STATS_DAYS, parse_instant, stats_window
from .attribution_run import run
from .config import load_config, settings_from_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-attribution",
        description="Attribute surviving lines to authors with git blame and merge them with issue tracker activity.",
    )
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    parser.add_argument("--asof", type=str, default="", help="End of the window, exclusive (RFC 3339; default: now).")
    parser.add_argument("--epoch", type=str, default="", help="Never count anything before this instant (RFC 3339).")
    parser.add_argument("--days", type=int, default=STATS_DAYS, help="Window length in days before --asof.")
    parser.add_argument("--jobs", type=int, default=1, help="Repositories scanned in parallel.")
    parser.add_argument("--out", type=Path, default=Path("stats.json"), help="Where to write the JSON result.")
    return parser


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _build_parser().parse_args(argv)

    try:
        asof = parse_instant(args.asof) if args.asof else dt.datetime.now(dt.timezone.utc)
        epoch = parse_instant(args.epoch) if args.epoch else None
        window = stats_window(asof, epoch, days=args.days)
        config = load_config(args.config)
        settings = settings_from_config(config, base_dir=args.config.resolve().parent)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if not settings.repos:
        print(f"No repos configured in {args.config}", file=sys.stderr)

    try:
        result = run(settings, window, jobs=max(1, args.jobs))
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(json.dumps(result, indent=2, sort_keys=False) + "\n", encoding="utf-8")
    print(f"Done. Stats in: {args.out}")

    repos = list(result["repos"])
    failed = [r for r in repos if not r["ok"]]
    if failed:
        print(f"{len(failed)} of {len(repos)} repos could not be scanned.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
