"""Command-line interface for running a league from CSV files."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from pyfantasy.config import Settings
from pyfantasy.errors import Rejected
from pyfantasy.ingest import (
    DEFAULT_COMPETITOR_MAPPING,
    DEFAULT_STATS_MAPPING,
    load_competitors_csv,
    load_period_stats_csv,
)
from pyfantasy.service import LeagueService


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a season-long fantasy league")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (overrides PYFANTASY_DB_PATH)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    commands = parser.add_subparsers(dest="command", required=True)

    seed = commands.add_parser("seed", help="Load competitors from a CSV into the market")
    seed.add_argument("competitors", type=Path, help="Competitors CSV")
    seed.add_argument(
        "--column",
        action="append",
        default=[],
        help="Column mapping override (e.g., competitor_id=PlayerId)",
    )

    close = commands.add_parser("close-period", help="Score a finished period from a stats CSV")
    close.add_argument("stats", type=Path, help="Period statistics CSV")
    close.add_argument("--period", type=int, default=None, help="Period number (defaults to the next unclosed one)")
    close.add_argument(
        "--column",
        action="append",
        default=[],
        help="Column mapping override (e.g., goals=G)",
    )

    board = commands.add_parser("leaderboard", help="Print the league ranking")
    board.add_argument("--metric", choices=("cumulative", "period"), default="cumulative")
    board.add_argument("--limit", type=int, default=20)
    board.add_argument("--page", type=int, default=1)

    commands.add_parser("window", help="Show whether the transfer window is open")

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def _seed(service: LeagueService, args: argparse.Namespace) -> int:
    mapping = DEFAULT_COMPETITOR_MAPPING | _parse_mapping(args.column)
    competitors = load_competitors_csv(args.competitors, mapping=mapping)
    inserted = service.register_competitors(competitors)
    print(f"Loaded {len(competitors)} competitors ({inserted} new)")
    return 0


def _close_period(service: LeagueService, args: argparse.Namespace) -> int:
    mapping = DEFAULT_STATS_MAPPING | _parse_mapping(args.column)
    stats = load_period_stats_csv(args.stats, mapping=mapping)
    result = service.close_period(stats, args.period)
    if isinstance(result, Rejected):
        print(f"Close rejected: {result.reason.value}: {result.message}")
        return 1
    for team_id, points in sorted(result.items(), key=lambda item: -item[1]):
        print(f"{team_id}\t{points:.1f}")
    print(f"Scored {len(result)} teams")
    return 0


def _leaderboard(service: LeagueService, args: argparse.Namespace) -> int:
    summaries = service.get_ranking(args.metric, limit=args.limit, page=args.page)
    if isinstance(summaries, Rejected):
        print(f"Leaderboard rejected: {summaries.reason.value}: {summaries.message}")
        return 1
    if not summaries:
        print("No teams ranked")
        return 0
    for summary in summaries:
        points = summary.points if args.metric == "cumulative" else summary.period_points
        print(f"{summary.rank:>4}  {summary.name:<30} {points:>8.1f}")
    return 0


def _window(service: LeagueService, args: argparse.Namespace) -> int:
    status = service.get_window_status()
    state = "locked" if status.locked else "open"
    print(f"Window {state} (gameweek {status.current_period})")
    if status.reason:
        print(status.reason)
    if status.next_transition is not None:
        print(f"Next change: {status.next_transition.isoformat()}")
    return 0


def _serve(service: LeagueService, args: argparse.Namespace) -> int:
    import uvicorn

    from pyfantasy.api import create_app

    uvicorn.run(create_app(service), host=args.host, port=args.port)
    return 0


HANDLERS = {
    "seed": _seed,
    "close-period": _close_period,
    "leaderboard": _leaderboard,
    "window": _window,
    "serve": _serve,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.from_env()
    if args.db is not None:
        settings = replace(settings, db_path=args.db)
    service = LeagueService.from_settings(settings)
    return HANDLERS[args.command](service, args)


if __name__ == "__main__":
    raise SystemExit(main())
