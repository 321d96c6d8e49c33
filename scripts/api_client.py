"""Lightweight REST client for the pyfantasy API."""

from __future__ import annotations

import argparse
import json

import httpx


def _print(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        detail = resp.json().get("detail", resp.text)
        raise SystemExit(f"HTTP {resp.status_code}: {json.dumps(detail, indent=2)}")
    print(json.dumps(resp.json(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the pyfantasy REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--window", action="store_true", help="Show transfer window status")
    parser.add_argument("--market", action="store_true", help="List available competitors")
    parser.add_argument("--position", help="Filter the market by position")
    parser.add_argument("--team", metavar="TEAM_ID", help="Fetch a team")
    parser.add_argument("--transfer", nargs=2, metavar=("INCOMING_ID", "OUTGOING_ID"), help="Transfer for --team")
    parser.add_argument("--power-up", metavar="NAME", help="Activate a power-up for --team")
    parser.add_argument("--cancel-power-up", action="store_true", help="Cancel the active power-up for --team")
    parser.add_argument("--leaderboard", action="store_true", help="Show the leaderboard")
    parser.add_argument("--metric", default="cumulative", choices=("cumulative", "period"))
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.window:
            _print(client.get("/window"))
        if args.market:
            params: dict[str, str | int | bool] = {"available": True}
            if args.position:
                params["position"] = args.position.upper()
            _print(client.get("/competitors", params=params))
        if args.team:
            if args.transfer:
                incoming_id, outgoing_id = args.transfer
                _print(
                    client.post(
                        f"/teams/{args.team}/transfers",
                        json={"incoming_id": incoming_id, "outgoing_id": outgoing_id},
                    )
                )
            elif args.power_up:
                _print(client.post(f"/teams/{args.team}/power-ups", json={"name": args.power_up}))
            elif args.cancel_power_up:
                _print(client.post(f"/teams/{args.team}/power-ups/cancel"))
            else:
                _print(client.get(f"/teams/{args.team}"))
        if args.leaderboard:
            _print(client.get("/leaderboard", params={"metric": args.metric, "limit": args.limit}))


if __name__ == "__main__":
    main()
