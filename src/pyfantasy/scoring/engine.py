"""Period scoring: position-weighted player points, leadership and power-up modifiers."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Tuple

from pyfantasy.config import LeagueRules
from pyfantasy.models import RawStats, Team
from pyfantasy.powerups import complete_period, is_active


logger = logging.getLogger(__name__)

_NO_STATS = RawStats()


@dataclass(frozen=True)
class PlayerScore:
    competitor_id: str
    role: str
    base: float
    multiplier: float
    points: float
    counted: bool


@dataclass(frozen=True)
class TeamScore:
    team_id: str
    period: int
    players: Tuple[PlayerScore, ...]
    starting_points: float
    bench_points: float
    bench_counted: bool
    transfer_cost: int
    total: float


def round_points(value: float) -> float:
    """Round half-up to one decimal place."""

    return math.floor(round(value * 10, 6) + 0.5) / 10


def score_competitor(position: str, stats: RawStats, rules: LeagueRules) -> float:
    if not stats.played:
        return 0.0
    weights = rules.weights[position]
    points = stats.goals * weights.goal + stats.assists * weights.assist + stats.saves * weights.save
    if stats.clean_sheet:
        points += weights.clean_sheet
    points -= stats.own_goals * rules.own_goal_penalty
    return round_points(points)


def leadership_multipliers(captain_played: bool, vice_played: bool, boosted: bool) -> Tuple[float, float]:
    """Return ``(captain, vice_captain)`` multipliers.

    Precedence: captain boost, both played, captain only, vice promoted.
    """

    if boosted:
        return 3.0, (1.0 if captain_played else 2.0)
    if captain_played and vice_played:
        return 1.5, 1.5
    if captain_played:
        return 2.0, 1.0
    return 1.0, 2.0


def score_team(
    team: Team,
    positions: Mapping[str, str],
    period_stats: Mapping[str, RawStats],
    rules: LeagueRules,
    period: int,
) -> TeamScore:
    """Score one team for a closed period.

    ``positions`` maps each squad member's id to its position; competitors
    missing from ``period_stats`` did not play.
    """

    def stats_for(cid: str) -> RawStats:
        return period_stats.get(cid, _NO_STATS)

    captain_mult, vice_mult = leadership_multipliers(
        stats_for(team.captain).played,
        stats_for(team.vice_captain).played,
        is_active(team, "triple_captain"),
    )
    bench_counted = is_active(team, "bench_boost")

    players: List[PlayerScore] = []
    for cid in team.starters:
        base = score_competitor(positions[cid], stats_for(cid), rules)
        if cid == team.captain:
            role, multiplier = "captain", captain_mult
        elif cid == team.vice_captain:
            role, multiplier = "vice_captain", vice_mult
        else:
            role, multiplier = "starter", 1.0
        players.append(PlayerScore(cid, role, base, multiplier, round_points(base * multiplier), True))
    for cid in team.bench:
        base = score_competitor(positions[cid], stats_for(cid), rules)
        players.append(PlayerScore(cid, "bench", base, 1.0, base, bench_counted))

    starting_points = round_points(sum(p.points for p in players if p.role != "bench"))
    bench_points = round_points(sum(p.points for p in players if p.role == "bench"))
    total = starting_points + (bench_points if bench_counted else 0.0) - team.transfers.cost
    return TeamScore(
        team_id=team.team_id,
        period=period,
        players=tuple(players),
        starting_points=starting_points,
        bench_points=bench_points,
        bench_counted=bench_counted,
        transfer_cost=team.transfers.cost,
        total=round_points(total),
    )


def settle_team(team: Team, score: TeamScore, rules: LeagueRules) -> Team:
    """Apply a period score and roll the team over into the next period."""

    settled = team.model_copy(
        update={
            "period_points": score.total,
            "points": round_points(team.points + score.total),
            "transfers": team.transfers.model_copy(update={"free": rules.free_transfers, "cost": 0}),
        }
    )
    return complete_period(settled)


def score_teams(
    teams: Iterable[Team],
    positions: Mapping[str, str],
    period_stats: Mapping[str, RawStats],
    rules: LeagueRules,
    period: int,
    *,
    jobs: int = 1,
) -> List[TeamScore]:
    """Score every team; teams are independent so ``jobs > 1`` fans out over threads."""

    teams = list(teams)
    if jobs <= 1 or len(teams) <= 1:
        return [score_team(team, positions, period_stats, rules, period) for team in teams]
    logger.info("Scoring %s teams for period %s across %s workers", len(teams), period, jobs)
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(lambda team: score_team(team, positions, period_stats, rules, period), teams))
