"""Leaderboard ordering over a snapshot of team totals."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Literal, Optional, get_args

from pyfantasy.errors import Reason, ValidationError
from pyfantasy.models import Team


Metric = Literal["cumulative", "period"]


@dataclass(frozen=True)
class TeamSummary:
    rank: int
    team_id: str
    participant_id: str
    name: str
    points: float
    period_points: float
    team_value: int
    created_at: datetime


def _sort_key(team: Team, metric: Metric):
    if metric == "cumulative":
        primary, secondary = team.points, team.period_points
    else:
        primary, secondary = team.period_points, team.points
    return (-primary, -secondary, team.created_at, team.seq, team.team_id)


def rank_teams(
    teams: Iterable[Team],
    metric: Metric = "cumulative",
    *,
    starting_budget: int,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[TeamSummary]:
    """Order teams by ``metric`` descending, then the other metric, then creation order.

    Ranks are absolute, so a page starting at ``offset`` begins at rank
    ``offset + 1``.
    """

    if metric not in get_args(Metric):
        raise ValidationError(
            Reason.INVALID_QUERY,
            f"Unsupported ranking metric {metric!r}",
            metric=metric,
            allowed=list(get_args(Metric)),
        )
    ordered = sorted(teams, key=lambda team: _sort_key(team, metric))
    end = None if limit is None else offset + limit
    return [
        TeamSummary(
            rank=offset + index + 1,
            team_id=team.team_id,
            participant_id=team.participant_id,
            name=team.name,
            points=team.points,
            period_points=team.period_points,
            team_value=starting_budget - team.budget,
            created_at=team.created_at,
        )
        for index, team in enumerate(ordered[offset:end])
    ]
