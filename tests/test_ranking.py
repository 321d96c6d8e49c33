from datetime import timedelta

import pytest

from pyfantasy.errors import Reason, ValidationError
from pyfantasy.ranking import rank_teams

from tests.samples import FIRST_LOCK, RULES, sample_team


def _team(team_id, points, period_points, days_before_lock, budget=2_000):
    return sample_team(
        team_id=team_id,
        points=points,
        period_points=period_points,
        budget=budget,
        created_at=FIRST_LOCK - timedelta(days=days_before_lock),
    )


TEAMS = [
    _team("late", 50.0, 10.0, 1),
    _team("early", 50.0, 10.0, 5),
    _team("hot", 50.0, 20.0, 3),
    _team("leader", 70.0, 5.0, 2, budget=2_500),
]


def test_cumulative_ties_break_on_period_points_then_creation():
    ranked = rank_teams(TEAMS, starting_budget=RULES.starting_budget)
    assert [s.team_id for s in ranked] == ["leader", "hot", "early", "late"]
    assert [s.rank for s in ranked] == [1, 2, 3, 4]
    assert ranked[0].team_value == 500


def test_period_metric_orders_by_latest_period():
    ranked = rank_teams(TEAMS, "period", starting_budget=RULES.starting_budget)
    assert [s.team_id for s in ranked] == ["hot", "early", "late", "leader"]


def test_pagination_keeps_absolute_ranks():
    page = rank_teams(TEAMS, starting_budget=RULES.starting_budget, limit=2, offset=2)
    assert [(s.rank, s.team_id) for s in page] == [(3, "early"), (4, "late")]


def test_same_timestamp_falls_back_to_insertion_order():
    created_at = FIRST_LOCK - timedelta(days=1)
    later = sample_team(team_id="0-later", points=30.0, created_at=created_at, seq=2)
    earlier = sample_team(team_id="f-earlier", points=30.0, created_at=created_at, seq=1)
    ranked = rank_teams([later, earlier], starting_budget=RULES.starting_budget)
    assert [s.team_id for s in ranked] == ["f-earlier", "0-later"]


def test_unknown_metric_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        rank_teams(TEAMS, "goals", starting_budget=RULES.starting_budget)
    assert excinfo.value.reason is Reason.INVALID_QUERY
