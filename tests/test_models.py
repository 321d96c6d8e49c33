import pytest
from pydantic import ValidationError

from pyfantasy.models import Competitor, RawStats, SeasonStats

from tests.samples import sample_team


def test_competitor_available_follows_owner():
    competitor = Competitor(competitor_id="c1", name="Anchor", position="CDM", price=80)
    assert competitor.available
    owned = competitor.model_copy(update={"owner": "team-a"})
    assert not owned.available
    assert competitor.available


def test_competitor_rejects_unknown_position():
    with pytest.raises(ValidationError):
        Competitor(competitor_id="x", name="Striker", position="ST", price=80)


def test_raw_stats_rejects_negative_counts():
    with pytest.raises(ValidationError):
        RawStats(goals=-1, played=True)


def test_season_stats_accumulates_only_appearances():
    season = SeasonStats()
    assert season.accumulate(RawStats(goals=2), 0.0) is season

    updated = season.accumulate(RawStats(goals=1, assists=1, clean_sheet=True, played=True), 12.0)
    assert updated.appearances == 1
    assert updated.goals == 1
    assert updated.clean_sheets == 1
    assert updated.total_points == 12.0


def test_team_squad_is_derived_from_slots():
    team = sample_team()
    assert team.squad == team.starters + team.bench
    assert len(team.squad) == 8


def test_team_is_immutable():
    team = sample_team()
    with pytest.raises(ValidationError):
        team.budget = 0
