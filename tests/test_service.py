import threading
from pathlib import Path

import pytest

from pyfantasy.errors import Reason, Rejected
from pyfantasy.models import Team

from tests.samples import (
    AFTER_GAMEWEEK_1,
    BEFORE_FIRST_LOCK,
    DURING_GAMEWEEK_1,
    RULES,
    TEAM_A,
    TEAM_A_PRICE,
    TEAM_B,
    FakeClock,
    make_service,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(BEFORE_FIRST_LOCK)


@pytest.fixture
def service(tmp_path: Path, clock: FakeClock):
    return make_service(tmp_path, clock)


def _create(service, participant_id="user-a", name="Team Alpha", lineup=TEAM_A) -> Team:
    team = service.create_team(participant_id, name, **lineup)
    assert isinstance(team, Team), team
    return team


def _total_value(service, team: Team) -> int:
    return sum(c.price for c in service.store.list_competitors(owner=team.team_id))


def test_create_team_claims_players(service):
    team = _create(service)
    assert team.version == 1
    assert team.budget == RULES.starting_budget - TEAM_A_PRICE
    owned = service.list_market(available=False)
    assert {c.competitor_id for c in owned} == set(team.squad)
    assert service.get_team_for_participant("user-a").team_id == team.team_id


def test_participant_gets_one_team(service):
    _create(service)
    result = service.create_team("user-a", "Team Again", **TEAM_B)
    assert isinstance(result, Rejected)
    assert result.reason is Reason.TEAM_EXISTS


def test_players_cannot_be_shared_between_teams(service):
    _create(service)
    lineup = dict(TEAM_B, starters=["g3", "c4", "c5", "l3", "r1"])
    result = service.create_team("user-b", "Team Bravo", **lineup)
    assert isinstance(result, Rejected)
    assert result.kind == "unavailable"


def test_unknown_player_is_not_found(service):
    lineup = dict(TEAM_A, bench=["g2", "c3", "zz"])
    result = service.create_team("user-a", "Team Alpha", **lineup)
    assert result.kind == "not_found"
    assert result.error.detail["player_ids"] == ["zz"]


def test_transfer_keeps_budget_invariant(service):
    team = _create(service)
    result = service.transfer(team.team_id, "c7", "c2")
    assert result.penalty == 0
    refreshed = service.get_team(team.team_id)
    assert refreshed.budget + _total_value(service, refreshed) == RULES.starting_budget
    assert service.get_competitor("c2").available
    assert service.get_competitor("c7").owner == team.team_id

    second = service.transfer(team.team_id, "g5", "c7")
    assert isinstance(second, Rejected)
    assert second.reason is Reason.FORMATION_INVALID


def test_transfers_rejected_while_locked(service, clock):
    team = _create(service)
    clock.now = DURING_GAMEWEEK_1
    result = service.transfer(team.team_id, "c7", "c2")
    assert result.kind == "window_locked"
    assert service.get_competitor("c7").available


def test_race_for_same_competitor_has_one_winner(service):
    team_a = _create(service)
    team_b = _create(service, "user-b", "Team Bravo", TEAM_B)
    barrier = threading.Barrier(2)
    results = {}

    def buy(team: Team, outgoing_id: str) -> None:
        barrier.wait()
        results[team.team_id] = service.transfer(team.team_id, "c7", outgoing_id)

    threads = [
        threading.Thread(target=buy, args=(team_a, "c2")),
        threading.Thread(target=buy, args=(team_b, "c4")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    outcomes = list(results.values())
    winners = [r for r in outcomes if not isinstance(r, Rejected)]
    losers = [r for r in outcomes if isinstance(r, Rejected)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].kind in {"unavailable", "conflict"}
    assert service.get_competitor("c7").owner == winners[0].team_id


def test_power_up_activation_and_cancel(service):
    team = _create(service)
    active = service.activate_power_up(team.team_id, "wildcard")
    assert active.power_ups.active == "wildcard"
    assert service.activate_power_up(team.team_id, "wildcard").version == active.version

    other = service.activate_power_up(team.team_id, "bench_boost")
    assert other.reason is Reason.ANOTHER_POWER_UP_ACTIVE

    cancelled = service.cancel_power_up(team.team_id)
    assert cancelled.power_ups.active is None
    statuses = {s.name: s.state for s in service.power_up_status(team.team_id)}
    assert statuses["wildcard"] == "unused"


def test_close_period_scores_and_reopens_window(service, clock):
    team = _create(service)
    service.activate_power_up(team.team_id, "triple_captain")
    clock.now = AFTER_GAMEWEEK_1
    assert service.get_window_status().reason == "Awaiting results for gameweek 1"

    stats = {"c1": {"goals": 1, "played": True}, "l1": {"played": True}, "ghost": {"played": True}}
    results = service.close_period(stats)

    assert results == {team.team_id: 15.0}
    assert not service.get_window_status().locked
    settled = service.get_team(team.team_id)
    assert settled.points == 15.0
    assert settled.power_ups.used["triple_captain"] is True
    c1 = service.get_competitor("c1")
    assert c1.season_stats.appearances == 1
    assert c1.season_stats.total_points == 5.0
    record = service.get_period(1)
    assert record.results == results
    assert len(record.scores[0]["players"]) == 8


def test_close_period_twice_does_not_double_count(service, clock):
    team = _create(service)
    clock.now = AFTER_GAMEWEEK_1
    first = service.close_period({"r1": {"goals": 1, "played": True}})
    again = service.close_period({"r1": {"goals": 3, "played": True}}, period=1)
    assert first == again
    assert service.get_team(team.team_id).points == 4.0


def test_close_period_rejects_unfinished_and_out_of_order(service, clock):
    clock.now = DURING_GAMEWEEK_1
    assert service.close_period({}).reason is Reason.PERIOD_NOT_FINISHED
    clock.now = AFTER_GAMEWEEK_1
    assert service.close_period({}, period=2).reason is Reason.PERIOD_OUT_OF_ORDER


def test_close_period_rejects_bad_stats(service, clock):
    clock.now = AFTER_GAMEWEEK_1
    result = service.close_period({"c1": {"goals": -2, "played": True}})
    assert result.reason is Reason.STATS_INVALID


def test_ranking_pages(service, clock):
    _create(service)
    clock.advance(minutes=5)
    _create(service, "user-b", "Team Bravo", TEAM_B)
    first_page = service.get_ranking(limit=1, page=1)
    second_page = service.get_ranking(limit=1, page=2)
    assert [s.name for s in first_page] == ["Team Alpha"]
    assert [(s.rank, s.name) for s in second_page] == [(2, "Team Bravo")]


def test_ranking_ties_on_creation_time_keep_creation_order(tmp_path: Path):
    for attempt in range(5):
        frozen = FakeClock(BEFORE_FIRST_LOCK)
        league = make_service(tmp_path / f"league-{attempt}", frozen)
        alpha = _create(league)
        bravo = _create(league, "user-b", "Team Bravo", TEAM_B)
        assert alpha.created_at == bravo.created_at
        assert [s.name for s in league.get_ranking()] == ["Team Alpha", "Team Bravo"]


def test_bad_ranking_queries_are_rejected(service):
    _create(service)
    for result in (service.get_ranking("goals"), service.get_ranking(page=0), service.get_ranking(limit=0)):
        assert isinstance(result, Rejected), result
        assert result.reason is Reason.INVALID_QUERY
        assert result.kind == "validation"


def test_market_search_club_and_pages(service):
    anchors = service.list_market(search="  aNcHoR ", sort_by="price")
    assert [c.competitor_id for c in anchors] == ["c7", "c1", "c2", "c3", "c5", "c4", "c6"]

    second_page = service.list_market(search="anchor", sort_by="price", limit=3, page=2)
    assert [c.competitor_id for c in second_page] == ["c3", "c5", "c4"]
    assert service.list_market(search="anchor", limit=3, page=4) == []

    assert len(service.list_market(club="fc")) == 19
    assert service.list_market(club="United") == []


def test_bad_market_queries_are_rejected(service):
    for result in (
        service.list_market(sort_by="overall"),
        service.list_market(search="a"),
        service.list_market(search="   "),
        service.list_market(limit=5, page=0),
    ):
        assert isinstance(result, Rejected), result
        assert result.reason is Reason.INVALID_QUERY
        assert result.kind == "validation"


def test_exhausted_retries_return_conflict(tmp_path: Path, clock, monkeypatch):
    from pyfantasy.errors import StaleWriteError

    service = make_service(tmp_path, clock, commit_retries=1)
    team = _create(service)
    calls = []

    def always_stale(**kwargs):
        calls.append(kwargs)
        raise StaleWriteError("lost")

    monkeypatch.setattr(service.store, "commit", always_stale)
    result = service.transfer(team.team_id, "c7", "c2")
    assert result.kind == "conflict"
    assert result.reason is Reason.CONCURRENT_UPDATE
    assert len(calls) == 2
