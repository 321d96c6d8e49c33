import pytest

from pyfantasy.errors import Reason, UnavailableError, ValidationError
from pyfantasy.models import TransferCounters
from pyfantasy.roster import charge_transfer, plan_transfer, result_from_plan

from tests.samples import RULES, competitor_map, owned_squad, sample_team


def _plan(team, incoming_id, outgoing_id, **owners):
    pool = competitor_map(**owners)
    squad = owned_squad(team)
    outgoing = squad.get(outgoing_id, pool.get(outgoing_id)) if outgoing_id else None
    return plan_transfer(team, pool[incoming_id], outgoing, squad, RULES)


def test_first_transfer_uses_free_transfer():
    team = sample_team()
    plan = _plan(team, "c7", "c2")
    assert plan.penalty == 0
    assert plan.team.transfers == TransferCounters(free=0, cost=0, made=1)
    assert plan.team.budget == team.budget - 10
    assert "c7" in plan.team.starters and "c2" not in plan.team.squad
    assert plan.incoming.owner == team.team_id
    assert plan.outgoing.owner is None


def test_extra_transfer_costs_penalty_points():
    team = sample_team(transfers=TransferCounters(free=0, cost=0, made=3))
    plan = _plan(team, "c7", "c2")
    assert plan.penalty == 4
    assert plan.team.transfers == TransferCounters(free=0, cost=4, made=4)


def test_charge_transfer_accumulates_cost():
    counters, penalty = charge_transfer(TransferCounters(free=0, cost=4, made=2), RULES)
    assert penalty == RULES.transfer_penalty
    assert counters.cost == 8
    assert counters.free == 0


def test_selling_captain_hands_armband_to_incoming_player():
    team = sample_team()
    plan = _plan(team, "c7", "c1")
    assert plan.team.captain == "c7"


def test_bench_swap_across_defensive_positions():
    team = sample_team()
    plan = _plan(team, "c7", "g2")
    assert plan.team.bench == ("c7", "c3", "l2")


def test_starter_swap_across_positions_breaks_formation():
    team = sample_team()
    with pytest.raises(ValidationError) as excinfo:
        _plan(team, "g5", "c2")
    assert excinfo.value.reason is Reason.FORMATION_INVALID


def test_replacement_is_required():
    team = sample_team()
    with pytest.raises(ValidationError) as excinfo:
        _plan(team, "c7", None)
    assert excinfo.value.reason is Reason.REPLACEMENT_REQUIRED


def test_outgoing_must_belong_to_team():
    team = sample_team()
    with pytest.raises(ValidationError) as excinfo:
        _plan(team, "c7", "c4")
    assert excinfo.value.reason is Reason.PLAYER_NOT_IN_TEAM


def test_incoming_already_in_team_is_duplicate():
    team = sample_team()
    with pytest.raises(ValidationError) as excinfo:
        _plan(team, "c3", "c2")
    assert excinfo.value.reason is Reason.DUPLICATE_PLAYER


def test_incoming_owned_elsewhere_is_unavailable():
    team = sample_team()
    with pytest.raises(UnavailableError):
        _plan(team, "c7", "c2", c7="team-b")


def test_position_group_must_match():
    team = sample_team()
    with pytest.raises(ValidationError) as excinfo:
        _plan(team, "r2", "c2")
    assert excinfo.value.reason is Reason.POSITION_MISMATCH


def test_price_delta_cannot_exceed_budget():
    team = sample_team()
    with pytest.raises(ValidationError) as excinfo:
        _plan(team, "l4", "l1")
    assert excinfo.value.reason is Reason.BUDGET_EXCEEDED
    assert excinfo.value.detail == {"cost": 2_780, "budget": team.budget}


def test_result_from_plan_reports_new_budget():
    team = sample_team()
    result = result_from_plan(_plan(team, "l3", "l1"))
    assert result.price_delta == 80
    assert result.budget == team.budget - 80
    assert result.outgoing_id == "l1"
