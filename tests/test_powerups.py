import pytest

from pyfantasy.config import UNLIMITED_TRANSFERS
from pyfantasy.errors import Reason, UnavailableError, ValidationError
from pyfantasy.models import PowerUpState, TransferCounters
from pyfantasy.powerups import ACTIVE, UNUSED, USED, activate, cancel, complete_period, describe

from tests.samples import RULES, sample_team


def test_wildcard_lifts_transfer_limits():
    team = sample_team(transfers=TransferCounters(free=0, cost=4, made=2))
    active = activate(team, "wildcard", RULES)
    assert active.power_ups.active == "wildcard"
    assert active.transfers.free == UNLIMITED_TRANSFERS
    assert active.transfers.cost == 0
    assert active.power_ups.saved_transfers == team.transfers


def test_activating_same_power_up_twice_is_noop():
    active = activate(sample_team(), "bench_boost", RULES)
    assert activate(active, "bench_boost", RULES) is active


def test_only_one_power_up_per_period():
    active = activate(sample_team(), "triple_captain", RULES)
    with pytest.raises(ValidationError) as excinfo:
        activate(active, "wildcard", RULES)
    assert excinfo.value.reason is Reason.ANOTHER_POWER_UP_ACTIVE


def test_used_power_up_cannot_be_reactivated():
    used = complete_period(activate(sample_team(), "free_hit", RULES))
    assert used.power_ups.used["free_hit"] is True
    assert used.power_ups.active is None
    with pytest.raises(UnavailableError) as excinfo:
        activate(used, "free_hit", RULES)
    assert excinfo.value.reason is Reason.ALREADY_USED


def test_unknown_power_up_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        activate(sample_team(), "double_bench", RULES)
    assert excinfo.value.reason is Reason.UNKNOWN_POWER_UP


def test_bench_boost_requires_full_bench():
    team = sample_team(bench=("g2", "c3"))
    with pytest.raises(ValidationError) as excinfo:
        activate(team, "bench_boost", RULES)
    assert excinfo.value.reason is Reason.PRECONDITION_NOT_MET


def test_cancel_restores_counters_but_keeps_transfers_made():
    team = sample_team(transfers=TransferCounters(free=1, cost=0, made=2))
    active = activate(team, "wildcard", RULES)
    spent = active.model_copy(update={"transfers": active.transfers.model_copy(update={"free": 995, "made": 6})})

    cancelled = cancel(spent)

    assert cancelled.power_ups.active is None
    assert cancelled.power_ups.used["wildcard"] is False
    assert cancelled.transfers == TransferCounters(free=1, cost=0, made=6)


def test_scoring_power_ups_cannot_be_cancelled():
    active = activate(sample_team(), "triple_captain", RULES)
    with pytest.raises(ValidationError) as excinfo:
        cancel(active)
    assert excinfo.value.reason is Reason.NOT_CANCELLABLE


def test_cancel_without_active_power_up():
    with pytest.raises(ValidationError) as excinfo:
        cancel(sample_team())
    assert excinfo.value.reason is Reason.NO_ACTIVE_POWER_UP


def test_describe_reports_states():
    team = sample_team(
        power_ups=PowerUpState(
            used={"wildcard": True, "free_hit": False, "triple_captain": False, "bench_boost": False},
            active="bench_boost",
        )
    )
    statuses = {status.name: status for status in describe(team)}
    assert statuses["wildcard"].state == USED
    assert statuses["bench_boost"].state == ACTIVE
    assert statuses["free_hit"].state == UNUSED
    assert not statuses["free_hit"].can_activate
    assert not statuses["bench_boost"].cancellable
