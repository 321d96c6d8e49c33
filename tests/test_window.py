from datetime import timedelta

import pytest

from pyfantasy.errors import Reason, WindowLockedError
from pyfantasy.schedule import CompetitionCalendar, Gameweek, WindowGate, window_status

from tests.samples import AFTER_GAMEWEEK_1, BEFORE_FIRST_LOCK, DURING_GAMEWEEK_1, FIRST_LOCK, FakeClock


CALENDAR = CompetitionCalendar.weekly(FIRST_LOCK, timedelta(hours=7), periods=3)


def test_weekly_calendar_spaces_gameweeks_one_week_apart():
    assert len(CALENDAR.gameweeks) == 3
    assert CALENDAR.gameweek(2).deadline == FIRST_LOCK + timedelta(weeks=1)
    assert CALENDAR.gameweek(1).ends_at == FIRST_LOCK + timedelta(hours=7)
    with pytest.raises(KeyError):
        CALENDAR.gameweek(4)


def test_calendar_rejects_gaps_in_numbering():
    with pytest.raises(ValueError):
        CompetitionCalendar.from_gameweeks(
            [
                Gameweek(1, FIRST_LOCK, FIRST_LOCK + timedelta(hours=7)),
                Gameweek(3, FIRST_LOCK + timedelta(weeks=1), FIRST_LOCK + timedelta(weeks=1, hours=7)),
            ]
        )


def test_open_before_first_deadline():
    status = window_status(CALENDAR, BEFORE_FIRST_LOCK, closed_through=0)
    assert not status.locked
    assert status.current_period == 1
    assert status.next_transition == FIRST_LOCK


def test_locked_while_gameweek_in_progress():
    status = window_status(CALENDAR, DURING_GAMEWEEK_1)
    assert status.locked
    assert status.reason == "Gameweek 1 in progress"
    assert status.next_transition == FIRST_LOCK + timedelta(hours=7)


def test_stays_locked_until_previous_period_scored():
    awaiting = window_status(CALENDAR, AFTER_GAMEWEEK_1, closed_through=0)
    assert awaiting.locked
    assert awaiting.reason == "Awaiting results for gameweek 1"

    reopened = window_status(CALENDAR, AFTER_GAMEWEEK_1, closed_through=1)
    assert not reopened.locked
    assert reopened.current_period == 2


def test_without_closed_marker_only_calendar_applies():
    assert not window_status(CALENDAR, AFTER_GAMEWEEK_1).locked


def test_season_complete_after_last_gameweek():
    after = FIRST_LOCK + timedelta(weeks=5)
    assert window_status(CALENDAR, after, closed_through=2).reason == "Awaiting results for gameweek 3"
    assert window_status(CALENDAR, after, closed_through=3).reason == "Season complete"


def test_gate_require_open_raises_with_unlock_time():
    clock = FakeClock(DURING_GAMEWEEK_1)
    gate = WindowGate(CALENDAR, clock)
    with pytest.raises(WindowLockedError) as excinfo:
        gate.require_open(0)
    assert excinfo.value.reason is Reason.WINDOW_LOCKED
    assert excinfo.value.detail["unlock_time"] == (FIRST_LOCK + timedelta(hours=7)).isoformat()

    assert not gate.has_finished(1)
    clock.advance(hours=7)
    assert gate.has_finished(1)
