"""Competition calendar and the transfer window gate.

The gate is a pure function of an injected ``now`` and a fixed calendar, so
lock behaviour can be tested without waiting for real time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Tuple

from pyfantasy.errors import Reason, WindowLockedError


Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Gameweek:
    number: int
    deadline: datetime
    ends_at: datetime


@dataclass(frozen=True)
class WindowStatus:
    locked: bool
    reason: Optional[str]
    current_period: int
    next_transition: Optional[datetime]


@dataclass(frozen=True)
class CompetitionCalendar:
    gameweeks: Tuple[Gameweek, ...]

    def __post_init__(self) -> None:
        if not self.gameweeks:
            raise ValueError("calendar needs at least one gameweek")
        numbers = [gw.number for gw in self.gameweeks]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError("gameweeks must be numbered 1..n in order")
        for gw in self.gameweeks:
            if gw.ends_at <= gw.deadline:
                raise ValueError(f"gameweek {gw.number} ends before its deadline")

    @classmethod
    def from_gameweeks(cls, gameweeks: Iterable[Gameweek]) -> "CompetitionCalendar":
        return cls(tuple(sorted(gameweeks, key=lambda gw: gw.number)))

    @classmethod
    def weekly(
        cls,
        first_lock: datetime,
        lock_duration: timedelta = timedelta(hours=7),
        periods: int = 38,
    ) -> "CompetitionCalendar":
        """One lock per week starting at ``first_lock`` (default: matchday 11:00-18:00)."""

        return cls(
            tuple(
                Gameweek(
                    number=n,
                    deadline=first_lock + timedelta(weeks=n - 1),
                    ends_at=first_lock + timedelta(weeks=n - 1) + lock_duration,
                )
                for n in range(1, periods + 1)
            )
        )

    def gameweek(self, number: int) -> Gameweek:
        if not 1 <= number <= len(self.gameweeks):
            raise KeyError(f"No gameweek {number} in calendar")
        return self.gameweeks[number - 1]

    @property
    def last(self) -> Gameweek:
        return self.gameweeks[-1]


def window_status(
    calendar: CompetitionCalendar,
    now: datetime,
    closed_through: Optional[int] = None,
) -> WindowStatus:
    """Decide whether rosters may change at ``now``.

    ``closed_through`` is the last period whose scores are settled; when it
    is given, the window stays locked after a gameweek ends until that
    gameweek has been scored.
    """

    for gw in calendar.gameweeks:
        if now < gw.deadline:
            previous = gw.number - 1
            if closed_through is not None and previous >= 1 and closed_through < previous:
                return WindowStatus(
                    locked=True,
                    reason=f"Awaiting results for gameweek {previous}",
                    current_period=previous,
                    next_transition=None,
                )
            return WindowStatus(locked=False, reason=None, current_period=gw.number, next_transition=gw.deadline)
        if now < gw.ends_at:
            return WindowStatus(
                locked=True,
                reason=f"Gameweek {gw.number} in progress",
                current_period=gw.number,
                next_transition=gw.ends_at,
            )

    last = calendar.last
    if closed_through is not None and closed_through < last.number:
        return WindowStatus(
            locked=True,
            reason=f"Awaiting results for gameweek {last.number}",
            current_period=last.number,
            next_transition=None,
        )
    return WindowStatus(locked=True, reason="Season complete", current_period=last.number, next_transition=None)


class WindowGate:
    """Calendar plus clock; every roster mutation asks it first."""

    def __init__(self, calendar: CompetitionCalendar, clock: Clock = system_clock) -> None:
        self.calendar = calendar
        self.clock = clock

    def now(self) -> datetime:
        return self.clock()

    def status(self, closed_through: Optional[int] = None) -> WindowStatus:
        return window_status(self.calendar, self.clock(), closed_through)

    def require_open(self, closed_through: Optional[int] = None) -> WindowStatus:
        status = self.status(closed_through)
        if status.locked:
            raise WindowLockedError(
                Reason.WINDOW_LOCKED,
                status.reason or "Game is locked",
                current_period=status.current_period,
                unlock_time=status.next_transition.isoformat() if status.next_transition else None,
            )
        return status

    def has_finished(self, period: int) -> bool:
        return self.clock() >= self.calendar.gameweek(period).ends_at
