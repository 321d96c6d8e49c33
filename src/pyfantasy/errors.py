"""Error taxonomy for roster, power-up and scoring operations.

Every failure inside the core is a :class:`LeagueError` subclass carrying a
:class:`Reason` and a ``detail`` mapping with the offending ids or amounts.
The service façade converts them into :class:`Rejected` values so callers
branch on the result instead of catching exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Reason(str, Enum):
    DUPLICATE_PLAYER = "DuplicatePlayer"
    PLAYER_UNAVAILABLE = "PlayerUnavailable"
    FORMATION_INVALID = "FormationInvalid"
    BENCH_INVALID = "BenchInvalid"
    CAPTAIN_INVALID = "CaptainInvalid"
    BUDGET_EXCEEDED = "BudgetExceeded"
    REPLACEMENT_REQUIRED = "ReplacementRequired"
    POSITION_MISMATCH = "PositionMismatch"
    PLAYER_NOT_IN_TEAM = "PlayerNotInTeam"
    NAME_INVALID = "NameInvalid"
    TEAM_EXISTS = "TeamExists"
    ALREADY_USED = "AlreadyUsed"
    ANOTHER_POWER_UP_ACTIVE = "AnotherPowerUpActive"
    PRECONDITION_NOT_MET = "PreconditionNotMet"
    NOT_CANCELLABLE = "NotCancellable"
    NO_ACTIVE_POWER_UP = "NoActivePowerUp"
    UNKNOWN_POWER_UP = "UnknownPowerUp"
    PERIOD_NOT_FINISHED = "PeriodNotFinished"
    PERIOD_OUT_OF_ORDER = "PeriodOutOfOrder"
    STATS_INVALID = "StatsInvalid"
    WINDOW_LOCKED = "WindowLocked"
    CONCURRENT_UPDATE = "ConcurrentUpdate"
    NOT_FOUND = "NotFound"
    INVALID_QUERY = "InvalidQuery"


class LeagueError(Exception):
    kind = "league_error"

    def __init__(self, reason: Reason, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.detail: Dict[str, Any] = detail

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "reason": self.reason.value,
            "message": self.message,
            "detail": self.detail,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason.value}: {self.message})"


class ValidationError(LeagueError):
    """Composition, budget, captain or power-up rule violated."""

    kind = "validation"


class UnavailableError(LeagueError):
    """Competitor already owned, or power-up already used."""

    kind = "unavailable"


class ConflictError(LeagueError):
    """A concurrent writer won the race; refresh and retry."""

    kind = "conflict"


class WindowLockedError(LeagueError):
    kind = "window_locked"


class NotFoundError(LeagueError):
    kind = "not_found"


class StaleWriteError(Exception):
    """Raised by the store when a compare-and-swap commit loses to another writer."""


@dataclass(frozen=True)
class Rejected:
    error: LeagueError

    ok = False

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def reason(self) -> Reason:
        return self.error.reason

    @property
    def message(self) -> str:
        return self.error.message

    def to_dict(self) -> Dict[str, Any]:
        return self.error.to_dict()
