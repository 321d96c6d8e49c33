"""Power-up (chip) lifecycle.

Each power-up moves through ``unused -> active -> used``. Only one can be
active per period. Transfer-relaxing power-ups can be cancelled while active,
which returns them to ``unused`` and restores the transfer counters captured
at activation. The scoring-time power-ups cannot be cancelled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from pyfantasy.config import UNLIMITED_TRANSFERS, LeagueRules
from pyfantasy.errors import Reason, UnavailableError, ValidationError
from pyfantasy.models import POWER_UP_NAMES, Team, TransferCounters


logger = logging.getLogger(__name__)

UNUSED = "unused"
ACTIVE = "active"
USED = "used"


@dataclass(frozen=True)
class PowerUpSpec:
    name: str
    label: str
    description: str
    relaxes_transfers: bool
    precondition: Optional[Callable[[Team, LeagueRules], Optional[str]]] = None

    @property
    def cancellable(self) -> bool:
        return self.relaxes_transfers


@dataclass(frozen=True)
class PowerUpStatus:
    name: str
    label: str
    description: str
    state: str
    can_activate: bool
    cancellable: bool


def _requires_captain(team: Team, rules: LeagueRules) -> Optional[str]:
    if not team.captain or team.captain not in team.squad:
        return "You must have a captain selected to use Triple Captain."
    return None


def _requires_full_bench(team: Team, rules: LeagueRules) -> Optional[str]:
    if len([cid for cid in team.bench if cid]) != rules.bench_size:
        return f"You must have a full bench ({rules.bench_size} players) to use Bench Boost."
    return None


POWER_UPS: Dict[str, PowerUpSpec] = {
    "wildcard": PowerUpSpec(
        name="wildcard",
        label="Wildcard",
        description="Make unlimited transfers for one gameweek with no point deductions.",
        relaxes_transfers=True,
    ),
    "free_hit": PowerUpSpec(
        name="free_hit",
        label="Free Hit",
        description="Make unlimited transfers for one gameweek with no point deductions.",
        relaxes_transfers=True,
    ),
    "triple_captain": PowerUpSpec(
        name="triple_captain",
        label="Triple Captain",
        description="Your captain scores triple points instead of double for one gameweek.",
        relaxes_transfers=False,
        precondition=_requires_captain,
    ),
    "bench_boost": PowerUpSpec(
        name="bench_boost",
        label="Bench Boost",
        description="Points from your bench players are added to your total for one gameweek.",
        relaxes_transfers=False,
        precondition=_requires_full_bench,
    ),
}


def _spec(name: str) -> PowerUpSpec:
    try:
        return POWER_UPS[name]
    except KeyError:
        raise ValidationError(
            Reason.UNKNOWN_POWER_UP,
            f"Unknown power-up {name!r}.",
            power_up=name,
            known=list(POWER_UP_NAMES),
        ) from None


def state_of(team: Team, name: str) -> str:
    if team.power_ups.active == name:
        return ACTIVE
    if team.power_ups.used.get(name, False):
        return USED
    return UNUSED


def is_active(team: Team, name: str) -> bool:
    return team.power_ups.active == name


def activate(team: Team, name: str, rules: LeagueRules) -> Team:
    """Return ``team`` with ``name`` active, raising if the transition is not allowed.

    Re-activating the power-up that is already active is a no-op.
    """

    spec = _spec(name)
    power_ups = team.power_ups
    if power_ups.used.get(name, False):
        raise UnavailableError(
            Reason.ALREADY_USED,
            f"{spec.label} has already been used this season.",
            power_up=name,
        )
    if power_ups.active == name:
        return team
    if power_ups.active is not None:
        raise ValidationError(
            Reason.ANOTHER_POWER_UP_ACTIVE,
            f"{POWER_UPS[power_ups.active].label} is already active this gameweek.",
            power_up=name,
            active=power_ups.active,
        )
    if spec.precondition is not None:
        problem = spec.precondition(team, rules)
        if problem:
            raise ValidationError(Reason.PRECONDITION_NOT_MET, problem, power_up=name)

    update: Dict[str, object] = {}
    saved: Optional[TransferCounters] = None
    if spec.relaxes_transfers:
        saved = team.transfers
        update["transfers"] = team.transfers.model_copy(update={"free": UNLIMITED_TRANSFERS, "cost": 0})
    update["power_ups"] = power_ups.model_copy(update={"active": name, "saved_transfers": saved})
    logger.info("Power-up %s activated for team %s", name, team.team_id)
    return team.model_copy(update=update)


def cancel(team: Team) -> Team:
    """Revert the active transfer-relaxing power-up to unused."""

    active = team.power_ups.active
    if active is None:
        raise ValidationError(Reason.NO_ACTIVE_POWER_UP, "No power-up is currently active.")
    spec = POWER_UPS[active]
    if not spec.cancellable:
        raise ValidationError(
            Reason.NOT_CANCELLABLE,
            f"{spec.label} cannot be cancelled once activated.",
            power_up=active,
        )

    saved = team.power_ups.saved_transfers or team.transfers
    # Transfers made while active still count towards the lifetime total.
    restored = saved.model_copy(update={"made": team.transfers.made})
    logger.info("Power-up %s cancelled for team %s", active, team.team_id)
    return team.model_copy(
        update={
            "transfers": restored,
            "power_ups": team.power_ups.model_copy(update={"active": None, "saved_transfers": None}),
        }
    )


def complete_period(team: Team) -> Team:
    """Period boundary: the active power-up (if any) becomes permanently used."""

    active = team.power_ups.active
    if active is None:
        return team
    used = dict(team.power_ups.used)
    used[active] = True
    return team.model_copy(
        update={"power_ups": team.power_ups.model_copy(update={"used": used, "active": None, "saved_transfers": None})}
    )


def describe(team: Team) -> List[PowerUpStatus]:
    statuses = []
    for name in POWER_UP_NAMES:
        spec = POWER_UPS[name]
        state = state_of(team, name)
        statuses.append(
            PowerUpStatus(
                name=name,
                label=spec.label,
                description=spec.description,
                state=state,
                can_activate=state == UNUSED and team.power_ups.active in (None, name),
                cancellable=state == ACTIVE and spec.cancellable,
            )
        )
    return statuses
