from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from pyfantasy.models import Team, TransferCounters
from pyfantasy.powerups import PowerUpStatus
from pyfantasy.roster import TransferResult


class CreateTeamRequest(BaseModel):
    participant_id: str = Field(..., min_length=1)
    name: str
    starters: List[str]
    bench: List[str]
    captain: str
    vice_captain: str


class TransferRequest(BaseModel):
    incoming_id: str = Field(..., min_length=1)
    outgoing_id: str | None = None


class PowerUpRequest(BaseModel):
    name: str


class TeamResponse(BaseModel):
    team_id: str
    participant_id: str
    name: str
    starters: List[str]
    bench: List[str]
    captain: str
    vice_captain: str
    budget: int
    points: float
    period_points: float
    transfers: TransferCounters
    power_ups_used: Dict[str, bool]
    active_power_up: str | None
    created_at: datetime

    @classmethod
    def from_team(cls, team: Team) -> "TeamResponse":
        return cls(
            team_id=team.team_id,
            participant_id=team.participant_id,
            name=team.name,
            starters=list(team.starters),
            bench=list(team.bench),
            captain=team.captain,
            vice_captain=team.vice_captain,
            budget=team.budget,
            points=team.points,
            period_points=team.period_points,
            transfers=team.transfers,
            power_ups_used=dict(team.power_ups.used),
            active_power_up=team.power_ups.active,
            created_at=team.created_at,
        )


class TransferResponse(BaseModel):
    team_id: str
    incoming_id: str
    outgoing_id: str
    price_delta: int
    penalty: int
    budget: int
    transfers: TransferCounters

    @classmethod
    def from_result(cls, result: TransferResult) -> "TransferResponse":
        return cls(
            team_id=result.team_id,
            incoming_id=result.incoming_id,
            outgoing_id=result.outgoing_id,
            price_delta=result.price_delta,
            penalty=result.penalty,
            budget=result.budget,
            transfers=result.transfers,
        )


class PowerUpStatusResponse(BaseModel):
    name: str
    label: str
    description: str
    state: str
    can_activate: bool
    cancellable: bool

    @classmethod
    def from_status(cls, status: PowerUpStatus) -> "PowerUpStatusResponse":
        return cls(
            name=status.name,
            label=status.label,
            description=status.description,
            state=status.state,
            can_activate=status.can_activate,
            cancellable=status.cancellable,
        )
