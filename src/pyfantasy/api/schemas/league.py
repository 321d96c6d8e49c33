from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from pyfantasy.models import RawStats
from pyfantasy.persistence import PeriodRecord
from pyfantasy.ranking import TeamSummary
from pyfantasy.schedule import WindowStatus


class ClosePeriodRequest(BaseModel):
    period: int | None = Field(default=None, ge=1)
    stats: Dict[str, RawStats] = Field(default_factory=dict)


class ClosePeriodResponse(BaseModel):
    period: int
    results: Dict[str, float]


class PeriodResponse(BaseModel):
    number: int
    closed_at: datetime
    results: Dict[str, float]
    scores: List[dict]

    @classmethod
    def from_record(cls, record: PeriodRecord) -> "PeriodResponse":
        return cls(
            number=record.number,
            closed_at=record.closed_at,
            results=dict(record.results),
            scores=list(record.scores),
        )


class WindowResponse(BaseModel):
    locked: bool
    reason: str | None
    current_period: int
    next_transition: datetime | None

    @classmethod
    def from_status(cls, status: WindowStatus) -> "WindowResponse":
        return cls(
            locked=status.locked,
            reason=status.reason,
            current_period=status.current_period,
            next_transition=status.next_transition,
        )


class LeaderboardEntry(BaseModel):
    rank: int
    team_id: str
    participant_id: str
    name: str
    points: float
    period_points: float
    team_value: int

    @classmethod
    def from_summary(cls, summary: TeamSummary) -> "LeaderboardEntry":
        return cls(
            rank=summary.rank,
            team_id=summary.team_id,
            participant_id=summary.participant_id,
            name=summary.name,
            points=summary.points,
            period_points=summary.period_points,
            team_value=summary.team_value,
        )


class LeaderboardResponse(BaseModel):
    metric: str
    page: int
    entries: List[LeaderboardEntry]
