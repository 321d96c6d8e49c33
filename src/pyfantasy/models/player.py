"""Competitor models shared by the roster, scoring and persistence layers."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


Position = Literal["GK", "CDM", "LW", "RW"]


class RawStats(BaseModel):
    """Finalized statistics for one competitor over one scoring period."""

    goals: int = Field(default=0, ge=0)
    assists: int = Field(default=0, ge=0)
    saves: int = Field(default=0, ge=0)
    clean_sheet: bool = False
    own_goals: int = Field(default=0, ge=0)
    played: bool = False

    model_config = ConfigDict(frozen=True)


class SeasonStats(BaseModel):
    appearances: int = 0
    goals: int = 0
    assists: int = 0
    saves: int = 0
    clean_sheets: int = 0
    own_goals: int = 0
    total_points: float = 0.0

    model_config = ConfigDict(frozen=True)

    def accumulate(self, stats: RawStats, points: float) -> "SeasonStats":
        if not stats.played:
            return self
        return SeasonStats(
            appearances=self.appearances + 1,
            goals=self.goals + stats.goals,
            assists=self.assists + stats.assists,
            saves=self.saves + stats.saves,
            clean_sheets=self.clean_sheets + int(stats.clean_sheet),
            own_goals=self.own_goals + stats.own_goals,
            total_points=round(self.total_points + points, 1),
        )


class Competitor(BaseModel):
    """A draftable player. ``owner`` is the owning team id, or None when on the market."""

    competitor_id: str = Field(..., min_length=1)
    name: str
    position: Position
    price: int = Field(..., ge=0)
    club: str = ""
    period_stats: RawStats = Field(default_factory=RawStats)
    season_stats: SeasonStats = Field(default_factory=SeasonStats)
    owner: Optional[str] = None
    version: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def available(self) -> bool:
        return self.owner is None
