from __future__ import annotations

from pydantic import BaseModel

from pyfantasy.models import Competitor, RawStats, SeasonStats


class CompetitorResponse(BaseModel):
    competitor_id: str
    name: str
    position: str
    club: str
    price: int
    available: bool
    owner: str | None
    period_stats: RawStats
    season_stats: SeasonStats

    @classmethod
    def from_competitor(cls, competitor: Competitor) -> "CompetitorResponse":
        return cls(
            competitor_id=competitor.competitor_id,
            name=competitor.name,
            position=competitor.position,
            club=competitor.club,
            price=competitor.price,
            available=competitor.available,
            owner=competitor.owner,
            period_stats=competitor.period_stats,
            season_stats=competitor.season_stats,
        )
