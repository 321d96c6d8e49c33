"""REST API for the fantasy league."""

from __future__ import annotations

from typing import Any, List, Literal

from fastapi import FastAPI, HTTPException, Query

from pyfantasy.api.schemas import (
    ClosePeriodRequest,
    ClosePeriodResponse,
    CompetitorResponse,
    CreateTeamRequest,
    LeaderboardEntry,
    LeaderboardResponse,
    PeriodResponse,
    PowerUpRequest,
    PowerUpStatusResponse,
    TeamResponse,
    TransferRequest,
    TransferResponse,
    WindowResponse,
)
from pyfantasy.errors import Rejected
from pyfantasy.models import Position
from pyfantasy.service import LeagueService


STATUS_BY_KIND = {
    "validation": 400,
    "not_found": 404,
    "unavailable": 409,
    "conflict": 409,
    "window_locked": 423,
}


def _unwrap(result: Any) -> Any:
    if isinstance(result, Rejected):
        raise HTTPException(status_code=STATUS_BY_KIND.get(result.kind, 400), detail=result.to_dict())
    return result


def create_app(service: LeagueService | None = None) -> FastAPI:
    app = FastAPI(title="pyfantasy league")
    app.state.league = service or LeagueService.from_settings()

    def league() -> LeagueService:
        return app.state.league

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/window", response_model=WindowResponse)
    def window() -> WindowResponse:
        return WindowResponse.from_status(league().get_window_status())

    @app.get("/competitors", response_model=List[CompetitorResponse])
    def list_competitors(
        position: Position | None = None,
        available: bool | None = None,
        club: str | None = None,
        search: str | None = None,
        min_price: int | None = Query(default=None, ge=0),
        max_price: int | None = Query(default=None, ge=0),
        sort_by: Literal["price", "name", "position", "points"] = "price",
        sort_direction: Literal["asc", "desc"] = "desc",
        limit: int | None = Query(default=None, ge=1, le=500),
        page: int = Query(default=1, ge=1),
    ) -> List[CompetitorResponse]:
        competitors = _unwrap(
            league().list_market(
                position=position,
                available=available,
                club=club,
                search=search,
                min_price=min_price,
                max_price=max_price,
                sort_by=sort_by,
                descending=sort_direction == "desc",
                limit=limit,
                page=page,
            )
        )
        return [CompetitorResponse.from_competitor(c) for c in competitors]

    @app.get("/competitors/{competitor_id}", response_model=CompetitorResponse)
    def get_competitor(competitor_id: str) -> CompetitorResponse:
        return CompetitorResponse.from_competitor(_unwrap(league().get_competitor(competitor_id)))

    @app.post("/teams", response_model=TeamResponse, status_code=201)
    def create_team(request: CreateTeamRequest) -> TeamResponse:
        team = _unwrap(
            league().create_team(
                request.participant_id,
                request.name,
                request.starters,
                request.bench,
                request.captain,
                request.vice_captain,
            )
        )
        return TeamResponse.from_team(team)

    @app.get("/teams/{team_id}", response_model=TeamResponse)
    def get_team(team_id: str) -> TeamResponse:
        return TeamResponse.from_team(_unwrap(league().get_team(team_id)))

    @app.post("/teams/{team_id}/transfers", response_model=TransferResponse)
    def transfer(team_id: str, request: TransferRequest) -> TransferResponse:
        result = _unwrap(league().transfer(team_id, request.incoming_id, request.outgoing_id))
        return TransferResponse.from_result(result)

    @app.get("/teams/{team_id}/power-ups", response_model=List[PowerUpStatusResponse])
    def power_up_status(team_id: str) -> List[PowerUpStatusResponse]:
        statuses = _unwrap(league().power_up_status(team_id))
        return [PowerUpStatusResponse.from_status(status) for status in statuses]

    @app.post("/teams/{team_id}/power-ups", response_model=TeamResponse)
    def activate_power_up(team_id: str, request: PowerUpRequest) -> TeamResponse:
        return TeamResponse.from_team(_unwrap(league().activate_power_up(team_id, request.name)))

    @app.post("/teams/{team_id}/power-ups/cancel", response_model=TeamResponse)
    def cancel_power_up(team_id: str) -> TeamResponse:
        return TeamResponse.from_team(_unwrap(league().cancel_power_up(team_id)))

    @app.post("/periods/close", response_model=ClosePeriodResponse)
    def close_period(request: ClosePeriodRequest) -> ClosePeriodResponse:
        service = league()
        results = _unwrap(service.close_period(request.stats, request.period))
        number = request.period if request.period is not None else service.store.last_closed_period()
        return ClosePeriodResponse(period=number, results=results)

    @app.get("/periods/{number}", response_model=PeriodResponse)
    def get_period(number: int) -> PeriodResponse:
        return PeriodResponse.from_record(_unwrap(league().get_period(number)))

    @app.get("/leaderboard", response_model=LeaderboardResponse)
    def leaderboard(
        metric: Literal["cumulative", "period"] = "cumulative",
        limit: int | None = Query(default=None, ge=1, le=500),
        page: int = Query(default=1, ge=1),
    ) -> LeaderboardResponse:
        summaries = _unwrap(league().get_ranking(metric, limit=limit, page=page))
        return LeaderboardResponse(
            metric=metric,
            page=page,
            entries=[LeaderboardEntry.from_summary(summary) for summary in summaries],
        )

    return app


__all__ = ["STATUS_BY_KIND", "create_app"]
