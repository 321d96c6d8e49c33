"""Pydantic models for API I/O."""

from .league import (
    ClosePeriodRequest,
    ClosePeriodResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    PeriodResponse,
    WindowResponse,
)
from .market import CompetitorResponse
from .team import (
    CreateTeamRequest,
    PowerUpRequest,
    PowerUpStatusResponse,
    TeamResponse,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "ClosePeriodRequest",
    "ClosePeriodResponse",
    "CompetitorResponse",
    "CreateTeamRequest",
    "LeaderboardEntry",
    "LeaderboardResponse",
    "PeriodResponse",
    "PowerUpRequest",
    "PowerUpStatusResponse",
    "TeamResponse",
    "TransferRequest",
    "TransferResponse",
    "WindowResponse",
]
