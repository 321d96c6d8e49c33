"""Scoring engine for closed periods."""

from .engine import (
    PlayerScore,
    TeamScore,
    leadership_multipliers,
    round_points,
    score_competitor,
    score_team,
    score_teams,
    settle_team,
)

__all__ = [
    "PlayerScore",
    "TeamScore",
    "leadership_multipliers",
    "round_points",
    "score_competitor",
    "score_team",
    "score_teams",
    "settle_team",
]
