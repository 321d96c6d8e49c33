"""Leaderboard ranking."""

from .leaderboard import Metric, TeamSummary, rank_teams

__all__ = ["Metric", "TeamSummary", "rank_teams"]
