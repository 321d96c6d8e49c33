"""Configuration helpers for league rules and runtime settings."""

from .rules import (
    POSITIONS,
    UNLIMITED_TRANSFERS,
    LeagueRules,
    ScoringWeights,
    get_rules,
    iter_rules,
)
from .settings import Settings

__all__ = [
    "POSITIONS",
    "UNLIMITED_TRANSFERS",
    "LeagueRules",
    "ScoringWeights",
    "Settings",
    "get_rules",
    "iter_rules",
]
