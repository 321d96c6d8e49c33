from .player import Competitor, Position, RawStats, SeasonStats
from .team import POWER_UP_NAMES, PowerUpName, PowerUpState, Team, TransferCounters

__all__ = [
    "Competitor",
    "Position",
    "RawStats",
    "SeasonStats",
    "POWER_UP_NAMES",
    "PowerUpName",
    "PowerUpState",
    "Team",
    "TransferCounters",
]
