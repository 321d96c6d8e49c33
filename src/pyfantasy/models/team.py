"""Team models: composition, budget, transfer counters and power-up usage."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


PowerUpName = Literal["wildcard", "free_hit", "triple_captain", "bench_boost"]

POWER_UP_NAMES: Tuple[str, ...] = ("wildcard", "free_hit", "triple_captain", "bench_boost")


def _unused_power_ups() -> Dict[str, bool]:
    return {name: False for name in POWER_UP_NAMES}


class TransferCounters(BaseModel):
    free: int = Field(default=1, ge=0)
    cost: int = Field(default=0, ge=0)
    made: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class PowerUpState(BaseModel):
    used: Dict[str, bool] = Field(default_factory=_unused_power_ups)
    active: Optional[PowerUpName] = None
    # Counters captured on activation of a transfer-relaxing power-up.
    saved_transfers: Optional[TransferCounters] = None

    model_config = ConfigDict(frozen=True)


class Team(BaseModel):
    team_id: str = Field(..., min_length=1)
    participant_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=3, max_length=30)
    starters: Tuple[str, ...]
    bench: Tuple[str, ...]
    captain: str
    vice_captain: str
    budget: int
    points: float = 0.0
    period_points: float = 0.0
    transfers: TransferCounters = Field(default_factory=TransferCounters)
    power_ups: PowerUpState = Field(default_factory=PowerUpState)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0
    # Creation order, assigned by the store on insert.
    seq: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def squad(self) -> Tuple[str, ...]:
        return self.starters + self.bench
