"""League rule sets: formation, budget, transfer and scoring constants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Set, Tuple, get_args

from pyfantasy.models.player import Position


POSITIONS: Tuple[str, ...] = get_args(Position)

UNLIMITED_TRANSFERS = 999


@dataclass(frozen=True)
class ScoringWeights:
    goal: float
    assist: float
    save: float
    clean_sheet: float = 0.0


@dataclass(frozen=True)
class LeagueRules:
    key: str
    starting_budget: int
    starting_counts: Mapping[str, int]
    bench_counts: Mapping[str, int]
    buckets: Mapping[str, Set[str]]
    weights: Mapping[str, ScoringWeights]
    own_goal_penalty: float = 2.0
    free_transfers: int = 1
    transfer_penalty: int = 4

    def __post_init__(self) -> None:
        missing = [position for position in POSITIONS if position not in self.weights]
        if missing:
            raise ValueError(f"Rule set {self.key} has no scoring weights for {', '.join(missing)}")
        unknown = set(self.starting_counts) - set(POSITIONS)
        if unknown:
            raise ValueError(f"Rule set {self.key} references unknown positions {sorted(unknown)}")

    @property
    def starting_size(self) -> int:
        return sum(self.starting_counts.values())

    @property
    def bench_size(self) -> int:
        return sum(self.bench_counts.values())

    @property
    def squad_size(self) -> int:
        return self.starting_size + self.bench_size

    def bucket_of(self, position: str) -> str:
        for name, members in self.buckets.items():
            if position in members:
                return name
        raise KeyError(f"Position {position!r} is not part of any bucket")

    def compatible(self, outgoing_position: str, incoming_position: str) -> bool:
        """True when a slot vacated by ``outgoing_position`` can host ``incoming_position``."""

        return incoming_position in self.buckets[self.bucket_of(outgoing_position)]


_BUCKETS: Dict[str, Set[str]] = {
    "DEF": {"GK", "CDM"},
    "ATT": {"LW", "RW"},
}

_WEIGHTS: Dict[str, ScoringWeights] = {
    "LW": ScoringWeights(goal=4, assist=2, save=1),
    "RW": ScoringWeights(goal=4, assist=2, save=1),
    "CDM": ScoringWeights(goal=5, assist=3, save=1, clean_sheet=4),
    "GK": ScoringWeights(goal=5, assist=3, save=0.5, clean_sheet=5),
}

_STARTING_COUNTS: Dict[str, int] = {"GK": 1, "CDM": 2, "LW": 1, "RW": 1}


_LEAGUE_RULES: Dict[str, LeagueRules] = {
    "TSW": LeagueRules(
        key="TSW",
        starting_budget=3_000,
        starting_counts=_STARTING_COUNTS,
        bench_counts={"DEF": 2, "ATT": 1},
        buckets=_BUCKETS,
        weights=_WEIGHTS,
    ),
    "CLASSIC": LeagueRules(
        key="CLASSIC",
        starting_budget=1_500,
        starting_counts=_STARTING_COUNTS,
        bench_counts={"DEF": 1, "ATT": 1},
        buckets=_BUCKETS,
        weights=_WEIGHTS,
    ),
}

DEFAULT_RULES_KEY = "TSW"


def iter_rules() -> Iterable[LeagueRules]:
    """Return an iterator of all configured rule sets."""

    return _LEAGUE_RULES.values()


def get_rules(key: str = DEFAULT_RULES_KEY) -> LeagueRules:
    """Fetch a rule set by key, raising KeyError if missing."""

    normalized = key.upper()
    if normalized not in _LEAGUE_RULES:
        raise KeyError(f"No league rules configured for key={key!r}")
    return _LEAGUE_RULES[normalized]


# Read-only view for callers that want to enumerate keys.
RULES_BY_KEY: Mapping[str, LeagueRules] = dict(_LEAGUE_RULES)
