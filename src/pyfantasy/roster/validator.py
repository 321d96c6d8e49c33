"""Composition checks shared by team creation and transfers."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

from pyfantasy.config import LeagueRules
from pyfantasy.errors import LeagueError, Reason, UnavailableError, ValidationError
from pyfantasy.models import Competitor


@dataclass(frozen=True)
class CompositionReport:
    """Outcome of a validation pass; ``problems`` keeps rule order."""

    problems: Tuple[LeagueError, ...]
    total_price: int
    budget_limit: int

    @property
    def ok(self) -> bool:
        return not self.problems

    @property
    def first(self) -> Optional[LeagueError]:
        return self.problems[0] if self.problems else None

    def raise_first(self) -> None:
        if not self.problems:
            return
        first = self.problems[0]
        if len(self.problems) > 1:
            first.detail["problems"] = [
                {"reason": problem.reason.value, "message": problem.message} for problem in self.problems
            ]
        raise first


def _position_counts(ids: Sequence[str], competitors: Mapping[str, Competitor]) -> Counter:
    return Counter(competitors[cid].position for cid in ids if cid in competitors)


def _check_duplicates(ids: Sequence[str]) -> Optional[ValidationError]:
    duplicates = sorted(cid for cid, count in Counter(ids).items() if count > 1)
    if not duplicates:
        return None
    return ValidationError(
        Reason.DUPLICATE_PLAYER,
        "Each player can only be selected once.",
        player_ids=duplicates,
    )


def _check_ownership(
    ids: Sequence[str],
    competitors: Mapping[str, Competitor],
    team_id: Optional[str],
) -> Optional[UnavailableError]:
    taken = sorted(
        {
            cid
            for cid in ids
            if cid in competitors and competitors[cid].owner not in (None, team_id)
        }
    )
    if not taken:
        return None
    return UnavailableError(
        Reason.PLAYER_UNAVAILABLE,
        "These players are already owned: " + ", ".join(competitors[cid].name for cid in taken),
        player_ids=taken,
    )


def _check_formation(
    starters: Sequence[str],
    competitors: Mapping[str, Competitor],
    rules: LeagueRules,
) -> Optional[ValidationError]:
    counts = _position_counts(starters, competitors)
    expected = dict(rules.starting_counts)
    actual = {position: counts.get(position, 0) for position in counts.keys() | expected.keys()}
    if len(starters) == rules.starting_size and all(
        actual[position] == expected.get(position, 0) for position in actual
    ):
        return None
    required = ", ".join(f"{count} {position}" for position, count in expected.items())
    return ValidationError(
        Reason.FORMATION_INVALID,
        f"Starters must include: {required}",
        expected=expected,
        actual=actual,
    )


def _check_bench(
    bench: Sequence[str],
    competitors: Mapping[str, Competitor],
    rules: LeagueRules,
) -> Optional[ValidationError]:
    counts = _position_counts(bench, competitors)
    expected = dict(rules.bench_counts)
    actual = {
        bucket: sum(counts.get(position, 0) for position in members)
        for bucket, members in rules.buckets.items()
    }
    if len(bench) == rules.bench_size and all(
        actual.get(bucket, 0) == expected.get(bucket, 0) for bucket in actual.keys() | expected.keys()
    ):
        return None
    required = ", ".join(
        f"{count} {bucket} ({'/'.join(sorted(rules.buckets[bucket]))})" for bucket, count in expected.items()
    )
    return ValidationError(
        Reason.BENCH_INVALID,
        f"Bench must have {required}",
        expected=expected,
        actual=actual,
    )


def _check_leadership(ids: Sequence[str], captain: str, vice_captain: str) -> Optional[ValidationError]:
    members = set(ids)
    if captain not in members or vice_captain not in members:
        return ValidationError(
            Reason.CAPTAIN_INVALID,
            "Captain and vice-captain must be selected players.",
            captain=captain,
            vice_captain=vice_captain,
        )
    if captain == vice_captain:
        return ValidationError(
            Reason.CAPTAIN_INVALID,
            "Captain and vice-captain must be different players.",
            captain=captain,
            vice_captain=vice_captain,
        )
    return None


def validate_composition(
    starters: Sequence[str],
    bench: Sequence[str],
    captain: str,
    vice_captain: str,
    competitors: Mapping[str, Competitor],
    rules: LeagueRules,
    *,
    budget_limit: int,
    team_id: Optional[str] = None,
) -> CompositionReport:
    """Run every composition rule and collect failures in rule order.

    ``competitors`` must contain a record for every id in ``starters`` and
    ``bench``; unknown ids are resolved (and reported) by the caller.
    ``team_id`` names the team being mutated so its own players pass the
    ownership check.
    """

    ids = list(starters) + list(bench)
    checks = (
        _check_duplicates(ids),
        _check_ownership(ids, competitors, team_id),
        _check_formation(starters, competitors, rules),
        _check_bench(bench, competitors, rules),
        _check_leadership(ids, captain, vice_captain),
    )
    problems = [problem for problem in checks if problem is not None]

    total_price = sum(competitors[cid].price for cid in set(ids) if cid in competitors)
    if total_price > budget_limit:
        problems.append(
            ValidationError(
                Reason.BUDGET_EXCEEDED,
                f"Total cost ({total_price}) exceeds budget limit ({budget_limit})",
                total_price=total_price,
                budget_limit=budget_limit,
            )
        )

    return CompositionReport(problems=tuple(problems), total_price=total_price, budget_limit=budget_limit)


def ensure_available(competitor: Competitor, team_id: Optional[str] = None) -> None:
    if competitor.owner not in (None, team_id):
        raise UnavailableError(
            Reason.PLAYER_UNAVAILABLE,
            f"{competitor.name} is already owned by another team.",
            player_id=competitor.competitor_id,
        )
