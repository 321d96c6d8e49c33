"""One-out/one-in transfer planning.

:func:`plan_transfer` is pure: it validates a swap against the current team
and competitor records and returns the updated records without touching the
store. The service commits the plan atomically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from pyfantasy.config import LeagueRules
from pyfantasy.errors import Reason, ValidationError
from pyfantasy.models import Competitor, Team, TransferCounters

from .validator import ensure_available, validate_composition


@dataclass(frozen=True)
class TransferPlan:
    team: Team
    incoming: Competitor
    outgoing: Competitor
    price_delta: int
    penalty: int


@dataclass(frozen=True)
class TransferResult:
    team_id: str
    incoming_id: str
    outgoing_id: str
    price_delta: int
    penalty: int
    budget: int
    transfers: TransferCounters


def _swap(ids: Tuple[str, ...], outgoing_id: str, incoming_id: str) -> Tuple[str, ...]:
    return tuple(incoming_id if cid == outgoing_id else cid for cid in ids)


def charge_transfer(counters: TransferCounters, rules: LeagueRules) -> Tuple[TransferCounters, int]:
    """Consume a free transfer if one is left, otherwise add the point penalty."""

    if counters.free > 0:
        return counters.model_copy(update={"free": counters.free - 1, "made": counters.made + 1}), 0
    penalty = rules.transfer_penalty
    updated = counters.model_copy(update={"cost": counters.cost + penalty, "made": counters.made + 1})
    return updated, penalty


def plan_transfer(
    team: Team,
    incoming: Competitor,
    outgoing: Optional[Competitor],
    squad: Mapping[str, Competitor],
    rules: LeagueRules,
) -> TransferPlan:
    """Validate a swap and build the post-transfer records.

    ``squad`` maps every competitor id currently in ``team`` to its record.
    """

    if outgoing is None:
        raise ValidationError(
            Reason.REPLACEMENT_REQUIRED,
            "You must sell a player of the same position group to buy a new one.",
            player_id=incoming.competitor_id,
        )
    if outgoing.competitor_id not in team.squad or outgoing.owner != team.team_id:
        raise ValidationError(
            Reason.PLAYER_NOT_IN_TEAM,
            "Replacement player must be owned by your team.",
            player_id=outgoing.competitor_id,
        )
    if incoming.competitor_id in team.squad:
        raise ValidationError(
            Reason.DUPLICATE_PLAYER,
            f"{incoming.name} is already in your team.",
            player_ids=[incoming.competitor_id],
        )
    ensure_available(incoming)
    if not rules.compatible(outgoing.position, incoming.position):
        raise ValidationError(
            Reason.POSITION_MISMATCH,
            f"{incoming.position} cannot replace {outgoing.position}.",
            incoming_position=incoming.position,
            outgoing_position=outgoing.position,
        )

    price_delta = incoming.price - outgoing.price
    if price_delta > team.budget:
        raise ValidationError(
            Reason.BUDGET_EXCEEDED,
            f"{incoming.name} costs {price_delta} more than {outgoing.name} but only {team.budget} is available.",
            cost=price_delta,
            budget=team.budget,
        )

    out_id, in_id = outgoing.competitor_id, incoming.competitor_id
    starters = _swap(team.starters, out_id, in_id)
    bench = _swap(team.bench, out_id, in_id)
    captain = in_id if team.captain == out_id else team.captain
    vice_captain = in_id if team.vice_captain == out_id else team.vice_captain

    candidates = {cid: record for cid, record in squad.items() if cid != out_id}
    candidates[in_id] = incoming
    owned_value = sum(squad[cid].price for cid in team.squad)
    report = validate_composition(
        starters,
        bench,
        captain,
        vice_captain,
        candidates,
        rules,
        budget_limit=team.budget + owned_value,
        team_id=team.team_id,
    )
    report.raise_first()

    transfers, penalty = charge_transfer(team.transfers, rules)
    updated_team = team.model_copy(
        update={
            "starters": starters,
            "bench": bench,
            "captain": captain,
            "vice_captain": vice_captain,
            "budget": team.budget - price_delta,
            "transfers": transfers,
        }
    )
    return TransferPlan(
        team=updated_team,
        incoming=incoming.model_copy(update={"owner": team.team_id}),
        outgoing=outgoing.model_copy(update={"owner": None}),
        price_delta=price_delta,
        penalty=penalty,
    )


def result_from_plan(plan: TransferPlan) -> TransferResult:
    return TransferResult(
        team_id=plan.team.team_id,
        incoming_id=plan.incoming.competitor_id,
        outgoing_id=plan.outgoing.competitor_id,
        price_delta=plan.price_delta,
        penalty=plan.penalty,
        budget=plan.team.budget,
        transfers=plan.team.transfers,
    )
