"""Team creation: validate a full composition and assign ownership in bulk."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from pyfantasy.config import LeagueRules
from pyfantasy.errors import NotFoundError, Reason, ValidationError
from pyfantasy.models import Competitor, Team, TransferCounters

from .validator import validate_composition


NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 30


@dataclass(frozen=True)
class TeamDraft:
    team: Team
    competitors: Tuple[Competitor, ...]


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not NAME_MIN_LENGTH <= len(cleaned) <= NAME_MAX_LENGTH:
        raise ValidationError(
            Reason.NAME_INVALID,
            f"Team name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters long.",
            name=name,
        )
    return cleaned


def draft_team(
    participant_id: str,
    name: str,
    starters: Sequence[str],
    bench: Sequence[str],
    captain: str,
    vice_captain: str,
    competitors: Mapping[str, Competitor],
    rules: LeagueRules,
    *,
    team_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> TeamDraft:
    """Build a new team and its owned competitor records, raising on the first rule failure."""

    if not participant_id:
        raise NotFoundError(Reason.NOT_FOUND, "A participant reference is required.", participant_id=participant_id)
    cleaned = _clean_name(name)
    report = validate_composition(
        starters,
        bench,
        captain,
        vice_captain,
        competitors,
        rules,
        budget_limit=rules.starting_budget,
    )
    report.raise_first()

    team = Team(
        team_id=team_id or uuid4().hex,
        participant_id=participant_id,
        name=cleaned,
        starters=tuple(starters),
        bench=tuple(bench),
        captain=captain,
        vice_captain=vice_captain,
        budget=rules.starting_budget - report.total_price,
        transfers=TransferCounters(free=rules.free_transfers),
        created_at=created_at or datetime.now(timezone.utc),
    )
    owned = tuple(
        competitors[cid].model_copy(update={"owner": team.team_id}) for cid in team.squad
    )
    return TeamDraft(team=team, competitors=owned)
