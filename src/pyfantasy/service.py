"""League service: the operation surface the API and CLI call into.

Every public method returns either its success value or a :class:`Rejected`;
no :class:`LeagueError` escapes. Writes follow a read-validate-commit cycle
against the store and are retried from scratch when a concurrent writer wins
the compare-and-swap.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from pyfantasy.config import LeagueRules, Settings, get_rules
from pyfantasy.errors import (
    ConflictError,
    LeagueError,
    NotFoundError,
    Reason,
    Rejected,
    StaleWriteError,
    ValidationError,
)
from pyfantasy.models import Competitor, RawStats, Team
from pyfantasy.persistence import LeagueRepository, PeriodRecord, SQLiteLeagueStore
from pyfantasy.powerups import PowerUpStatus, activate, cancel, describe
from pyfantasy.ranking import Metric, TeamSummary, rank_teams
from pyfantasy.roster import TransferResult, draft_team, plan_transfer, result_from_plan
from pyfantasy.schedule import Clock, CompetitionCalendar, WindowGate, WindowStatus, system_clock
from pyfantasy.scoring import score_competitor, score_teams, settle_team


logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_SEARCH_LENGTH = 2

StatsInput = Mapping[str, Union[RawStats, Mapping[str, object]]]


def _coerce_stats(period_stats: StatsInput) -> Dict[str, RawStats]:
    stats: Dict[str, RawStats] = {}
    for cid, value in period_stats.items():
        if isinstance(value, RawStats):
            stats[cid] = value
            continue
        try:
            stats[cid] = RawStats.model_validate(value)
        except PydanticValidationError as exc:
            raise ValidationError(
                Reason.STATS_INVALID,
                f"Invalid statistics for {cid}: {exc.error_count()} error(s)",
                player_id=cid,
            ) from exc
    return stats


def _page_offset(page: int, limit: int | None) -> int:
    if page < 1 or (limit is not None and limit < 1):
        raise ValidationError(
            Reason.INVALID_QUERY,
            "Page and limit must be positive.",
            page=page,
            limit=limit,
        )
    return (page - 1) * limit if limit else 0


def build_calendar(settings: Settings) -> CompetitionCalendar:
    return CompetitionCalendar.weekly(
        settings.first_lock,
        timedelta(hours=settings.lock_hours),
        settings.periods,
    )


class LeagueService:
    def __init__(
        self,
        store: LeagueRepository,
        *,
        rules: LeagueRules | None = None,
        gate: WindowGate | None = None,
        settings: Settings | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store
        self.rules = rules or get_rules(self.settings.rules_key)
        self.gate = gate or WindowGate(build_calendar(self.settings), clock)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, *, clock: Clock = system_clock) -> "LeagueService":
        settings = settings or Settings.from_env()
        return cls(SQLiteLeagueStore(settings.db_path), settings=settings, clock=clock)

    # -- plumbing --------------------------------------------------------

    def _run(self, operation: str, action: Callable[[], T]) -> Union[T, Rejected]:
        attempts = self.settings.commit_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return action()
            except StaleWriteError as exc:
                logger.warning("%s lost a concurrent update (attempt %s/%s): %s", operation, attempt, attempts, exc)
            except LeagueError as exc:
                logger.info("%s rejected: %s (%s)", operation, exc.reason.value, exc.message)
                return Rejected(exc)
        return Rejected(
            ConflictError(
                Reason.CONCURRENT_UPDATE,
                "Another update touched the same records; refresh and retry.",
                operation=operation,
            )
        )

    def _require_open(self) -> WindowStatus:
        return self.gate.require_open(self.store.last_closed_period())

    def _team(self, team_id: str) -> Team:
        team = self.store.get_team(team_id)
        if team is None:
            raise NotFoundError(Reason.NOT_FOUND, "Team not found", team_id=team_id)
        return team

    def _competitor(self, competitor_id: str) -> Competitor:
        competitor = self.store.get_competitor(competitor_id)
        if competitor is None:
            raise NotFoundError(Reason.NOT_FOUND, "Player not found", player_id=competitor_id)
        return competitor

    # -- market ----------------------------------------------------------

    def register_competitors(self, competitors: Iterable[Competitor]) -> int:
        inserted = self.store.add_competitors(competitors)
        logger.info("Registered %s new competitors", inserted)
        return inserted

    def list_market(
        self,
        *,
        position: str | None = None,
        available: bool | None = None,
        club: str | None = None,
        search: str | None = None,
        min_price: int | None = None,
        max_price: int | None = None,
        sort_by: str = "price",
        descending: bool = True,
        limit: int | None = None,
        page: int = 1,
    ) -> Union[List[Competitor], Rejected]:
        def action() -> List[Competitor]:
            if search is not None and len(search.strip()) < MIN_SEARCH_LENGTH:
                raise ValidationError(
                    Reason.INVALID_QUERY,
                    f"Search query must be at least {MIN_SEARCH_LENGTH} characters",
                    search=search,
                )
            return self.store.list_competitors(
                position=position,
                available=available,
                club=club,
                search=search.strip() if search else None,
                min_price=min_price,
                max_price=max_price,
                sort_by=sort_by,
                descending=descending,
                limit=limit,
                offset=_page_offset(page, limit),
            )

        return self._run("list_market", action)

    def get_competitor(self, competitor_id: str) -> Union[Competitor, Rejected]:
        return self._run("get_competitor", lambda: self._competitor(competitor_id))

    # -- teams -----------------------------------------------------------

    def get_team(self, team_id: str) -> Union[Team, Rejected]:
        return self._run("get_team", lambda: self._team(team_id))

    def get_team_for_participant(self, participant_id: str) -> Union[Team, Rejected]:
        def action() -> Team:
            team = self.store.get_team_by_participant(participant_id)
            if team is None:
                raise NotFoundError(Reason.NOT_FOUND, "Team not found", participant_id=participant_id)
            return team

        return self._run("get_team_for_participant", action)

    def create_team(
        self,
        participant_id: str,
        name: str,
        starters: Sequence[str],
        bench: Sequence[str],
        captain: str,
        vice_captain: str,
    ) -> Union[Team, Rejected]:
        def action() -> Team:
            if self.store.get_team_by_participant(participant_id) is not None:
                raise ValidationError(
                    Reason.TEAM_EXISTS,
                    "Participant already has a team.",
                    participant_id=participant_id,
                )
            competitors = self.store.get_competitors(list(starters) + list(bench))
            draft = draft_team(
                participant_id,
                name,
                starters,
                bench,
                captain,
                vice_captain,
                competitors,
                self.rules,
                created_at=self.gate.now(),
            )
            self.store.commit(teams=[draft.team], competitors=draft.competitors)
            logger.info("Team created: %s (%s) for participant %s", draft.team.name, draft.team.team_id, participant_id)
            return self._team(draft.team.team_id)

        return self._run("create_team", action)

    def transfer(
        self,
        team_id: str,
        incoming_id: str,
        outgoing_id: Optional[str] = None,
    ) -> Union[TransferResult, Rejected]:
        def action() -> TransferResult:
            self._require_open()
            team = self._team(team_id)
            incoming = self._competitor(incoming_id)
            outgoing = self._competitor(outgoing_id) if outgoing_id is not None else None
            squad = self.store.get_competitors(team.squad)
            plan = plan_transfer(team, incoming, outgoing, squad, self.rules)
            self.store.commit(teams=[plan.team], competitors=[plan.incoming, plan.outgoing])
            logger.info(
                "Transfer: %s bought %s for %s (delta %s, penalty %s)",
                team.name,
                incoming.name,
                plan.outgoing.name,
                plan.price_delta,
                plan.penalty,
            )
            return result_from_plan(plan)

        return self._run("transfer", action)

    # -- power-ups -------------------------------------------------------

    def power_up_status(self, team_id: str) -> Union[List[PowerUpStatus], Rejected]:
        return self._run("power_up_status", lambda: describe(self._team(team_id)))

    def activate_power_up(self, team_id: str, name: str) -> Union[Team, Rejected]:
        def action() -> Team:
            self._require_open()
            team = self._team(team_id)
            updated = activate(team, name, self.rules)
            if updated is team:
                return team
            self.store.commit(teams=[updated])
            return self._team(team_id)

        return self._run("activate_power_up", action)

    def cancel_power_up(self, team_id: str) -> Union[Team, Rejected]:
        def action() -> Team:
            self._require_open()
            updated = cancel(self._team(team_id))
            self.store.commit(teams=[updated])
            return self._team(team_id)

        return self._run("cancel_power_up", action)

    # -- periods ---------------------------------------------------------

    def close_period(
        self,
        period_stats: StatsInput,
        period: Optional[int] = None,
    ) -> Union[Dict[str, float], Rejected]:
        """Score every team for a finished period and roll counters over.

        Closing a period that is already closed returns the stored results.
        """

        def action() -> Dict[str, float]:
            stats = _coerce_stats(period_stats)
            last = self.store.last_closed_period()
            number = period if period is not None else last + 1
            if 1 <= number <= last:
                record = self.store.get_period(number)
                if record is not None:
                    logger.info("Period %s already closed; returning stored results", number)
                    return dict(record.results)
            if number != last + 1 or number > len(self.gate.calendar.gameweeks):
                raise ValidationError(
                    Reason.PERIOD_OUT_OF_ORDER,
                    f"Period {number} cannot be closed; next period to close is {last + 1}.",
                    period=number,
                    next_period=last + 1,
                )
            if not self.gate.has_finished(number):
                raise ValidationError(
                    Reason.PERIOD_NOT_FINISHED,
                    f"Gameweek {number} has not finished yet.",
                    period=number,
                    ends_at=self.gate.calendar.gameweek(number).ends_at.isoformat(),
                )

            competitors = self.store.list_competitors(sort_by="name", descending=False)
            positions = {c.competitor_id: c.position for c in competitors}
            unknown = sorted(set(stats) - set(positions))
            if unknown:
                logger.warning("Ignoring stats for %s unknown competitors: %s", len(unknown), ", ".join(unknown))

            teams = self.store.list_teams()
            scores = score_teams(teams, positions, stats, self.rules, number, jobs=self.settings.scoring_jobs)
            settled = [settle_team(team, score, self.rules) for team, score in zip(teams, scores)]

            updated_competitors = []
            for competitor in competitors:
                raw = stats.get(competitor.competitor_id, RawStats())
                base = score_competitor(competitor.position, raw, self.rules)
                updated_competitors.append(
                    competitor.model_copy(
                        update={
                            "period_stats": raw,
                            "season_stats": competitor.season_stats.accumulate(raw, base),
                        }
                    )
                )

            results = {score.team_id: score.total for score in scores}
            record = PeriodRecord(
                number=number,
                closed_at=self.gate.now(),
                results=results,
                scores=[asdict(score) for score in scores],
            )
            self.store.commit(teams=settled, competitors=updated_competitors, period=record)
            logger.info("Closed period %s: scored %s teams", number, len(results))
            return results

        return self._run("close_period", action)

    def get_period(self, number: int) -> Union[PeriodRecord, Rejected]:
        def action() -> PeriodRecord:
            record = self.store.get_period(number)
            if record is None:
                raise NotFoundError(Reason.NOT_FOUND, f"Period {number} has not been closed", period=number)
            return record

        return self._run("get_period", action)

    # -- read models -----------------------------------------------------

    def get_ranking(
        self,
        metric: Metric = "cumulative",
        *,
        limit: int | None = None,
        page: int = 1,
    ) -> Union[List[TeamSummary], Rejected]:
        def action() -> List[TeamSummary]:
            return rank_teams(
                self.store.list_teams(),
                metric,
                starting_budget=self.rules.starting_budget,
                limit=limit,
                offset=_page_offset(page, limit),
            )

        return self._run("get_ranking", action)

    def get_window_status(self) -> WindowStatus:
        return self.gate.status(self.store.last_closed_period())
