"""Persistence layer: the roster store contract and its sqlite implementation."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence

from pyfantasy.errors import NotFoundError, Reason, StaleWriteError, ValidationError
from pyfantasy.models import Competitor, RawStats, SeasonStats, Team


logger = logging.getLogger(__name__)

MARKET_SORT_COLUMNS: Mapping[str, str] = {
    "price": "price",
    "name": "name",
    "position": "position",
    "points": "json_extract(season_stats_json, '$.total_points')",
}


@dataclass
class PeriodRecord:
    number: int
    closed_at: datetime
    results: Dict[str, float]
    scores: List[dict]


class LeagueRepository(Protocol):
    """Storage contract used by the league service.

    ``commit`` must apply all given writes atomically and raise
    :class:`StaleWriteError` when any row's version no longer matches.
    """

    def get_competitor(self, competitor_id: str) -> Optional[Competitor]: ...

    def get_competitors(self, competitor_ids: Iterable[str]) -> Dict[str, Competitor]: ...

    def list_competitors(self, **filters) -> List[Competitor]: ...

    def add_competitors(self, competitors: Iterable[Competitor]) -> int: ...

    def get_team(self, team_id: str) -> Optional[Team]: ...

    def get_team_by_participant(self, participant_id: str) -> Optional[Team]: ...

    def list_teams(self) -> List[Team]: ...

    def get_period(self, number: int) -> Optional[PeriodRecord]: ...

    def last_closed_period(self) -> int: ...

    def commit(
        self,
        *,
        teams: Sequence[Team] = (),
        competitors: Sequence[Competitor] = (),
        period: Optional[PeriodRecord] = None,
    ) -> None: ...


class SQLiteLeagueStore:
    """SQLite-backed roster store with optimistic row versioning."""

    def __init__(self, db_path: Path | str, *, timeout: float = 30.0):
        self.db_path = Path(db_path)
        self._timeout = timeout
        self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._connect() as conn:
            # IMMEDIATE takes the write lock up front so concurrent writers serialize.
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS competitors (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                position TEXT NOT NULL,
                price INTEGER NOT NULL,
                club TEXT NOT NULL DEFAULT '',
                owner TEXT,
                period_stats_json TEXT NOT NULL,
                season_stats_json TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 1
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS competitors_owner ON competitors (owner)")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS teams (
                id TEXT PRIMARY KEY,
                participant_id TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                created_at TEXT NOT NULL,
                points REAL NOT NULL,
                period_points REAL NOT NULL,
                payload_json TEXT NOT NULL,
                version INTEGER NOT NULL,
                seq INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        try:
            conn.execute("ALTER TABLE teams ADD COLUMN seq INTEGER NOT NULL DEFAULT 0")
        except sqlite3.OperationalError:
            pass
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS periods (
                number INTEGER PRIMARY KEY,
                closed_at TEXT NOT NULL,
                results_json TEXT NOT NULL,
                scores_json TEXT NOT NULL
            )
            """
        )

    # -- competitors -----------------------------------------------------

    def add_competitors(self, competitors: Iterable[Competitor]) -> int:
        """Insert competitors that do not exist yet; returns the number inserted."""

        inserted = 0
        with self._transaction() as conn:
            for competitor in competitors:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO competitors (
                        id, name, position, price, club, owner,
                        period_stats_json, season_stats_json, version
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1)
                    """,
                    (
                        competitor.competitor_id,
                        competitor.name,
                        competitor.position,
                        competitor.price,
                        competitor.club,
                        competitor.owner,
                        competitor.period_stats.model_dump_json(),
                        competitor.season_stats.model_dump_json(),
                    ),
                )
                inserted += cursor.rowcount
        return inserted

    def get_competitor(self, competitor_id: str) -> Optional[Competitor]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM competitors WHERE id = ?", (competitor_id,)).fetchone()
        return self._row_to_competitor(row) if row is not None else None

    def get_competitors(self, competitor_ids: Iterable[str]) -> Dict[str, Competitor]:
        """Fetch competitors by id, raising NotFoundError listing any unknown ids."""

        wanted = list(dict.fromkeys(competitor_ids))
        if not wanted:
            return {}
        placeholders = ", ".join("?" for _ in wanted)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM competitors WHERE id IN ({placeholders})",
                tuple(wanted),
            ).fetchall()
        found = {row["id"]: self._row_to_competitor(row) for row in rows}
        missing = [cid for cid in wanted if cid not in found]
        if missing:
            raise NotFoundError(
                Reason.NOT_FOUND,
                "One or more selected players do not exist.",
                player_ids=missing,
            )
        return found

    def list_competitors(
        self,
        *,
        position: str | None = None,
        available: bool | None = None,
        owner: str | None = None,
        club: str | None = None,
        search: str | None = None,
        min_price: int | None = None,
        max_price: int | None = None,
        sort_by: str = "price",
        descending: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> List[Competitor]:
        """Filter the market. ``club`` and ``search`` are case-insensitive substring matches."""

        if sort_by not in MARKET_SORT_COLUMNS:
            raise ValidationError(
                Reason.INVALID_QUERY,
                f"Unsupported sort column {sort_by!r}",
                sort_by=sort_by,
                allowed=sorted(MARKET_SORT_COLUMNS),
            )
        query = "SELECT * FROM competitors"
        conditions: list[str] = []
        params: list[str | int] = []
        if position:
            conditions.append("position = ?")
            params.append(position)
        if available is True:
            conditions.append("owner IS NULL")
        elif available is False:
            conditions.append("owner IS NOT NULL")
        if owner:
            conditions.append("owner = ?")
            params.append(owner)
        if club:
            conditions.append("instr(lower(club), lower(?)) > 0")
            params.append(club)
        if search:
            conditions.append("instr(lower(name), lower(?)) > 0")
            params.append(search)
        if min_price is not None:
            conditions.append("price >= ?")
            params.append(min_price)
        if max_price is not None:
            conditions.append("price <= ?")
            params.append(max_price)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        direction = "DESC" if descending else "ASC"
        query += f" ORDER BY {MARKET_SORT_COLUMNS[sort_by]} {direction}, name ASC, id ASC"
        if limit is not None or offset:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit if limit is not None else -1, offset])
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_competitor(row) for row in rows]

    # -- teams -----------------------------------------------------------

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return self._row_to_team(row) if row is not None else None

    def get_team_by_participant(self, participant_id: str) -> Optional[Team]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE participant_id = ?", (participant_id,)).fetchone()
        return self._row_to_team(row) if row is not None else None

    def list_teams(self) -> List[Team]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM teams ORDER BY seq ASC").fetchall()
        return [self._row_to_team(row) for row in rows]

    # -- periods ---------------------------------------------------------

    def get_period(self, number: int) -> Optional[PeriodRecord]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM periods WHERE number = ?", (number,)).fetchone()
        if row is None:
            return None
        return PeriodRecord(
            number=row["number"],
            closed_at=datetime.fromisoformat(row["closed_at"]),
            results=json.loads(row["results_json"]),
            scores=json.loads(row["scores_json"]),
        )

    def last_closed_period(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT MAX(number) AS last FROM periods").fetchone()
        return int(row["last"] or 0)

    # -- writes ----------------------------------------------------------

    def commit(
        self,
        *,
        teams: Sequence[Team] = (),
        competitors: Sequence[Competitor] = (),
        period: Optional[PeriodRecord] = None,
    ) -> None:
        """Apply a unit of work atomically.

        A team with ``version == 0`` is inserted; every other row is updated
        only if its stored version still equals the version that was read.
        """

        with self._transaction() as conn:
            for team in teams:
                self._write_team(conn, team)
            for competitor in competitors:
                self._write_competitor(conn, competitor)
            if period is not None:
                try:
                    conn.execute(
                        "INSERT INTO periods (number, closed_at, results_json, scores_json) VALUES (?, ?, ?, ?)",
                        (
                            period.number,
                            period.closed_at.isoformat(),
                            json.dumps(period.results),
                            json.dumps(period.scores),
                        ),
                    )
                except sqlite3.IntegrityError as exc:
                    raise StaleWriteError(f"Period {period.number} already closed") from exc

    def _write_team(self, conn: sqlite3.Connection, team: Team) -> None:
        payload = team.model_dump_json(exclude={"version", "seq"})
        if team.version == 0:
            try:
                conn.execute(
                    """
                    INSERT INTO teams (
                        id, participant_id, name, created_at, points, period_points, payload_json, version, seq
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, 1, (SELECT COALESCE(MAX(seq), 0) + 1 FROM teams))
                    """,
                    (
                        team.team_id,
                        team.participant_id,
                        team.name,
                        team.created_at.astimezone(timezone.utc).isoformat(),
                        team.points,
                        team.period_points,
                        payload,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise StaleWriteError(f"Team {team.team_id} or participant {team.participant_id} exists") from exc
            return
        cursor = conn.execute(
            """
            UPDATE teams
            SET name = ?, points = ?, period_points = ?, payload_json = ?, version = version + 1
            WHERE id = ? AND version = ?
            """,
            (team.name, team.points, team.period_points, payload, team.team_id, team.version),
        )
        if cursor.rowcount != 1:
            raise StaleWriteError(f"Team {team.team_id} changed since version {team.version}")

    def _write_competitor(self, conn: sqlite3.Connection, competitor: Competitor) -> None:
        cursor = conn.execute(
            """
            UPDATE competitors
            SET owner = ?, period_stats_json = ?, season_stats_json = ?, version = version + 1
            WHERE id = ? AND version = ?
            """,
            (
                competitor.owner,
                competitor.period_stats.model_dump_json(),
                competitor.season_stats.model_dump_json(),
                competitor.competitor_id,
                competitor.version,
            ),
        )
        if cursor.rowcount != 1:
            raise StaleWriteError(
                f"Competitor {competitor.competitor_id} changed since version {competitor.version}"
            )

    def _row_to_competitor(self, row: sqlite3.Row) -> Competitor:
        return Competitor(
            competitor_id=row["id"],
            name=row["name"],
            position=row["position"],
            price=row["price"],
            club=row["club"],
            owner=row["owner"],
            period_stats=RawStats.model_validate_json(row["period_stats_json"]),
            season_stats=SeasonStats.model_validate_json(row["season_stats_json"]),
            version=row["version"],
        )

    def _row_to_team(self, row: sqlite3.Row) -> Team:
        data = json.loads(row["payload_json"])
        data["version"] = row["version"]
        data["seq"] = row["seq"]
        return Team.model_validate(data)


__all__ = ["LeagueRepository", "PeriodRecord", "SQLiteLeagueStore", "MARKET_SORT_COLUMNS"]
