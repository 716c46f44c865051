"""Persistence layer for players, teams, auctions and sale logs."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing, contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional
from uuid import uuid4

from cricauction.config.rules import DEFAULT_COLOR_THEME
from cricauction.ledger import affected_team_ids, format_price, recompute_team_stats
from cricauction.models import Auction, AuctionLog, Player, Team


logger = logging.getLogger(__name__)


class RecordNotFoundError(KeyError):
    """Raised when an operation targets an id the store does not hold."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Record not found"


class AuctionRuleError(ValueError):
    """Raised when a sale would break an auction rule (budget, completed auction)."""


@dataclass
class SaleResult:
    auction: Auction
    player: Player
    team: Team
    log: AuctionLog


_PLAYER_MUTABLE_FIELDS = frozenset({
    "name", "role", "country", "base_price", "pool", "status", "sold_price",
    "assigned_team", "points", "age", "stats", "bio",
})
_TEAM_MUTABLE_FIELDS = frozenset({"name", "color_theme", "logo_url", "budget"})
_TEAM_DERIVED_FIELDS = frozenset({"remaining_budget", "total_spent", "players_count", "total_points"})
_AUCTION_MUTABLE_FIELDS = frozenset({
    "player_id", "current_bid", "winning_team", "final_price", "is_active",
    "is_completed", "completed_at",
})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _reject_unknown(kind: str, changes: Mapping[str, Any], allowed: Iterable[str]) -> None:
    unknown = sorted(set(changes) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown {kind} field(s): {', '.join(unknown)}")


class AuctionStore:
    """SQLite-backed store for auction records.

    With no ``db_path`` (or ``":memory:"``) the data lives in a private
    in-memory database that survives as long as the store object. Every
    mutating call runs in a single transaction, so a player write and the
    team reconciliation it triggers either both land or neither does.
    """

    def __init__(self, db_path: Path | str | None = None):
        self._anchor: Optional[sqlite3.Connection] = None
        self._use_uri = False
        if db_path is None or str(db_path) == ":memory:":
            self.db_path: Path | str = f"file:cricauction-{uuid4().hex}?mode=memory&cache=shared"
            self._use_uri = True
            # In-memory databases vanish with their last connection.
            self._anchor = sqlite3.connect(self.db_path, uri=True, check_same_thread=False)
        elif str(db_path).startswith("file:"):
            self.db_path = str(db_path)
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("Auction store ready at %s", self.db_path)

    def close(self) -> None:
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            uri=self._use_uri,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with closing(self._connect()) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        with closing(self._connect()) as conn:
            yield conn

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                role TEXT NOT NULL,
                country TEXT NOT NULL,
                base_price INTEGER NOT NULL,
                pool TEXT,
                status TEXT NOT NULL,
                sold_price INTEGER,
                assigned_team TEXT,
                points INTEGER NOT NULL DEFAULT 0,
                age INTEGER,
                stats_json TEXT NOT NULL,
                bio TEXT,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS ix_players_assigned_team ON players (assigned_team)")
        conn.execute("CREATE INDEX IF NOT EXISTS ix_players_pool ON players (pool)")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS teams (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                color_theme TEXT NOT NULL,
                logo_url TEXT,
                budget INTEGER NOT NULL,
                remaining_budget INTEGER NOT NULL,
                total_spent INTEGER NOT NULL DEFAULT 0,
                players_count INTEGER NOT NULL DEFAULT 0,
                total_points INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS auctions (
                id TEXT PRIMARY KEY,
                player_id TEXT NOT NULL,
                current_bid INTEGER NOT NULL,
                winning_team TEXT,
                final_price INTEGER,
                is_active INTEGER NOT NULL DEFAULT 0,
                is_completed INTEGER NOT NULL DEFAULT 0,
                started_at TEXT NOT NULL,
                completed_at TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS auction_logs (
                id TEXT PRIMARY KEY,
                player_id TEXT NOT NULL,
                team_id TEXT NOT NULL,
                sold_price INTEGER NOT NULL,
                timestamp TEXT NOT NULL
            )
            """
        )

    # Players

    def create_player(
        self,
        *,
        name: str,
        role: str,
        country: str,
        base_price: int,
        pool: Optional[str] = None,
        status: str = "Available",
        sold_price: Optional[int] = None,
        assigned_team: Optional[str] = None,
        points: int = 0,
        age: Optional[int] = None,
        stats: Optional[Mapping[str, int]] = None,
        bio: Optional[str] = None,
    ) -> Player:
        fields = {
            "name": name,
            "role": role,
            "country": country,
            "base_price": base_price,
            "pool": pool,
            "status": status,
            "sold_price": sold_price,
            "assigned_team": assigned_team,
            "points": points,
            "age": age,
            "stats": dict(stats or {}),
            "bio": bio,
        }
        return self.create_players([fields])[0]

    def create_players(self, items: Iterable[Mapping[str, Any]]) -> List[Player]:
        """Insert several players in one transaction, reconciling any teams they join."""

        created: List[Player] = []
        with self._transaction() as conn:
            touched: set[str] = set()
            for fields in items:
                _reject_unknown("player", fields, _PLAYER_MUTABLE_FIELDS)
                data = {"status": "Available", "pool": None, "points": 0, "stats": {}, **fields}
                data["pool"] = data["pool"] or None
                player = Player.model_validate({**data, "id": uuid4().hex, "created_at": _now()})
                self._require_team(conn, player.assigned_team)
                self._insert_player(conn, player)
                touched.update(affected_team_ids(None, player))
                created.append(player)
            self._reconcile_all(conn, touched)
        return created

    def get_player(self, player_id: str) -> Optional[Player]:
        with self._reader() as conn:
            return self._fetch_player(conn, player_id)

    def list_players(self) -> List[Player]:
        with self._reader() as conn:
            rows = conn.execute("SELECT * FROM players ORDER BY created_at, rowid").fetchall()
        return [self._row_to_player(row) for row in rows]

    def list_players_by_pool(self, pool: str) -> List[Player]:
        with self._reader() as conn:
            rows = conn.execute(
                "SELECT * FROM players WHERE pool = ? ORDER BY created_at, rowid",
                (pool,),
            ).fetchall()
        return [self._row_to_player(row) for row in rows]

    def update_player(self, player_id: str, updates: Mapping[str, Any]) -> Player:
        """Merge ``updates`` into a player and reconcile every team it affects."""

        changes = dict(updates)
        _reject_unknown("player", changes, _PLAYER_MUTABLE_FIELDS)
        with self._transaction() as conn:
            current = self._fetch_player(conn, player_id)
            if current is None:
                raise RecordNotFoundError(f"Player {player_id} not found")
            updated = Player.model_validate({**current.model_dump(), **changes})
            if updated.assigned_team != current.assigned_team:
                self._require_team(conn, updated.assigned_team)
            self._write_player(conn, updated)
            self._reconcile_all(conn, affected_team_ids(current, updated))
        return updated

    def delete_player(self, player_id: str) -> bool:
        with self._transaction() as conn:
            current = self._fetch_player(conn, player_id)
            if current is None:
                return False
            conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
            self._reconcile_all(conn, affected_team_ids(current, None))
        return True

    # Teams

    def create_team(
        self,
        *,
        name: str,
        budget: int,
        color_theme: str = DEFAULT_COLOR_THEME,
        logo_url: Optional[str] = None,
    ) -> Team:
        team = Team(
            id=uuid4().hex,
            name=name,
            color_theme=color_theme,
            logo_url=logo_url or None,
            budget=budget,
            remaining_budget=budget,
            created_at=_now(),
        )
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO teams (
                    id, name, color_theme, logo_url, budget, remaining_budget,
                    total_spent, players_count, total_points, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    team.id,
                    team.name,
                    team.color_theme,
                    team.logo_url,
                    team.budget,
                    team.remaining_budget,
                    team.total_spent,
                    team.players_count,
                    team.total_points,
                    team.created_at.isoformat(),
                ),
            )
        return team

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._reader() as conn:
            return self._fetch_team(conn, team_id)

    def list_teams(self) -> List[Team]:
        with self._reader() as conn:
            rows = conn.execute("SELECT * FROM teams ORDER BY created_at, rowid").fetchall()
        return [self._row_to_team(row) for row in rows]

    def update_team(self, team_id: str, updates: Mapping[str, Any]) -> Team:
        """Merge editable fields into a team; derived fields in ``updates`` are ignored."""

        changes = {key: value for key, value in updates.items() if key not in _TEAM_DERIVED_FIELDS}
        _reject_unknown("team", changes, _TEAM_MUTABLE_FIELDS)
        with self._transaction() as conn:
            current = self._fetch_team(conn, team_id)
            if current is None:
                raise RecordNotFoundError(f"Team {team_id} not found")
            if "logo_url" in changes:
                changes["logo_url"] = changes["logo_url"] or None
            updated = Team.model_validate({**current.model_dump(), **changes})
            conn.execute(
                "UPDATE teams SET name = ?, color_theme = ?, logo_url = ?, budget = ? WHERE id = ?",
                (updated.name, updated.color_theme, updated.logo_url, updated.budget, team_id),
            )
            if updated.budget != current.budget:
                updated = self._reconcile(conn, team_id)
        return updated

    def delete_team(self, team_id: str) -> bool:
        """Release the team's players back to the pool, then remove the team."""

        with self._transaction() as conn:
            if self._fetch_team(conn, team_id) is None:
                return False
            released = conn.execute(
                """
                UPDATE players
                SET assigned_team = NULL, status = 'Available', sold_price = NULL
                WHERE assigned_team = ?
                """,
                (team_id,),
            ).rowcount
            conn.execute(
                "UPDATE auctions SET winning_team = NULL WHERE winning_team = ? AND is_completed = 0",
                (team_id,),
            )
            conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        logger.info("Deleted team %s and released %d player(s)", team_id, released)
        return True

    def recompute_team(self, team_id: str) -> Team:
        with self._transaction() as conn:
            return self._reconcile(conn, team_id)

    # Auctions

    def create_auction(
        self,
        *,
        player_id: str,
        current_bid: int,
        winning_team: Optional[str] = None,
    ) -> Auction:
        auction = Auction(
            id=uuid4().hex,
            player_id=player_id,
            current_bid=current_bid,
            winning_team=winning_team or None,
            started_at=_now(),
        )
        with self._transaction() as conn:
            if self._fetch_player(conn, player_id) is None:
                raise RecordNotFoundError(f"Player {player_id} not found")
            self._require_team(conn, auction.winning_team)
            self._write_auction(conn, auction, insert=True)
        return auction

    def get_auction(self, auction_id: str) -> Optional[Auction]:
        with self._reader() as conn:
            return self._fetch_auction(conn, auction_id)

    def list_auctions(self) -> List[Auction]:
        with self._reader() as conn:
            rows = conn.execute("SELECT * FROM auctions ORDER BY started_at DESC, rowid DESC").fetchall()
        return [self._row_to_auction(row) for row in rows]

    def list_active_auctions(self) -> List[Auction]:
        with self._reader() as conn:
            rows = conn.execute(
                "SELECT * FROM auctions WHERE is_active = 1 ORDER BY started_at DESC, rowid DESC"
            ).fetchall()
        return [self._row_to_auction(row) for row in rows]

    def update_auction(self, auction_id: str, updates: Mapping[str, Any]) -> Auction:
        changes = dict(updates)
        _reject_unknown("auction", changes, _AUCTION_MUTABLE_FIELDS)
        with self._transaction() as conn:
            current = self._fetch_auction(conn, auction_id)
            if current is None:
                raise RecordNotFoundError(f"Auction {auction_id} not found")
            updated = Auction.model_validate({**current.model_dump(), **changes})
            if updated.player_id != current.player_id and self._fetch_player(conn, updated.player_id) is None:
                raise RecordNotFoundError(f"Player {updated.player_id} not found")
            if updated.winning_team != current.winning_team:
                self._require_team(conn, updated.winning_team)
            self._write_auction(conn, updated)
        return updated

    def delete_auction(self, auction_id: str) -> bool:
        with self._transaction() as conn:
            return conn.execute("DELETE FROM auctions WHERE id = ?", (auction_id,)).rowcount > 0

    def sell_auction(self, auction_id: str, *, team_id: str, price: int) -> SaleResult:
        """Close an auction with a sale to ``team_id`` at ``price``.

        The player, both affected teams, the auction and the sale log are
        written in one transaction.
        """

        with self._transaction() as conn:
            auction = self._open_auction(conn, auction_id)
            player = self._fetch_player(conn, auction.player_id)
            if player is None:
                raise RecordNotFoundError(f"Player {auction.player_id} not found")
            team = self._fetch_team(conn, team_id)
            if team is None:
                raise RecordNotFoundError(f"Team {team_id} not found")
            if player.status == "Sold":
                raise AuctionRuleError(f"Player {player.name} is already sold")
            if price > team.remaining_budget:
                raise AuctionRuleError(
                    f"Budget exceeded: {team.name} has {format_price(team.remaining_budget)} remaining"
                )

            sold = player.model_copy(update={"status": "Sold", "sold_price": price, "assigned_team": team.id})
            self._write_player(conn, sold)
            self._reconcile_all(conn, affected_team_ids(player, sold) - {team.id})
            team = self._reconcile(conn, team.id)

            now = _now()
            closed = auction.model_copy(
                update={
                    "winning_team": team.id,
                    "final_price": price,
                    "current_bid": max(auction.current_bid, price),
                    "is_active": False,
                    "is_completed": True,
                    "completed_at": now,
                }
            )
            self._write_auction(conn, closed)
            log = AuctionLog(id=uuid4().hex, player_id=player.id, team_id=team.id, sold_price=price, timestamp=now)
            self._insert_log(conn, log)
        logger.info("Sold %s to %s for %s", player.name, team.name, format_price(price))
        return SaleResult(auction=closed, player=sold, team=team, log=log)

    def mark_unsold(self, auction_id: str) -> tuple[Auction, Player]:
        with self._transaction() as conn:
            auction = self._open_auction(conn, auction_id)
            player = self._fetch_player(conn, auction.player_id)
            if player is None:
                raise RecordNotFoundError(f"Player {auction.player_id} not found")
            if player.status == "Sold":
                raise AuctionRuleError(f"Player {player.name} is already sold")
            unsold = player.model_copy(update={"status": "Unsold"})
            self._write_player(conn, unsold)
            closed = auction.model_copy(
                update={"is_active": False, "is_completed": True, "completed_at": _now()}
            )
            self._write_auction(conn, closed)
        return closed, unsold

    # Auction logs

    def create_auction_log(self, *, player_id: str, team_id: str, sold_price: int) -> AuctionLog:
        log = AuctionLog(
            id=uuid4().hex,
            player_id=player_id,
            team_id=team_id,
            sold_price=sold_price,
            timestamp=_now(),
        )
        with self._transaction() as conn:
            if self._fetch_player(conn, player_id) is None:
                raise RecordNotFoundError(f"Player {player_id} not found")
            self._require_team(conn, team_id)
            self._insert_log(conn, log)
        return log

    def list_auction_logs(self) -> List[AuctionLog]:
        with self._reader() as conn:
            rows = conn.execute("SELECT * FROM auction_logs ORDER BY timestamp DESC, rowid DESC").fetchall()
        return [
            AuctionLog(
                id=row["id"],
                player_id=row["player_id"],
                team_id=row["team_id"],
                sold_price=row["sold_price"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
            for row in rows
        ]

    # Internals

    def _reconcile(self, conn: sqlite3.Connection, team_id: str) -> Team:
        team = self._fetch_team(conn, team_id)
        if team is None:
            raise RecordNotFoundError(f"Team {team_id} not found")
        rows = conn.execute("SELECT * FROM players WHERE assigned_team = ?", (team_id,)).fetchall()
        refreshed = recompute_team_stats(team, [self._row_to_player(row) for row in rows])
        conn.execute(
            """
            UPDATE teams
            SET remaining_budget = ?, total_spent = ?, players_count = ?, total_points = ?
            WHERE id = ?
            """,
            (
                refreshed.remaining_budget,
                refreshed.total_spent,
                refreshed.players_count,
                refreshed.total_points,
                team_id,
            ),
        )
        return refreshed

    def _reconcile_all(self, conn: sqlite3.Connection, team_ids: Iterable[str]) -> None:
        for team_id in sorted(team_ids):
            if self._fetch_team(conn, team_id) is None:
                logger.warning("Skipping reconciliation for missing team %s", team_id)
                continue
            self._reconcile(conn, team_id)

    def _require_team(self, conn: sqlite3.Connection, team_id: Optional[str]) -> None:
        if team_id and self._fetch_team(conn, team_id) is None:
            raise RecordNotFoundError(f"Team {team_id} not found")

    def _open_auction(self, conn: sqlite3.Connection, auction_id: str) -> Auction:
        auction = self._fetch_auction(conn, auction_id)
        if auction is None:
            raise RecordNotFoundError(f"Auction {auction_id} not found")
        if auction.is_completed:
            raise AuctionRuleError(f"Auction {auction_id} is already completed")
        return auction

    def _fetch_player(self, conn: sqlite3.Connection, player_id: str) -> Optional[Player]:
        row = conn.execute("SELECT * FROM players WHERE id = ?", (player_id,)).fetchone()
        return self._row_to_player(row) if row is not None else None

    def _fetch_team(self, conn: sqlite3.Connection, team_id: str) -> Optional[Team]:
        row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return self._row_to_team(row) if row is not None else None

    def _fetch_auction(self, conn: sqlite3.Connection, auction_id: str) -> Optional[Auction]:
        row = conn.execute("SELECT * FROM auctions WHERE id = ?", (auction_id,)).fetchone()
        return self._row_to_auction(row) if row is not None else None

    def _insert_player(self, conn: sqlite3.Connection, player: Player) -> None:
        conn.execute(
            """
            INSERT INTO players (
                id, name, role, country, base_price, pool, status, sold_price,
                assigned_team, points, age, stats_json, bio, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                player.id,
                player.name,
                player.role,
                player.country,
                player.base_price,
                player.pool,
                player.status,
                player.sold_price,
                player.assigned_team,
                player.points,
                player.age,
                json.dumps(player.stats),
                player.bio,
                player.created_at.isoformat(),
            ),
        )

    def _write_player(self, conn: sqlite3.Connection, player: Player) -> None:
        conn.execute(
            """
            UPDATE players
            SET name = ?, role = ?, country = ?, base_price = ?, pool = ?,
                status = ?, sold_price = ?, assigned_team = ?, points = ?,
                age = ?, stats_json = ?, bio = ?
            WHERE id = ?
            """,
            (
                player.name,
                player.role,
                player.country,
                player.base_price,
                player.pool,
                player.status,
                player.sold_price,
                player.assigned_team,
                player.points,
                player.age,
                json.dumps(player.stats),
                player.bio,
                player.id,
            ),
        )

    def _write_auction(self, conn: sqlite3.Connection, auction: Auction, *, insert: bool = False) -> None:
        values = (
            auction.player_id,
            auction.current_bid,
            auction.winning_team,
            auction.final_price,
            int(auction.is_active),
            int(auction.is_completed),
            auction.started_at.isoformat(),
            auction.completed_at.isoformat() if auction.completed_at else None,
            auction.id,
        )
        if insert:
            conn.execute(
                """
                INSERT INTO auctions (
                    player_id, current_bid, winning_team, final_price, is_active,
                    is_completed, started_at, completed_at, id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                values,
            )
        else:
            conn.execute(
                """
                UPDATE auctions
                SET player_id = ?, current_bid = ?, winning_team = ?, final_price = ?,
                    is_active = ?, is_completed = ?, started_at = ?, completed_at = ?
                WHERE id = ?
                """,
                values,
            )

    def _insert_log(self, conn: sqlite3.Connection, log: AuctionLog) -> None:
        conn.execute(
            "INSERT INTO auction_logs (id, player_id, team_id, sold_price, timestamp) VALUES (?, ?, ?, ?, ?)",
            (log.id, log.player_id, log.team_id, log.sold_price, log.timestamp.isoformat()),
        )

    def _row_to_player(self, row: sqlite3.Row) -> Player:
        return Player(
            id=row["id"],
            name=row["name"],
            role=row["role"],
            country=row["country"],
            base_price=row["base_price"],
            pool=row["pool"],
            status=row["status"],
            sold_price=row["sold_price"],
            assigned_team=row["assigned_team"],
            points=row["points"],
            age=row["age"],
            stats=json.loads(row["stats_json"]) if row["stats_json"] else {},
            bio=row["bio"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_team(self, row: sqlite3.Row) -> Team:
        return Team(
            id=row["id"],
            name=row["name"],
            color_theme=row["color_theme"],
            logo_url=row["logo_url"],
            budget=row["budget"],
            remaining_budget=row["remaining_budget"],
            total_spent=row["total_spent"],
            players_count=row["players_count"],
            total_points=row["total_points"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_auction(self, row: sqlite3.Row) -> Auction:
        return Auction(
            id=row["id"],
            player_id=row["player_id"],
            current_bid=row["current_bid"],
            winning_team=row["winning_team"],
            final_price=row["final_price"],
            is_active=bool(row["is_active"]),
            is_completed=bool(row["is_completed"]),
            started_at=datetime.fromisoformat(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
        )


__all__ = [
    "AuctionRuleError",
    "AuctionStore",
    "RecordNotFoundError",
    "SaleResult",
]
