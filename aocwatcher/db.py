"""Persistence of the last-seen leaderboard snapshot."""

from __future__ import annotations

import datetime as dt
import json
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Tuple

from openpyxl import Workbook

from .errors import CorruptedRecordError, StorageError
from .models import Leaderboard

SQLITE_PREFIX = "sqlite://"
EXPORT_HEADERS = [
    "member_id",
    "name",
    "stars",
    "local_score",
    "global_score",
    "last_star_ts",
    "completed_puzzles",
]


class LeaderboardStorage(Protocol):
    """Protocol defining where the previous snapshot lives between runs."""

    def load_previous(self, leaderboard_id: int,
                      year: int) -> Optional[Leaderboard]:
        """Return the last saved snapshot, or ``None`` if there is none."""
        ...

    def save(self, leaderboard_id: int, year: int,
             leaderboard: Leaderboard) -> None:
        ...


def resolve_sqlite_path(database_url: str) -> Path:
    """Translate a DATABASE_URL into a filesystem path."""
    if not database_url:
        raise ValueError("DATABASE_URL must not be empty")

    if database_url.startswith(SQLITE_PREFIX):
        raw_path = database_url[len(SQLITE_PREFIX) :]
        # Allow sqlite:///path/to/file and sqlite://path/to/file styles.
        if raw_path.startswith("/"):
            raw_path = raw_path[1:]
        path = Path(raw_path)
    else:
        path = Path(database_url)

    if not path.is_absolute():
        path = Path.cwd() / path

    return path.expanduser().resolve()


def decode_leaderboard(data: str) -> Leaderboard:
    """Decode a stored snapshot, raising CorruptedRecordError if unreadable."""
    try:
        return Leaderboard.from_payload(json.loads(data))
    except (TypeError, ValueError) as exc:
        raise CorruptedRecordError(f"Stored leaderboard is corrupted: {exc}") from exc


def encode_leaderboard(leaderboard: Leaderboard) -> str:
    return json.dumps(leaderboard.to_payload(), ensure_ascii=False, sort_keys=True)


@dataclass
class Database:
    """Thin wrapper around sqlite3 for storing snapshots and run history."""

    path: Path

    def connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.path)

    def initialize(self) -> None:
        try:
            with self.connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS runs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        executed_at TEXT NOT NULL,
                        leaderboard_id INTEGER,
                        year INTEGER,
                        status TEXT NOT NULL,
                        notes TEXT
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS leaderboards (
                        leaderboard_id INTEGER NOT NULL,
                        year INTEGER NOT NULL,
                        data TEXT NOT NULL,
                        saved_at TEXT NOT NULL,
                        PRIMARY KEY(leaderboard_id, year)
                    )
                    """
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not initialize {self.path}: {exc}") from exc

    def load_previous(self, leaderboard_id: int,
                      year: int) -> Optional[Leaderboard]:
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT data FROM leaderboards WHERE leaderboard_id = ? AND year = ?",
                    (leaderboard_id, year),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(
                f"Could not load leaderboard {leaderboard_id} ({year}): {exc}"
            ) from exc
        if not row:
            return None
        return decode_leaderboard(row[0])

    def save(self, leaderboard_id: int, year: int,
             leaderboard: Leaderboard) -> None:
        data = encode_leaderboard(leaderboard)
        saved_at = dt.datetime.now(dt.timezone.utc).isoformat()
        try:
            with self.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO leaderboards (leaderboard_id, year, data, saved_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(leaderboard_id, year) DO UPDATE SET
                        data=excluded.data,
                        saved_at=excluded.saved_at
                    """,
                    (leaderboard_id, year, data, saved_at),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(
                f"Could not save leaderboard {leaderboard_id} ({year}): {exc}"
            ) from exc

    def add_run(
        self,
        executed_at: str,
        status: str,
        notes: str | None,
        leaderboard_id: int | None = None,
        year: int | None = None,
    ) -> None:
        try:
            with self.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO runs (executed_at, leaderboard_id, year, status, notes)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (executed_at, leaderboard_id, year, status, notes),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not record run at {executed_at}: {exc}") from exc

    def recent_runs(self, limit: int = 10) -> Iterable[Tuple[str, str, str | None]]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT executed_at, status, notes FROM runs ORDER BY id DESC LIMIT ?",
                (limit,),
            )
            yield from cursor.fetchall()

    def export_members_to_xlsx(self, path: Path, leaderboard_id: int,
                               year: int) -> int:
        """Write the stored snapshot's members to a workbook.

        Returns the number of exported members.
        """
        leaderboard = self.load_previous(leaderboard_id, year)
        members = list(leaderboard.members.values()) if leaderboard else []
        members.sort(key=lambda member: (-member.stars, -member.local_score, member.id))

        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = f"{leaderboard_id}-{year}"
        worksheet.append(EXPORT_HEADERS)
        for member in members:
            worksheet.append([
                member.id,
                member.display_name,
                member.stars,
                member.local_score,
                member.global_score,
                member.last_star_ts,
                ", ".join(f"{day}/{part}" for day, part in member.completed_puzzles()),
            ])

        path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(path)
        return len(members)


@dataclass
class MemoryStorage:
    """Keeps snapshots in a dict; useful for tests and one-shot embedding."""

    previous: Dict[Tuple[int, int], Leaderboard] = field(default_factory=dict)

    @classmethod
    def with_previous(cls, leaderboard_id: int, year: int,
                      leaderboard: Leaderboard) -> "MemoryStorage":
        return cls(previous={(leaderboard_id, year): leaderboard})

    def __len__(self) -> int:
        return len(self.previous)

    def load_previous(self, leaderboard_id: int,
                      year: int) -> Optional[Leaderboard]:
        return self.previous.get((leaderboard_id, year))

    def save(self, leaderboard_id: int, year: int,
             leaderboard: Leaderboard) -> None:
        self.previous[(leaderboard_id, year)] = leaderboard
