"""SQLite-backed question pool, progress store and name directory."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from quiz_bot.core.errors import PoolUnavailableError, StoreUnavailableError
from quiz_bot.core.models import QuizItem, UserProgress

SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    id TEXT PRIMARY KEY,
    prompt TEXT NOT NULL,
    correct_meaning TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_progress (
    user_id TEXT PRIMARY KEY,
    level INTEGER NOT NULL DEFAULT 1,
    score INTEGER NOT NULL DEFAULT 0,
    asked_history TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS usernames (
    user_id TEXT PRIMARY KEY,
    username TEXT NOT NULL
);
"""


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Return a SQLite connection with a row factory."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str | Path) -> None:
    """Create the database file and all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()


def replace_questions(db_path: str | Path, items: Iterable[QuizItem]) -> int:
    """Replace the whole question pool with ``items`` and return the new size."""
    rows = [(item.id, item.prompt, item.correct_meaning) for item in items]
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("DELETE FROM questions")
            conn.executemany(
                "INSERT OR REPLACE INTO questions (id, prompt, correct_meaning) VALUES (?, ?, ?)",
                rows,
            )
        return conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    finally:
        conn.close()


class SqliteQuestionPool:
    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    async def fetch_all(self) -> list[QuizItem]:
        try:
            return await asyncio.to_thread(self._fetch_all)
        except sqlite3.Error as exc:
            raise PoolUnavailableError(f"Could not read questions: {exc}") from exc

    def _fetch_all(self) -> list[QuizItem]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT id, prompt, correct_meaning FROM questions ORDER BY rowid"
            ).fetchall()
        finally:
            conn.close()
        return [QuizItem(id=row["id"], prompt=row["prompt"], correct_meaning=row["correct_meaning"]) for row in rows]


class SqliteProgressStore:
    """Progress records, one row per user; asked history is a JSON array."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    async def get(self, user_id: str) -> UserProgress | None:
        return await self._call(self._get, user_id)

    async def put(self, user_id: str, progress: UserProgress) -> None:
        if progress.user_id != user_id:
            raise ValueError("Progress record belongs to a different user.")
        await self._call(self._put, user_id, progress)

    async def get_all(self) -> list[tuple[str, UserProgress]]:
        return await self._call(self._get_all)

    async def _call(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Progress store failure: {exc}") from exc

    def _get(self, user_id: str) -> UserProgress | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT user_id, level, score, asked_history FROM user_progress WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        finally:
            conn.close()
        return _row_to_progress(row) if row is not None else None

    def _put(self, user_id: str, progress: UserProgress) -> None:
        history = json.dumps(sorted(progress.asked_history), ensure_ascii=False)
        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute(
                    """INSERT INTO user_progress (user_id, level, score, asked_history)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        level = excluded.level,
                        score = excluded.score,
                        asked_history = excluded.asked_history""",
                    (user_id, progress.level, progress.score, history),
                )
        finally:
            conn.close()

    def _get_all(self) -> list[tuple[str, UserProgress]]:
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                "SELECT user_id, level, score, asked_history FROM user_progress ORDER BY rowid"
            ).fetchall()
        finally:
            conn.close()
        return [(row["user_id"], _row_to_progress(row)) for row in rows]


class SqliteNameDirectory:
    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    async def remember(self, user_id: str, username: str) -> None:
        try:
            await asyncio.to_thread(self._remember, user_id, username)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Could not save username: {exc}") from exc

    async def lookup(self, user_id: str) -> str | None:
        try:
            return await asyncio.to_thread(self._lookup, user_id)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Could not read username: {exc}") from exc

    def _remember(self, user_id: str, username: str) -> None:
        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO usernames (user_id, username) VALUES (?, ?)",
                    (user_id, username),
                )
        finally:
            conn.close()

    def _lookup(self, user_id: str) -> str | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute(
                "SELECT username FROM usernames WHERE user_id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()
        return row["username"] if row is not None else None


def _row_to_progress(row: sqlite3.Row) -> UserProgress:
    return UserProgress(
        user_id=row["user_id"],
        level=row["level"],
        score=row["score"],
        asked_history=frozenset(json.loads(row["asked_history"] or "[]")),
    )
