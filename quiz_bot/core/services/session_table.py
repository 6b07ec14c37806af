"""Keyed table of live quiz sessions, one per user."""

from __future__ import annotations

import asyncio
import weakref

from quiz_bot.core.services.game_session import QuizSession


class SessionTable:
    """Holds the live session of every user currently playing.

    Each user has its own ``asyncio.Lock``; callers hold it while handling an
    event so that one user's events run to completion one at a time without
    blocking anyone else. Locks are held weakly: an entry lives only while some
    caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, QuizSession] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def lock_count(self) -> int:
        return len(self._locks)

    def get(self, user_id: str) -> QuizSession | None:
        return self._sessions.get(user_id)

    def replace(self, user_id: str, session: QuizSession) -> QuizSession | None:
        """Install ``session`` for ``user_id`` and return whatever it displaced."""
        if session.user_id != user_id:
            raise ValueError("Session belongs to a different user.")
        previous = self._sessions.get(user_id)
        self._sessions[user_id] = session
        return previous

    def remove(self, user_id: str, expected: QuizSession | None = None) -> QuizSession | None:
        """Drop the session for ``user_id``.

        When ``expected`` is given, the entry is only removed if it is still
        that exact session.
        """
        current = self._sessions.get(user_id)
        if current is None:
            return None
        if expected is not None and current is not expected:
            return None
        del self._sessions[user_id]
        return current

    def active_user_ids(self) -> list[str]:
        return list(self._sessions)

    def drain(self) -> list[QuizSession]:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        return sessions
