"""Interfaces the engine needs from its storage collaborators."""

from __future__ import annotations

from typing import Protocol

from quiz_bot.core.models import QuizItem, UserProgress


class QuestionPool(Protocol):
    """Read-only access to the full catalog of quiz items."""

    async def fetch_all(self) -> list[QuizItem]: ...


class ProgressStore(Protocol):
    """Keyed storage of per-user progress records."""

    async def get(self, user_id: str) -> UserProgress | None: ...

    async def put(self, user_id: str, progress: UserProgress) -> None: ...

    async def get_all(self) -> list[tuple[str, UserProgress]]: ...


class NameDirectory(Protocol):
    """Maps chat user ids to the display names they were last seen with."""

    async def remember(self, user_id: str, username: str) -> None: ...

    async def lookup(self, user_id: str) -> str | None: ...
