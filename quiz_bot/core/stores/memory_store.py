"""In-process implementations of the storage interfaces."""

from __future__ import annotations

from collections.abc import Iterable

from quiz_bot.core.models import QuizItem, UserProgress


class InMemoryQuestionPool:
    def __init__(self, items: Iterable[QuizItem] = ()) -> None:
        self._items: list[QuizItem] = list(items)

    async def fetch_all(self) -> list[QuizItem]:
        return list(self._items)

    def load(self, items: Iterable[QuizItem]) -> None:
        self._items = list(items)


class InMemoryProgressStore:
    """Progress records kept in a dict; insertion order is preserved."""

    def __init__(self) -> None:
        self._records: dict[str, UserProgress] = {}

    async def get(self, user_id: str) -> UserProgress | None:
        return self._records.get(user_id)

    async def put(self, user_id: str, progress: UserProgress) -> None:
        if progress.user_id != user_id:
            raise ValueError("Progress record belongs to a different user.")
        self._records[user_id] = progress

    async def get_all(self) -> list[tuple[str, UserProgress]]:
        return list(self._records.items())


class InMemoryNameDirectory:
    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    async def remember(self, user_id: str, username: str) -> None:
        self._names[user_id] = username

    async def lookup(self, user_id: str) -> str | None:
        return self._names.get(user_id)
