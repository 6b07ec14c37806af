"""Service for building the global leaderboard from stored progress."""

from __future__ import annotations

from dataclasses import dataclass

from quiz_bot.constants.message_constants import (
    LEADERBOARD_ROW_TEMPLATE,
    LEADERBOARD_TITLE,
    NO_SCORES_MESSAGE,
)
from quiz_bot.constants.quiz_constants import LEADERBOARD_SIZE
from quiz_bot.core.models import LeaderboardEntry
from quiz_bot.core.name_resolver import NameResolver
from quiz_bot.core.stores.base import ProgressStore


@dataclass(frozen=True, slots=True)
class Leaderboard:
    """Immutable snapshot returned to consumers."""

    entries: tuple[LeaderboardEntry, ...]

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def render(self) -> str:
        if self.is_empty:
            return NO_SCORES_MESSAGE
        rows = [
            LEADERBOARD_ROW_TEMPLATE.format(rank=entry.rank, name=entry.display_name, score=entry.score)
            for entry in self.entries
        ]
        return f"{LEADERBOARD_TITLE}\n\n" + "\n".join(rows)


class LeaderboardBuilder:
    """Ranks users by their latest stored score."""

    def __init__(self, store: ProgressStore, names: NameResolver) -> None:
        self._store = store
        self._names = names

    async def build_leaderboard(self, top_n: int = LEADERBOARD_SIZE) -> Leaderboard:
        if top_n <= 0:
            return Leaderboard(entries=())
        records = await self._store.get_all()
        # sorted() is stable, so equal scores keep the store's read order.
        ranked = sorted(records, key=lambda record: -record[1].score)[:top_n]
        entries = []
        for rank, (user_id, progress) in enumerate(ranked, start=1):
            entries.append(
                LeaderboardEntry(
                    rank=rank,
                    display_name=await self._names.resolve(user_id),
                    score=progress.score,
                )
            )
        return Leaderboard(entries=tuple(entries))
