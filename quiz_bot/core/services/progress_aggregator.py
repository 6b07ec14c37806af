"""Folds a finished session into the user's durable progress."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from quiz_bot.constants.quiz_constants import PROGRESS_WRITE_ATTEMPTS
from quiz_bot.core.errors import StoreUnavailableError
from quiz_bot.core.models import UserProgress
from quiz_bot.core.services.game_session import QuizSession
from quiz_bot.core.stores.base import ProgressStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AggregationResult:
    progress: UserProgress | None
    previous_level: int | None
    saved: bool

    @property
    def leveled_up(self) -> bool:
        if self.progress is None or self.previous_level is None:
            return False
        return self.progress.level > self.previous_level


def compute_level(current_level: int, score: int, presented: int) -> int:
    """Level goes up by one when at least half of the shown questions were correct."""
    if presented <= 0:
        return current_level
    if score >= math.ceil(presented / 2):
        return current_level + 1
    return current_level


def merge_history(history: Iterable[str], session_ids: Iterable[str]) -> frozenset[str]:
    return frozenset(history) | frozenset(session_ids)


def aggregate(current: UserProgress, score: int, presented: int, session_ids: Iterable[str]) -> UserProgress:
    return UserProgress(
        user_id=current.user_id,
        level=compute_level(current.level, score, presented),
        score=score,
        asked_history=merge_history(current.asked_history, session_ids),
    )


class ProgressAggregator:
    """Writes completed sessions through the progress store.

    A failed read or write is retried up to ``write_attempts`` times. After
    that the result is logged and reported as unsaved; it never raises.
    """

    def __init__(self, store: ProgressStore, write_attempts: int = PROGRESS_WRITE_ATTEMPTS) -> None:
        if write_attempts < 1:
            raise ValueError("At least one write attempt is required.")
        self._store = store
        self._write_attempts = write_attempts

    async def finalize(self, session: QuizSession) -> AggregationResult:
        user_id = session.user_id
        last_error: StoreUnavailableError | None = None
        for attempt in range(1, self._write_attempts + 1):
            try:
                current = await self._store.get(user_id) or UserProgress.initial(user_id)
                updated = aggregate(
                    current,
                    session.score,
                    session.presented_count,
                    session.session_asked_ids,
                )
                await self._store.put(user_id, updated)
            except StoreUnavailableError as exc:
                last_error = exc
                logger.warning(
                    "Saving progress for user %s failed (attempt %d/%d): %s",
                    user_id,
                    attempt,
                    self._write_attempts,
                    exc,
                )
                continue
            logger.info(
                "Saved progress for user %s: score=%d level=%d history=%d",
                user_id,
                updated.score,
                updated.level,
                len(updated.asked_history),
            )
            return AggregationResult(progress=updated, previous_level=current.level, saved=True)

        logger.error(
            "Progress for user %s was not saved after %d attempts",
            user_id,
            self._write_attempts,
            exc_info=last_error,
        )
        return AggregationResult(progress=None, previous_level=None, saved=False)
