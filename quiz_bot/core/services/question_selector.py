"""Picks the questions for a session and the answer options for each one."""

from __future__ import annotations

import random
from collections.abc import Collection, Sequence

from quiz_bot.constants.quiz_constants import DISTRACTOR_COUNT, QUESTIONS_PER_SESSION
from quiz_bot.core.errors import EmptyPoolError, InsufficientPoolError
from quiz_bot.core.models import OptionSet, QuizItem


class QuestionSelector:
    """Builds non-repeating question sets and shuffled option sets.

    All randomness goes through one ``random.Random`` so tests can seed it.
    ``sample`` and ``shuffle`` are both unbiased.
    """

    def __init__(
        self,
        target_size: int = QUESTIONS_PER_SESSION,
        rng: random.Random | None = None,
    ) -> None:
        if target_size <= 0:
            raise ValueError("Target size must be a positive integer.")
        self._target_size = target_size
        self._rng = rng or random.Random()

    @property
    def target_size(self) -> int:
        return self._target_size

    def set_seed(self, seed: int | None) -> None:
        self._rng.seed(seed)

    def select_questions(
        self,
        pool: Sequence[QuizItem],
        asked_history: Collection[str],
    ) -> tuple[list[QuizItem], set[str]]:
        """Return up to ``target_size`` distinct questions and their ids.

        Items already in ``asked_history`` are avoided unless fewer than
        ``target_size`` fresh items remain, in which case the whole pool is
        eligible again for this session.
        """
        unique_pool = _dedupe(pool)
        if not unique_pool:
            raise EmptyPoolError("The question pool is empty.")

        eligible = [item for item in unique_pool if item.id not in asked_history]
        if len(eligible) < self._target_size:
            eligible = unique_pool

        count = min(self._target_size, len(eligible))
        questions = self._rng.sample(eligible, count)
        return questions, {item.id for item in questions}

    def build_options(
        self,
        pool: Sequence[QuizItem],
        correct_item: QuizItem,
        k: int = DISTRACTOR_COUNT,
    ) -> OptionSet:
        """Return ``k`` distractors plus ``correct_item`` in uniformly random order."""
        seen_meanings = {correct_item.correct_meaning}
        candidates: list[QuizItem] = []
        for item in _dedupe(pool):
            if item.id == correct_item.id or item.correct_meaning in seen_meanings:
                continue
            seen_meanings.add(item.correct_meaning)
            candidates.append(item)

        if len(candidates) < k:
            raise InsufficientPoolError(correct_item.id, required=k, available=len(candidates))

        options = self._rng.sample(candidates, k)
        options.append(correct_item)
        self._rng.shuffle(options)
        return OptionSet(question=correct_item, options=tuple(options))


def _dedupe(pool: Sequence[QuizItem]) -> list[QuizItem]:
    seen: set[str] = set()
    unique: list[QuizItem] = []
    for item in pool:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique
