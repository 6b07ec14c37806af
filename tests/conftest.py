from __future__ import annotations

import random

import pytest

from quiz_bot.core.errors import StoreUnavailableError
from quiz_bot.core.models import QuizItem, ShowQuestion, ShowResult
from quiz_bot.core.quiz_manager import QuizManager
from quiz_bot.core.services.countdown import TimeoutCallback, TimerToken
from quiz_bot.core.services.question_selector import QuestionSelector
from quiz_bot.core.stores.memory_store import (
    InMemoryNameDirectory,
    InMemoryProgressStore,
    InMemoryQuestionPool,
)
from quiz_bot.core.transport import OutboxTransport


def make_items(count: int, prefix: str = "Name") -> list[QuizItem]:
    return [
        QuizItem(id=f"{prefix}-{i}", prompt=f"{prefix}-{i}", correct_meaning=f"Meaning {prefix}-{i}")
        for i in range(count)
    ]


class ManualScheduler:
    """Records countdowns instead of sleeping; tests fire them explicitly."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[TimerToken, TimeoutCallback, float]] = []

    def schedule(self, user_id, question_index, delay_seconds, callback) -> TimerToken:
        token = TimerToken(user_id, question_index)
        self.scheduled.append((token, callback, delay_seconds))
        return token

    def pending(self, user_id: str | None = None) -> list[TimerToken]:
        return [
            token
            for token, _, _ in self.scheduled
            if not token.cancelled and not token.fired and (user_id is None or token.user_id == user_id)
        ]

    def latest(self, user_id: str) -> TimerToken:
        return [token for token, _, _ in self.scheduled if token.user_id == user_id][-1]

    async def fire(self, token: TimerToken, force: bool = False):
        """Run the token's callback; ``force`` simulates a firing that raced a cancel."""
        callback = next(cb for tok, cb, _ in self.scheduled if tok is token)
        if token.cancelled and not force:
            return None
        token.mark_fired()
        return await callback(token)

    async def shutdown(self) -> None:
        for token in self.pending():
            token.cancel()


class FlakyProgressStore(InMemoryProgressStore):
    """In-memory store whose reads or writes fail a set number of times."""

    def __init__(self, failing_gets: int = 0, failing_puts: int = 0) -> None:
        super().__init__()
        self.failing_gets = failing_gets
        self.failing_puts = failing_puts
        self.put_attempts = 0

    async def get(self, user_id):
        if self.failing_gets > 0:
            self.failing_gets -= 1
            raise StoreUnavailableError("read failed")
        return await super().get(user_id)

    async def put(self, user_id, progress):
        self.put_attempts += 1
        if self.failing_puts > 0:
            self.failing_puts -= 1
            raise StoreUnavailableError("write failed")
        await super().put(user_id, progress)


def results_for(outbox: OutboxTransport, user_id: str) -> list[str]:
    return [message.text for message in outbox.peek(user_id) if isinstance(message, ShowResult)]


def questions_for(outbox: OutboxTransport, user_id: str) -> list[ShowQuestion]:
    return [message for message in outbox.peek(user_id) if isinstance(message, ShowQuestion)]


@pytest.fixture
def pool() -> InMemoryQuestionPool:
    return InMemoryQuestionPool(make_items(20))


@pytest.fixture
def progress_store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.fixture
def names() -> InMemoryNameDirectory:
    return InMemoryNameDirectory()


@pytest.fixture
def outbox() -> OutboxTransport:
    return OutboxTransport()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def selector() -> QuestionSelector:
    return QuestionSelector(rng=random.Random(1234))


@pytest.fixture
def manager(pool, progress_store, names, outbox, scheduler, selector) -> QuizManager:
    return QuizManager(
        pool,
        progress_store,
        names,
        outbox,
        scheduler=scheduler,
        selector=selector,
    )
