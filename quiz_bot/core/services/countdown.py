"""Countdown timers that race each question against the user's answer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerToken:
    """Handle for one scheduled countdown, fenced by ``(user_id, question_index)``.

    The fields are fixed at creation. Cancelling a token that has already
    fired only marks it; the callback is expected to re-validate the fence
    against live session state before acting.
    """

    __slots__ = ("user_id", "question_index", "_task", "_cancelled", "_fired")

    def __init__(self, user_id: str, question_index: int) -> None:
        self.user_id = user_id
        self.question_index = question_index
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self._fired = False

    def __repr__(self) -> str:
        return (
            f"TimerToken(user_id={self.user_id!r}, question_index={self.question_index}, "
            f"cancelled={self._cancelled}, fired={self._fired})"
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._fired and not self._task.done():
            self._task.cancel()

    def mark_fired(self) -> None:
        self._fired = True


TimeoutCallback = Callable[[TimerToken], Awaitable[object]]


class CountdownScheduler(Protocol):
    def schedule(
        self,
        user_id: str,
        question_index: int,
        delay_seconds: float,
        callback: TimeoutCallback,
    ) -> TimerToken: ...

    async def shutdown(self) -> None: ...


class AsyncioCountdownScheduler:
    """Runs each countdown as an asyncio task on the running loop."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(
        self,
        user_id: str,
        question_index: int,
        delay_seconds: float,
        callback: TimeoutCallback,
    ) -> TimerToken:
        token = TimerToken(user_id, question_index)
        task = asyncio.get_running_loop().create_task(
            self._run(token, delay_seconds, callback),
            name=f"quiz-timer-{user_id}-{question_index}",
        )
        token._task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return token

    async def _run(self, token: TimerToken, delay_seconds: float, callback: TimeoutCallback) -> None:
        await asyncio.sleep(delay_seconds)
        if token.cancelled:
            return
        token.mark_fired()
        try:
            await callback(token)
        except Exception:
            logger.exception(
                "Timeout handler failed for user %s question %s",
                token.user_id,
                token.question_index,
            )

    def pending_count(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
