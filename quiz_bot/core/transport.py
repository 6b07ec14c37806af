"""Outbound side of the chat transport and the option button callback format."""

from __future__ import annotations

import logging
import re
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Protocol

from quiz_bot.core.models import OutboundMessage, ShowLeaderboard, ShowQuestion, ShowResult

logger = logging.getLogger(__name__)

_CALLBACK_PATTERN = re.compile(r"^answer_(?P<user_id>.+)_(?P<index>\d+)_(?P<correct>true|false)$")
BROADCAST_KEY = "*"


class CallbackDataError(ValueError):
    """Raised when button callback data does not match the answer format."""


@dataclass(frozen=True, slots=True)
class AnswerCallback:
    user_id: str
    question_index: int
    is_correct: bool


def encode_answer_callback(user_id: str, question_index: int, is_correct: bool) -> str:
    return f"answer_{user_id}_{question_index}_{'true' if is_correct else 'false'}"


def decode_answer_callback(data: str) -> AnswerCallback:
    match = _CALLBACK_PATTERN.match(data.strip())
    if match is None:
        raise CallbackDataError(f"Unrecognised callback data: {data!r}")
    return AnswerCallback(
        user_id=match.group("user_id"),
        question_index=int(match.group("index")),
        is_correct=match.group("correct") == "true",
    )


class ChatTransport(Protocol):
    async def send(self, message: OutboundMessage) -> None: ...


class OutboxTransport:
    """Queues outbound messages per user until the chat side collects them.

    At most ``max_users`` queues are kept; when a new user would exceed that,
    the queue that was written to least recently is dropped.
    """

    def __init__(self, max_per_user: int = 100, max_users: int = 10_000) -> None:
        if max_per_user < 1 or max_users < 1:
            raise ValueError("Outbox limits must be positive.")
        self._max_per_user = max_per_user
        self._max_users = max_users
        self._queues: OrderedDict[str, deque[OutboundMessage]] = OrderedDict()

    async def send(self, message: OutboundMessage) -> None:
        key = message.user_id if message.user_id is not None else BROADCAST_KEY
        queue = self._queues.get(key)
        if queue is None:
            queue = deque(maxlen=self._max_per_user)
            self._queues[key] = queue
            while len(self._queues) > self._max_users:
                dropped, _ = self._queues.popitem(last=False)
                logger.warning("Outbox full, dropped undelivered messages for %s", dropped)
        else:
            self._queues.move_to_end(key)
        queue.append(message)
        logger.debug("Queued %s for %s", type(message).__name__, key)

    def drain(self, user_id: str) -> list[OutboundMessage]:
        queue = self._queues.pop(user_id, None)
        return list(queue) if queue else []

    def peek(self, user_id: str) -> list[OutboundMessage]:
        return list(self._queues.get(user_id, ()))

    def user_count(self) -> int:
        return len(self._queues)


def message_kind(message: OutboundMessage) -> str:
    if isinstance(message, ShowQuestion):
        return "question"
    if isinstance(message, ShowLeaderboard):
        return "leaderboard"
    if isinstance(message, ShowResult):
        return "result"
    raise TypeError(f"Unknown outbound message type: {type(message).__name__}")
