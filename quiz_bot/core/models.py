"""Domain models for the quiz bot."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from quiz_bot.constants.quiz_constants import STARTING_LEVEL


@dataclass(frozen=True, slots=True)
class QuizItem:
    """One entry of the question pool: a prompt and the meaning to pick."""

    id: str
    prompt: str
    correct_meaning: str


@dataclass(frozen=True, slots=True)
class UserProgress:
    """Durable per-user progress record kept by the progress store."""

    user_id: str
    level: int = STARTING_LEVEL
    score: int = 0
    asked_history: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.level < 1:
            raise ValueError("Level must be at least 1.")
        if self.score < 0:
            raise ValueError("Score cannot be negative.")

    @classmethod
    def initial(cls, user_id: str) -> "UserProgress":
        return cls(user_id=user_id)


@dataclass(frozen=True, slots=True)
class OptionSet:
    """Shuffled answer options for a single question."""

    question: QuizItem
    options: tuple[QuizItem, ...]

    @property
    def correct_index(self) -> int:
        return next(i for i, item in enumerate(self.options) if item.id == self.question.id)

    def is_correct(self, option_index: int) -> bool:
        return 0 <= option_index < len(self.options) and self.options[option_index].id == self.question.id


class SessionState(Enum):
    AWAITING_START = "awaiting_start"
    AWAITING_ANSWER = "awaiting_answer"
    COMPLETED = "completed"
    QUIT = "quit"


class EventOutcome(Enum):
    """Result of feeding an inbound event to the engine."""

    APPLIED = "applied"
    STALE = "stale"
    NO_SESSION = "no_session"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AnswerOption:
    """An option as shown to the user, with the callback data of its button."""

    text: str
    callback_data: str


@dataclass(frozen=True, slots=True)
class ShowQuestion:
    user_id: str
    question_index: int
    total_questions: int
    prompt_text: str
    options: tuple[AnswerOption, ...]
    time_limit_seconds: float


@dataclass(frozen=True, slots=True)
class ShowResult:
    user_id: str
    text: str


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    display_name: str
    score: int


@dataclass(frozen=True, slots=True)
class ShowLeaderboard:
    user_id: str | None
    entries: tuple[LeaderboardEntry, ...]
    text: str


OutboundMessage = ShowQuestion | ShowResult | ShowLeaderboard


@dataclass(slots=True)
class ProgressSnapshot:
    """Progress summary returned to callers of ``request_progress``."""

    user_id: str
    level: int
    score: int
    asked_count: int = 0
