"""Exception hierarchy for the quiz engine and its collaborators."""

from __future__ import annotations


class QuizBotError(Exception):
    """Base class for recoverable quiz bot failures."""


class EmptyPoolError(QuizBotError):
    """Raised when the question pool contains no items at all."""


class InsufficientPoolError(QuizBotError):
    """Raised when a question cannot be given enough distinct distractors."""

    def __init__(self, item_id: str, required: int, available: int) -> None:
        super().__init__(
            f"Question '{item_id}' needs {required} distractors but only {available} exist."
        )
        self.item_id = item_id
        self.required = required
        self.available = available


class PoolUnavailableError(QuizBotError):
    """Raised when the question pool backend cannot be read."""


class StoreUnavailableError(QuizBotError):
    """Raised when the progress store cannot be read or written."""
