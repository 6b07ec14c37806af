"""State of one user's quiz run."""

from __future__ import annotations

from quiz_bot.core.models import QuizItem, SessionState
from quiz_bot.core.services.countdown import TimerToken


class QuizSession:
    """Manages the state of an active quiz for a single user.

    The question order is fixed when the session is created. ``current_index``
    only moves forward, and every resolution path (answer, timeout, skip)
    moves it exactly once.
    """

    def __init__(
        self,
        user_id: str,
        questions: list[QuizItem] | tuple[QuizItem, ...],
        pool: list[QuizItem] | tuple[QuizItem, ...],
    ) -> None:
        self._user_id = user_id
        self._questions: tuple[QuizItem, ...] = tuple(questions)
        self._pool: tuple[QuizItem, ...] = tuple(pool)
        self._current_index: int = 0
        self._score: int = 0
        self._presented_count: int = 0
        self._session_asked_ids: set[str] = set()
        self._active_timer: TimerToken | None = None
        self._state = SessionState.AWAITING_START

    def __repr__(self) -> str:
        return (
            f"QuizSession(user_id={self._user_id!r}, index={self._current_index}/"
            f"{len(self._questions)}, score={self._score}, state={self._state.value})"
        )

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def questions(self) -> tuple[QuizItem, ...]:
        return self._questions

    @property
    def pool(self) -> tuple[QuizItem, ...]:
        return self._pool

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def score(self) -> int:
        return self._score

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_asked_ids(self) -> frozenset[str]:
        return frozenset(self._session_asked_ids)

    @property
    def active_timer(self) -> TimerToken | None:
        return self._active_timer

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def presented_count(self) -> int:
        """Questions actually shown to the user; skipped ones are not counted."""
        return self._presented_count

    @property
    def is_finished(self) -> bool:
        return self._current_index >= len(self._questions)

    @property
    def is_live(self) -> bool:
        return self._state in (SessionState.AWAITING_START, SessionState.AWAITING_ANSWER)

    def current_question(self) -> QuizItem:
        if self.is_finished:
            raise IndexError("Session has no remaining questions.")
        return self._questions[self._current_index]

    def begin(self) -> None:
        if self._state is not SessionState.AWAITING_START:
            raise RuntimeError(f"Cannot begin a session in state {self._state.value}.")
        self._state = SessionState.AWAITING_ANSWER

    def mark_presented(self) -> None:
        self._require_awaiting_answer()
        self._presented_count += 1

    def attach_timer(self, token: TimerToken) -> None:
        """Store the countdown for the current question, cancelling any prior one."""
        if self._active_timer is not None and self._active_timer is not token:
            self._active_timer.cancel()
        self._active_timer = token

    def owns_timer(self, token: TimerToken) -> bool:
        return self._active_timer is token

    def cancel_timer(self) -> None:
        if self._active_timer is not None:
            self._active_timer.cancel()
            self._active_timer = None

    def record_answer(self, is_correct: bool) -> None:
        self._require_awaiting_answer()
        self.cancel_timer()
        if is_correct:
            self._score += 1
        self._session_asked_ids.add(self.current_question().id)
        self._current_index += 1

    def record_timeout(self) -> None:
        self._require_awaiting_answer()
        self.cancel_timer()
        # A timed-out question was still shown, so it counts as asked.
        self._session_asked_ids.add(self.current_question().id)
        self._current_index += 1

    def skip_question(self) -> None:
        """Move past the current question without showing or scoring it."""
        self._require_awaiting_answer()
        self.cancel_timer()
        self._current_index += 1

    def complete(self) -> None:
        self.cancel_timer()
        self._state = SessionState.COMPLETED

    def quit(self) -> None:
        self.cancel_timer()
        self._state = SessionState.QUIT

    def _require_awaiting_answer(self) -> None:
        if self._state is not SessionState.AWAITING_ANSWER:
            raise RuntimeError(f"Session is not awaiting an answer (state {self._state.value}).")
        if self.is_finished:
            raise RuntimeError("Session has no remaining questions.")
