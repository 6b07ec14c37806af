"""Business logic for running per-user quiz sessions over chat."""

from __future__ import annotations

import logging

from quiz_bot.constants import message_constants as messages
from quiz_bot.constants.about import APP_NAME, HELP_TEXT
from quiz_bot.constants.quiz_constants import (
    DISTRACTOR_COUNT,
    LEADERBOARD_SIZE,
    QUESTION_TIME_LIMIT_SECONDS,
)
from quiz_bot.core.errors import (
    EmptyPoolError,
    InsufficientPoolError,
    PoolUnavailableError,
    StoreUnavailableError,
)
from quiz_bot.core.models import (
    AnswerOption,
    EventOutcome,
    OptionSet,
    ProgressSnapshot,
    ShowLeaderboard,
    ShowQuestion,
    ShowResult,
)
from quiz_bot.core.name_resolver import NameResolver
from quiz_bot.core.services.countdown import (
    AsyncioCountdownScheduler,
    CountdownScheduler,
    TimerToken,
)
from quiz_bot.core.services.game_session import QuizSession
from quiz_bot.core.services.progress_aggregator import ProgressAggregator
from quiz_bot.core.services.question_selector import QuestionSelector
from quiz_bot.core.services.scoreboard import Leaderboard, LeaderboardBuilder
from quiz_bot.core.services.session_table import SessionTable
from quiz_bot.core.stores.base import NameDirectory, ProgressStore, QuestionPool
from quiz_bot.core.transport import ChatTransport, encode_answer_callback

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade over the selector, session table, aggregator and leaderboard.

    Every inbound event for a user runs under that user's lock from the
    session table. Timer callbacks take the same lock and re-check the
    ``(user_id, question_index)`` fence and their token before acting, so an
    answer and a timeout for the same question can never both take effect.
    """

    def __init__(
        self,
        pool: QuestionPool,
        progress_store: ProgressStore,
        names: NameDirectory,
        transport: ChatTransport,
        *,
        scheduler: CountdownScheduler | None = None,
        selector: QuestionSelector | None = None,
        aggregator: ProgressAggregator | None = None,
        time_limit_seconds: float = QUESTION_TIME_LIMIT_SECONDS,
        distractor_count: int = DISTRACTOR_COUNT,
        leaderboard_size: int = LEADERBOARD_SIZE,
    ) -> None:
        if time_limit_seconds <= 0:
            raise ValueError("Time limit must be positive.")
        self._pool = pool
        self._progress = progress_store
        self._names = NameResolver(names)
        self._transport = transport
        self._scheduler = scheduler or AsyncioCountdownScheduler()
        self._selector = selector or QuestionSelector()
        self._aggregator = aggregator or ProgressAggregator(progress_store)
        self._leaderboard = LeaderboardBuilder(progress_store, self._names)
        self._sessions = SessionTable()
        self._time_limit_seconds = time_limit_seconds
        self._distractor_count = distractor_count
        self._leaderboard_size = leaderboard_size

    @property
    def sessions(self) -> SessionTable:
        return self._sessions

    @property
    def time_limit_seconds(self) -> float:
        return self._time_limit_seconds

    def get_session(self, user_id: str) -> QuizSession | None:
        return self._sessions.get(user_id)

    # --- Inbound events ---

    async def welcome(self, user_id: str) -> None:
        text = messages.WELCOME_MESSAGE.format(app_name=APP_NAME) + "\n\n" + HELP_TEXT
        await self._reply(user_id, text)

    async def start_quiz(self, user_id: str, username: str | None = None) -> EventOutcome:
        async with self._sessions.lock_for(user_id):
            await self._remember_username(user_id, username)

            previous = self._sessions.remove(user_id)
            if previous is not None:
                previous.quit()
                logger.info("Discarded unfinished session for user %s at question %d", user_id, previous.current_index)

            try:
                pool = await self._pool.fetch_all()
                progress = await self._progress.get(user_id)
                history = progress.asked_history if progress is not None else frozenset()
                questions, _ = self._selector.select_questions(pool, history)
            except (EmptyPoolError, PoolUnavailableError) as exc:
                logger.warning("Cannot start quiz for user %s: %s", user_id, exc)
                await self._reply(user_id, messages.POOL_EMPTY_MESSAGE)
                return EventOutcome.FAILED
            except StoreUnavailableError as exc:
                logger.warning("Cannot start quiz for user %s: %s", user_id, exc)
                await self._reply(user_id, messages.STORE_UNAVAILABLE_MESSAGE)
                return EventOutcome.FAILED

            session = QuizSession(user_id, questions, pool)
            self._sessions.replace(user_id, session)
            session.begin()
            logger.info("Started quiz for user %s with %d questions", user_id, session.total_questions)
            return await self._emit_question(session)

    async def select_option(self, user_id: str, question_index: int, is_correct: bool) -> EventOutcome:
        async with self._sessions.lock_for(user_id):
            session = self._sessions.get(user_id)
            if session is None:
                logger.debug("Answer from user %s without a live session", user_id)
                await self._reply(user_id, messages.SESSION_ENDED_MESSAGE)
                return EventOutcome.NO_SESSION
            if question_index != session.current_index:
                logger.debug(
                    "Stale answer from user %s for question %d (current %d)",
                    user_id,
                    question_index,
                    session.current_index,
                )
                await self._reply(user_id, messages.STALE_ANSWER_MESSAGE)
                return EventOutcome.STALE

            session.record_answer(is_correct)
            await self._reply(user_id, messages.CORRECT_MESSAGE if is_correct else messages.WRONG_MESSAGE)
            return await self._emit_question(session)

    async def handle_timeout(
        self,
        user_id: str,
        timed_out_index: int,
        token: TimerToken | None = None,
    ) -> EventOutcome:
        async with self._sessions.lock_for(user_id):
            session = self._sessions.get(user_id)
            if session is None:
                logger.debug("Timeout for user %s without a live session", user_id)
                return EventOutcome.NO_SESSION
            if session.current_index != timed_out_index or (token is not None and not session.owns_timer(token)):
                logger.debug(
                    "Stale timeout for user %s question %d (current %d)",
                    user_id,
                    timed_out_index,
                    session.current_index,
                )
                return EventOutcome.STALE

            session.record_timeout()
            await self._reply(user_id, messages.TIME_UP_MESSAGE)
            return await self._emit_question(session)

    async def quit_quiz(self, user_id: str) -> EventOutcome:
        async with self._sessions.lock_for(user_id):
            session = self._sessions.remove(user_id)
            if session is None:
                await self._reply(user_id, messages.NO_ACTIVE_QUIZ_MESSAGE)
                return EventOutcome.NO_SESSION
            session.quit()
            logger.info("User %s quit at question %d", user_id, session.current_index)
            await self._reply(user_id, messages.QUIZ_STOPPED_MESSAGE)
            return EventOutcome.APPLIED

    async def request_progress(self, user_id: str) -> ProgressSnapshot | None:
        try:
            progress = await self._progress.get(user_id)
        except StoreUnavailableError as exc:
            logger.warning("Progress lookup failed for user %s: %s", user_id, exc)
            await self._reply(user_id, messages.STORE_UNAVAILABLE_MESSAGE)
            return None

        if progress is None:
            await self._reply(user_id, messages.NO_PROGRESS_MESSAGE)
            return ProgressSnapshot(user_id=user_id, level=1, score=0)

        await self._reply(
            user_id,
            messages.PROGRESS_TEMPLATE.format(score=progress.score, level=progress.level),
        )
        return ProgressSnapshot(
            user_id=user_id,
            level=progress.level,
            score=progress.score,
            asked_count=len(progress.asked_history),
        )

    async def request_leaderboard(self, user_id: str | None = None) -> Leaderboard | None:
        try:
            leaderboard = await self._leaderboard.build_leaderboard(self._leaderboard_size)
        except StoreUnavailableError as exc:
            logger.warning("Leaderboard unavailable: %s", exc)
            if user_id is not None:
                await self._reply(user_id, messages.STORE_UNAVAILABLE_MESSAGE)
            return None
        await self._transport.send(
            ShowLeaderboard(user_id=user_id, entries=leaderboard.entries, text=leaderboard.render())
        )
        return leaderboard

    async def shutdown(self) -> None:
        """Cancel every live session's timer and stop the scheduler."""
        for session in self._sessions.drain():
            session.quit()
        await self._scheduler.shutdown()

    # --- Session flow ---

    async def _emit_question(self, session: QuizSession) -> EventOutcome:
        while not session.is_finished:
            item = session.current_question()
            try:
                option_set = self._selector.build_options(session.pool, item, k=self._distractor_count)
            except InsufficientPoolError as exc:
                logger.warning("Skipping question for user %s: %s", session.user_id, exc)
                session.skip_question()
                continue

            await self._transport.send(self._build_show_question(session, option_set))
            session.mark_presented()
            token = self._scheduler.schedule(
                session.user_id,
                session.current_index,
                self._time_limit_seconds,
                self._on_timer_expired,
            )
            session.attach_timer(token)
            return EventOutcome.APPLIED

        if session.presented_count == 0:
            return await self._abandon_unplayable(session)
        return await self._complete(session)

    async def _complete(self, session: QuizSession) -> EventOutcome:
        session.complete()
        self._sessions.remove(session.user_id, session)
        logger.info(
            "User %s finished quiz with %d/%d",
            session.user_id,
            session.score,
            session.presented_count,
        )

        result = await self._aggregator.finalize(session)
        lines = [messages.QUIZ_FINISHED_TEMPLATE.format(score=session.score, total=session.presented_count)]
        if result.leveled_up and result.progress is not None:
            lines.append(messages.LEVEL_UP_TEMPLATE.format(level=result.progress.level))
        if not result.saved:
            lines.append(messages.PROGRESS_NOT_SAVED_MESSAGE)
        await self._reply(session.user_id, "\n".join(lines))
        return EventOutcome.COMPLETED

    async def _abandon_unplayable(self, session: QuizSession) -> EventOutcome:
        session.quit()
        self._sessions.remove(session.user_id, session)
        logger.warning(
            "No question could be shown to user %s; %d selected questions were skipped",
            session.user_id,
            session.total_questions,
        )
        await self._reply(session.user_id, messages.POOL_EMPTY_MESSAGE)
        return EventOutcome.FAILED

    async def _on_timer_expired(self, token: TimerToken) -> EventOutcome:
        return await self.handle_timeout(token.user_id, token.question_index, token=token)

    def _build_show_question(self, session: QuizSession, option_set: OptionSet) -> ShowQuestion:
        question = option_set.question
        options = tuple(
            AnswerOption(
                text=option.correct_meaning,
                callback_data=encode_answer_callback(
                    session.user_id,
                    session.current_index,
                    option.id == question.id,
                ),
            )
            for option in option_set.options
        )
        return ShowQuestion(
            user_id=session.user_id,
            question_index=session.current_index,
            total_questions=session.total_questions,
            prompt_text=messages.QUESTION_TEMPLATE.format(prompt=question.prompt),
            options=options,
            time_limit_seconds=self._time_limit_seconds,
        )

    async def _remember_username(self, user_id: str, username: str | None) -> None:
        try:
            await self._names.remember(user_id, username)
        except StoreUnavailableError as exc:
            logger.warning("Could not save username for user %s: %s", user_id, exc)

    async def _reply(self, user_id: str, text: str) -> None:
        await self._transport.send(ShowResult(user_id=user_id, text=text))
