"""FastAPI server that exposes the chat transport's inbound events."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
import uvicorn

from quiz_bot.constants.about import APP_NAME, APP_VERSION
from quiz_bot.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_bot.core.markdown_renderer import renderer
from quiz_bot.core.models import EventOutcome, OutboundMessage, ShowLeaderboard, ShowQuestion
from quiz_bot.core.quiz_manager import QuizManager
from quiz_bot.core.transport import (
    CallbackDataError,
    OutboxTransport,
    decode_answer_callback,
    message_kind,
)


class StartPayload(BaseModel):
    """Payload for the Start Quiz command."""

    user_id: str = Field(min_length=1)
    username: str | None = None


class UserPayload(BaseModel):
    user_id: str = Field(min_length=1)


class AnswerPayload(BaseModel):
    """Explicit form of an option selection."""

    user_id: str = Field(min_length=1)
    question_index: int = Field(ge=0)
    is_correct: bool


class CallbackPayload(BaseModel):
    """Raw callback data from an option button."""

    user_id: str = Field(min_length=1)
    data: str


def serialize_message(message: OutboundMessage) -> dict[str, object]:
    payload: dict[str, object] = {"kind": message_kind(message), "user_id": message.user_id}
    if isinstance(message, ShowQuestion):
        payload.update(
            {
                "question_index": message.question_index,
                "total_questions": message.total_questions,
                "prompt_text": message.prompt_text,
                "prompt_html": renderer.render_inline(message.prompt_text),
                "options": [
                    {"text": option.text, "callback_data": option.callback_data}
                    for option in message.options
                ],
                "time_limit_seconds": message.time_limit_seconds,
            }
        )
    elif isinstance(message, ShowLeaderboard):
        payload.update(
            {
                "text": message.text,
                "entries": [
                    {"rank": entry.rank, "display_name": entry.display_name, "score": entry.score}
                    for entry in message.entries
                ],
            }
        )
    else:
        payload.update({"text": message.text, "html": renderer.render_inline(message.text)})
    return payload


def _outcome_response(outcome: EventOutcome) -> dict[str, object]:
    return {"outcome": outcome.value}


def create_api_app(quiz_manager: QuizManager, outbox: OutboxTransport) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await quiz_manager.shutdown()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)

    def manager_dependency() -> QuizManager:
        return quiz_manager

    @app.get("/", response_class=PlainTextResponse)
    async def keep_alive() -> str:
        return "Bot is running!"

    @app.post("/welcome", status_code=202)
    async def welcome(payload: UserPayload, manager: QuizManager = Depends(manager_dependency)) -> dict[str, object]:
        await manager.welcome(payload.user_id)
        return {"outcome": EventOutcome.APPLIED.value}

    @app.post("/start", status_code=202)
    async def start_quiz(payload: StartPayload, manager: QuizManager = Depends(manager_dependency)) -> dict[str, object]:
        outcome = await manager.start_quiz(payload.user_id, payload.username)
        if outcome is EventOutcome.FAILED:
            raise HTTPException(status_code=503, detail="Quiz could not be started.")
        return _outcome_response(outcome)

    @app.post("/answer", status_code=202)
    async def submit_answer(payload: AnswerPayload, manager: QuizManager = Depends(manager_dependency)) -> dict[str, object]:
        outcome = await manager.select_option(payload.user_id, payload.question_index, payload.is_correct)
        return _outcome_response(outcome)

    @app.post("/callback", status_code=202)
    async def submit_callback(payload: CallbackPayload, manager: QuizManager = Depends(manager_dependency)) -> dict[str, object]:
        try:
            answer = decode_answer_callback(payload.data)
        except CallbackDataError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        if answer.user_id != payload.user_id:
            raise HTTPException(status_code=403, detail="Callback belongs to a different user.")
        outcome = await manager.select_option(answer.user_id, answer.question_index, answer.is_correct)
        return _outcome_response(outcome)

    @app.post("/quit", status_code=202)
    async def quit_quiz(payload: UserPayload, manager: QuizManager = Depends(manager_dependency)) -> dict[str, object]:
        outcome = await manager.quit_quiz(payload.user_id)
        return _outcome_response(outcome)

    @app.get("/progress/{user_id}")
    async def get_progress(user_id: str, manager: QuizManager = Depends(manager_dependency)) -> dict[str, object]:
        snapshot = await manager.request_progress(user_id)
        if snapshot is None:
            raise HTTPException(status_code=503, detail="Progress is temporarily unavailable.")
        return {
            "user_id": snapshot.user_id,
            "level": snapshot.level,
            "score": snapshot.score,
            "asked_count": snapshot.asked_count,
        }

    @app.get("/leaderboard")
    async def get_leaderboard(
        user_id: str | None = None,
        manager: QuizManager = Depends(manager_dependency),
    ) -> dict[str, object]:
        leaderboard = await manager.request_leaderboard(user_id)
        if leaderboard is None:
            raise HTTPException(status_code=503, detail="Leaderboard is temporarily unavailable.")
        return {
            "text": leaderboard.render(),
            "entries": [
                {"rank": entry.rank, "display_name": entry.display_name, "score": entry.score}
                for entry in leaderboard.entries
            ],
        }

    @app.get("/outbox/{user_id}")
    async def drain_outbox(user_id: str) -> dict[str, object]:
        return {"messages": [serialize_message(message) for message in outbox.drain(user_id)]}

    return app


def run_api_server(
    quiz_manager: QuizManager,
    outbox: OutboxTransport,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API on the current thread until interrupted."""
    app = create_api_app(quiz_manager, outbox)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)
    server.run()
