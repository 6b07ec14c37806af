"""Application entry point for the quiz bot."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from quiz_bot.config import Settings
from quiz_bot.core.quiz_importer import QuizImportError, load_pool_from_file
from quiz_bot.core.quiz_manager import QuizManager
from quiz_bot.core.services.question_selector import QuestionSelector
from quiz_bot.core.stores.sqlite_store import (
    SqliteNameDirectory,
    SqliteProgressStore,
    SqliteQuestionPool,
    init_db,
    replace_questions,
)
from quiz_bot.core.transport import OutboxTransport
from quiz_bot.server.api_server import run_api_server
from quiz_bot.utils.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the chat quiz bot.")
    parser.add_argument("--db", help="SQLite database path (overrides QUIZ_BOT_DB_PATH).")
    parser.add_argument("--host", help="Interface to bind.")
    parser.add_argument("--port", type=int, help="Port to listen on.")
    parser.add_argument(
        "--seed",
        type=Path,
        metavar="FILE",
        help="Replace the question pool with the items in FILE and exit.",
    )
    return parser


def seed_pool(db_path: str, pool_file: Path) -> int:
    imported = load_pool_from_file(pool_file)
    return replace_questions(db_path, imported.items)


def build_manager(settings: Settings, outbox: OutboxTransport) -> QuizManager:
    return QuizManager(
        pool=SqliteQuestionPool(settings.DB_PATH),
        progress_store=SqliteProgressStore(settings.DB_PATH),
        names=SqliteNameDirectory(settings.DB_PATH),
        transport=outbox,
        selector=QuestionSelector(),
        time_limit_seconds=settings.TIME_LIMIT_SECONDS,
    )


def main(argv: list[str] | None = None) -> int:
    """Initialize logging and storage, then serve the bot's API."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.db:
        settings.DB_PATH = args.db
    logger = configure_logging(settings.LOG_LEVEL)

    init_db(settings.DB_PATH)

    pool_file = args.seed or (Path(settings.POOL_FILE) if settings.POOL_FILE else None)
    if pool_file is not None:
        try:
            count = seed_pool(settings.DB_PATH, pool_file)
        except (OSError, QuizImportError) as exc:
            logger.error("Could not load question pool from %s: %s", pool_file, exc)
            return 1
        logger.info("Loaded %d questions from %s", count, pool_file)
        if args.seed is not None:
            return 0

    outbox = OutboxTransport()
    manager = build_manager(settings, outbox)
    host = args.host or settings.HOST
    port = args.port or settings.PORT
    logger.info("Starting quiz bot on %s:%d", host, port)
    run_api_server(manager, outbox, host=host, port=port, log_level=settings.LOG_LEVEL.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
