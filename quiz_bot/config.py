"""Runtime settings, read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

import os

from dotenv import load_dotenv

from quiz_bot.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_bot.constants.quiz_constants import QUESTION_TIME_LIMIT_SECONDS


class Settings:
    DB_PATH: str = "db/quiz_bot.db"
    POOL_FILE: str | None = None
    HOST: str = DEFAULT_HOST
    PORT: int = DEFAULT_PORT
    LOG_LEVEL: str = "INFO"
    TIME_LIMIT_SECONDS: float = QUESTION_TIME_LIMIT_SECONDS

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)
        settings = cls()
        settings.DB_PATH = environ.get("QUIZ_BOT_DB_PATH", cls.DB_PATH)
        settings.POOL_FILE = environ.get("QUIZ_BOT_POOL_FILE") or None
        settings.HOST = environ.get("QUIZ_BOT_HOST", cls.HOST)
        settings.PORT = int(environ.get("PORT", cls.PORT))
        settings.LOG_LEVEL = environ.get("QUIZ_BOT_LOG_LEVEL", cls.LOG_LEVEL)
        settings.TIME_LIMIT_SECONDS = float(environ.get("QUIZ_BOT_TIME_LIMIT", cls.TIME_LIMIT_SECONDS))
        if settings.TIME_LIMIT_SECONDS <= 0:
            raise ValueError("QUIZ_BOT_TIME_LIMIT must be a positive number of seconds.")
        return settings
