"""Quiz-related constants shared across the engine and server layers."""

QUESTIONS_PER_SESSION: int = 10
QUESTION_TIME_LIMIT_SECONDS: float = 10
DISTRACTOR_COUNT: int = 3
LEADERBOARD_SIZE: int = 5
PROGRESS_WRITE_ATTEMPTS: int = 3
STARTING_LEVEL: int = 1
