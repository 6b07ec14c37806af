"""Network configuration constants for the quiz bot."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 3000
