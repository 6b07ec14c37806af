"""Static metadata describing the quiz bot."""

APP_NAME = "Asmaul Husna Quiz"
APP_VERSION = "0.1"

HELP_TEXT = (
    "Commands:\n"
    "Start Quiz - begin a new round of questions\n"
    "User Progress - show your latest score and level\n"
    "Leaderboard - show the top players\n"
    "Quit Quiz - stop the current round without saving it"
)
