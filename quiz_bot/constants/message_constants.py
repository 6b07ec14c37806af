"""User-facing reply texts produced by the engine."""

WELCOME_MESSAGE: str = "Welcome to {app_name}!"
QUESTION_TEMPLATE: str = "What is the meaning of **{prompt}**?"
CORRECT_MESSAGE: str = "✅ Correct!"
WRONG_MESSAGE: str = "❌ Wrong!"
TIME_UP_MESSAGE: str = "⏳ Time's up! Moving to the next question."
QUIZ_FINISHED_TEMPLATE: str = "Quiz finished! Your score: {score}/{total}"
LEVEL_UP_TEMPLATE: str = "🎉 Level up! You are now level {level}."
QUIZ_STOPPED_MESSAGE: str = "Quiz stopped."
NO_ACTIVE_QUIZ_MESSAGE: str = "No active quiz. Press Start Quiz to begin."
SESSION_ENDED_MESSAGE: str = "This quiz session has ended."
STALE_ANSWER_MESSAGE: str = "That question has already been answered."
PROGRESS_TEMPLATE: str = "Your current score: {score} (level {level})"
NO_PROGRESS_MESSAGE: str = "You have not finished a quiz yet."
LEADERBOARD_TITLE: str = "🏆 Leaderboard 🏆"
LEADERBOARD_ROW_TEMPLATE: str = "{rank}. @{name}: {score} points"
NO_SCORES_MESSAGE: str = "No scores yet."
POOL_EMPTY_MESSAGE: str = "No questions are available right now. Please try again later."
STORE_UNAVAILABLE_MESSAGE: str = "Progress is temporarily unavailable. Please try again."
PROGRESS_NOT_SAVED_MESSAGE: str = "Your result could not be saved this time."
