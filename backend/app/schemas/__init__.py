from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserSummary
from app.schemas.quiz import (
    LeaderboardEntry,
    LeaderboardResponse,
    QuizAttemptOut,
    QuizHistoryResponse,
    QuizResultCreate,
    QuizResultResponse,
    TestScoreOut,
)

__all__ = [
    'LeaderboardEntry',
    'LeaderboardResponse',
    'LoginRequest',
    'QuizAttemptOut',
    'QuizHistoryResponse',
    'QuizResultCreate',
    'QuizResultResponse',
    'RegisterRequest',
    'TestScoreOut',
    'TokenResponse',
    'UserSummary',
]
