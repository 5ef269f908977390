from app.models.quiz import QuizAttempt, TestScore
from app.models.user import User

__all__ = [
    'QuizAttempt',
    'TestScore',
    'User',
]
