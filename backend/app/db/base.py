from app.db.base_class import Base
from app.models.quiz import QuizAttempt, TestScore
from app.models.user import User


__all__ = [
    'Base',
    'QuizAttempt',
    'TestScore',
    'User',
]
