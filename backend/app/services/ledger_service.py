from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models.quiz import QuizAttempt
from app.models.user import User


def normalize_topic(topic: str | None) -> str:
    return (topic or '').strip()


def lock_ledger(db: Session, user_id: UUID) -> User:
    """
    Take the per-user ledger lock for the rest of the transaction.

    Duplicate detection and append for one user run under this row lock; other users are not blocked.
    """
    user = db.scalar(select(User).where(User.id == user_id).with_for_update())
    if not user:
        raise NotFound('User not found')
    return user


def find_duplicate(
    db: Session,
    *,
    user_id: UUID,
    test_code: str,
    subject: str,
    topic: str | None,
) -> QuizAttempt | None:
    return db.scalar(
        select(QuizAttempt)
        .where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.test_code == test_code,
            QuizAttempt.subject == subject,
            QuizAttempt.topic == normalize_topic(topic),
        )
        .order_by(QuizAttempt.attempt_number.desc())
        .limit(1)
    )


def append(db: Session, *, user_id: UUID, attempt: QuizAttempt) -> QuizAttempt:
    last_number = db.scalar(
        select(func.max(QuizAttempt.attempt_number)).where(QuizAttempt.user_id == user_id)
    )
    attempt.user_id = user_id
    attempt.attempt_number = int(last_number or 0) + 1
    attempt.topic = normalize_topic(attempt.topic)
    db.add(attempt)
    db.flush()
    return attempt


def list_history(db: Session, user_id: UUID) -> list[QuizAttempt]:
    return list(
        db.scalars(
            select(QuizAttempt)
            .where(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.attempt_number.desc())
        ).all()
    )
