import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.models.mixins import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.user import User


def _utcnow() -> datetime:
    return datetime.now(UTC)


class QuizAttempt(UUIDPrimaryKeyMixin, Base):
    """One entry of a user's quiz history ledger. Rows are only ever inserted."""

    __tablename__ = 'quiz_attempts'
    __table_args__ = (
        UniqueConstraint('user_id', 'attempt_number', name='uq_quiz_attempts_user_attempt_number'),
        CheckConstraint('score >= 0', name='quiz_attempt_score_values'),
        CheckConstraint('total_questions > 0', name='quiz_attempt_total_questions_values'),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False
    )
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    topic: Mapped[str] = mapped_column(String(200), nullable=False, default='')
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    test_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_taken_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user: Mapped['User'] = relationship(back_populates='quiz_attempts')


class TestScore(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Best attempt of one user on one shared test."""

    __tablename__ = 'test_scores'
    __test__ = False  # keep pytest from collecting the model
    __table_args__ = (
        UniqueConstraint('test_code', 'user_id', name='uq_test_scores_test_code_user'),
        CheckConstraint('score >= 0', name='test_score_score_values'),
        CheckConstraint('time_taken_seconds >= 0', name='test_score_time_taken_values'),
    )

    test_code: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    time_taken_seconds: Mapped[float] = mapped_column(Float, nullable=False)
    achieved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user: Mapped['User'] = relationship(back_populates='test_scores')


Index('ix_quiz_attempts_user_id', QuizAttempt.user_id)
Index(
    'ix_quiz_attempts_duplicate_lookup',
    QuizAttempt.user_id,
    QuizAttempt.test_code,
    QuizAttempt.subject,
    QuizAttempt.topic,
)
Index('ix_test_scores_user_id', TestScore.user_id)
Index('ix_test_scores_ranking', TestScore.test_code, TestScore.score.desc(), TestScore.time_taken_seconds)
