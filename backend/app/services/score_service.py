import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.quiz import TestScore


logger = logging.getLogger(__name__)


def resolve_time_taken(time_taken_seconds: float | None) -> float:
    if time_taken_seconds is None:
        return float(settings.DEFAULT_TIME_TAKEN_SECONDS)
    return float(time_taken_seconds)


def is_improvement(record: TestScore, *, score: int, time_taken_seconds: float) -> bool:
    if score > record.score:
        return True
    return score == record.score and time_taken_seconds < record.time_taken_seconds


def get_record(db: Session, *, test_code: str, user_id: UUID, for_update: bool = False) -> TestScore | None:
    query = select(TestScore).where(TestScore.test_code == test_code, TestScore.user_id == user_id)
    if for_update:
        query = query.with_for_update()
    return db.scalar(query)


def _insert_record(
    db: Session,
    *,
    test_code: str,
    user_id: UUID,
    score: int,
    total_questions: int,
    time_taken_seconds: float,
) -> tuple[TestScore, bool]:
    record = TestScore(
        test_code=test_code,
        user_id=user_id,
        score=score,
        total_questions=total_questions,
        time_taken_seconds=time_taken_seconds,
        achieved_at=datetime.now(UTC),
    )
    try:
        with db.begin_nested():
            db.add(record)
            db.flush()
    except IntegrityError:
        # Only a unique-pair conflict leaves a row behind; anything else is bad data.
        existing = get_record(db, test_code=test_code, user_id=user_id, for_update=True)
        if existing is None:
            raise
        return existing, False
    return record, True


def upsert_if_better(
    db: Session,
    *,
    test_code: str,
    user_id: UUID,
    score: int,
    total_questions: int,
    time_taken_seconds: float | None = None,
) -> TestScore:
    """
    Store a result for (test_code, user_id) when it beats the stored best.

    Higher score wins; an equal score wins only with a strictly lower time. The returned record is the
    best known result after the decision, whether or not this call changed it. The row stays locked
    until the caller's transaction ends, so submissions for the same pair serialize.
    """
    time_taken = resolve_time_taken(time_taken_seconds)

    record = get_record(db, test_code=test_code, user_id=user_id, for_update=True)
    if record is None:
        record, created = _insert_record(
            db,
            test_code=test_code,
            user_id=user_id,
            score=score,
            total_questions=total_questions,
            time_taken_seconds=time_taken,
        )
        if created:
            logger.debug('Created test score test_code=%s user_id=%s score=%s', test_code, user_id, score)
            return record

    if is_improvement(record, score=score, time_taken_seconds=time_taken):
        logger.debug(
            'Improved test score test_code=%s user_id=%s score=%s->%s time=%s->%s',
            test_code,
            user_id,
            record.score,
            score,
            record.time_taken_seconds,
            time_taken,
        )
        record.score = score
        record.total_questions = total_questions
        record.time_taken_seconds = time_taken
        record.achieved_at = datetime.now(UTC)
        db.flush()
    return record


def list_user_scores(db: Session, user_id: UUID) -> list[TestScore]:
    return list(
        db.scalars(
            select(TestScore)
            .where(TestScore.user_id == user_id)
            .order_by(TestScore.achieved_at.desc(), TestScore.test_code.asc())
        ).all()
    )
