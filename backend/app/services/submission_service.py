import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InvalidSubmission, RankingUnavailable, StorageFailure
from app.models.quiz import QuizAttempt
from app.schemas.quiz import QuizResultCreate
from app.services import ledger_service, score_service
from app.services.ranking_service import RankCalculator, RankResult, get_rank_calculator


logger = logging.getLogger(__name__)

STATE_DUPLICATE = 'duplicate'
STATE_RECORDED_UNTRACKED = 'recorded-untracked'
STATE_RECORDED_RANKED = 'recorded-ranked'
STATE_RECORDED_RANK_DEGRADED = 'recorded-rank-degraded'


@dataclass(slots=True)
class SubmissionOutcome:
    attempt: QuizAttempt
    history: list[QuizAttempt]
    state: str

    @property
    def is_duplicate(self) -> bool:
        return self.state == STATE_DUPLICATE


def validate_submission(payload: QuizResultCreate) -> None:
    if not payload.subject or payload.score is None or not payload.total_questions:
        raise InvalidSubmission('subject, score, and total_questions are required')
    if payload.score < 0 or payload.total_questions < 0:
        raise InvalidSubmission('score and total_questions must not be negative')
    if payload.time_taken_seconds is not None and payload.time_taken_seconds < 0:
        raise InvalidSubmission('time_taken_seconds must not be negative')


def _score_and_rank(
    db: Session,
    *,
    user_id: UUID,
    test_code: str,
    payload: QuizResultCreate,
    calculator: RankCalculator,
) -> RankResult:
    # Each step gets its own savepoint so a failed statement never poisons the ledger append.
    with db.begin_nested():
        score_service.upsert_if_better(
            db,
            test_code=test_code,
            user_id=user_id,
            score=payload.score,
            total_questions=payload.total_questions,
            time_taken_seconds=payload.time_taken_seconds,
        )
    with db.begin_nested():
        result = calculator.rank(db, test_code=test_code, user_id=user_id)
    if not result.found:
        raise RankingUnavailable(f'No score recorded for user {user_id} on test {test_code}')
    return result


def submit_quiz_result(
    db: Session,
    *,
    user_id: UUID,
    payload: QuizResultCreate,
    calculator: RankCalculator | None = None,
) -> SubmissionOutcome:
    """
    Record one quiz result in the user's history, ranking it when it belongs to a shared test.

    A repeated (test_code, subject, topic) submission returns the attempt recorded the first time.
    Ranking is best-effort: when scores cannot be stored or read, the attempt is still recorded with
    rank 0 of 0 participants. Only a failure to write the history entry fails the submission.
    """
    validate_submission(payload)
    ledger_service.lock_ledger(db, user_id)

    test_code = payload.test_code or None
    if test_code:
        existing = ledger_service.find_duplicate(
            db,
            user_id=user_id,
            test_code=test_code,
            subject=payload.subject,
            topic=payload.topic,
        )
        if existing:
            logger.info(
                'Quiz result already saved user_id=%s test_code=%s attempt_id=%s', user_id, test_code, existing.id
            )
            return SubmissionOutcome(
                attempt=existing,
                history=ledger_service.list_history(db, user_id),
                state=STATE_DUPLICATE,
            )

    attempt = QuizAttempt(
        subject=payload.subject,
        topic=payload.topic,
        score=payload.score,
        total_questions=payload.total_questions,
        test_code=test_code,
        rank=0,
        total_participants=0,
    )
    state = STATE_RECORDED_UNTRACKED

    if test_code:
        try:
            result = _score_and_rank(
                db,
                user_id=user_id,
                test_code=test_code,
                payload=payload,
                calculator=calculator or get_rank_calculator(),
            )
        except (RankingUnavailable, SQLAlchemyError) as exc:
            logger.warning('Ranking unavailable for test_code=%s user_id=%s: %s', test_code, user_id, exc)
            state = STATE_RECORDED_RANK_DEGRADED
        else:
            attempt.rank = result.position
            attempt.total_participants = result.total_participants
            attempt.time_taken_seconds = score_service.resolve_time_taken(payload.time_taken_seconds)
            state = STATE_RECORDED_RANKED

    try:
        ledger_service.append(db, user_id=user_id, attempt=attempt)
    except SQLAlchemyError as exc:
        logger.exception('Failed to append quiz attempt user_id=%s test_code=%s', user_id, test_code)
        raise StorageFailure() from exc

    logger.info(
        'Quiz result %s user_id=%s test_code=%s rank=%s/%s',
        state,
        user_id,
        test_code,
        attempt.rank,
        attempt.total_participants,
    )
    return SubmissionOutcome(
        attempt=attempt,
        history=ledger_service.list_history(db, user_id),
        state=state,
    )
