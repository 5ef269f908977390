from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user
from app.core.errors import StorageFailure
from app.db.session import get_db
from app.models.user import User
from app.schemas.quiz import QuizAttemptOut, QuizHistoryResponse, QuizResultCreate, QuizResultResponse
from app.services import ledger_service, submission_service


router = APIRouter(prefix='/quiz-results', tags=['quiz-results'])


@router.post('', response_model=QuizResultResponse)
def submit_quiz_result(
    payload: QuizResultCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> QuizResultResponse:
    outcome = submission_service.submit_quiz_result(db, user_id=current_user.id, payload=payload)
    try:
        db.commit()
    except SQLAlchemyError as err:
        db.rollback()
        raise StorageFailure() from err

    message = 'Quiz result already saved' if outcome.is_duplicate else 'Quiz result saved successfully'
    return QuizResultResponse(
        message=message,
        status=outcome.state,
        attempt=QuizAttemptOut.model_validate(outcome.attempt),
        history=[QuizAttemptOut.model_validate(item) for item in outcome.history],
    )


@router.get('', response_model=QuizHistoryResponse)
def quiz_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> QuizHistoryResponse:
    items = ledger_service.list_history(db, current_user.id)
    return QuizHistoryResponse(
        items=[QuizAttemptOut.model_validate(item) for item in items],
        total=len(items),
    )
