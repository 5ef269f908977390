from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user
from app.core.config import settings
from app.core.errors import NotFound
from app.db.session import get_db
from app.models.user import User
from app.schemas.quiz import LeaderboardEntry, LeaderboardResponse, TestScoreOut
from app.services import ranking_service, score_service


router = APIRouter(prefix='/tests', tags=['tests'])


@router.get('/scores', response_model=list[TestScoreOut])
def my_test_scores(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[TestScoreOut]:
    records = score_service.list_user_scores(db, current_user.id)
    return [TestScoreOut.model_validate(record) for record in records]


@router.get('/{test_code}/leaderboard', response_model=LeaderboardResponse)
def get_leaderboard(
    test_code: str,
    limit: int | None = Query(default=None, ge=1, le=settings.LEADERBOARD_MAX_LIMIT),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_active_user),
) -> LeaderboardResponse:
    total = ranking_service.count_participants(db, test_code)
    if total == 0:
        raise NotFound(f'No scores recorded for test {test_code}')

    rows = ranking_service.leaderboard(db, test_code=test_code, limit=limit)
    return LeaderboardResponse(
        test_code=test_code,
        total_participants=total,
        items=[
            LeaderboardEntry(
                position=row.position,
                user_id=row.user_id,
                username=row.username,
                score=row.score,
                total_questions=row.total_questions,
                time_taken_seconds=row.time_taken_seconds,
            )
            for row in rows
        ],
    )
