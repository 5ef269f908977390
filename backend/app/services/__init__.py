from app.services import (
    auth_service,
    ledger_service,
    ranking_service,
    score_service,
    submission_service,
)

__all__ = [
    'auth_service',
    'ledger_service',
    'ranking_service',
    'score_service',
    'submission_service',
]
