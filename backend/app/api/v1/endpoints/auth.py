from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user
from app.core.config import settings
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserSummary
from app.services import auth_service
from app.utils.rate_limit import SlidingWindowRateLimiter


router = APIRouter(prefix='/auth', tags=['auth'])
login_rate_limiter = SlidingWindowRateLimiter(
    max_requests=settings.LOGIN_RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)


def _token_response(access_token: str, user: User) -> TokenResponse:
    return TokenResponse(access_token=access_token, user=UserSummary.model_validate(user))


@router.post('/register', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    user = auth_service.register_user(
        db,
        email=payload.email,
        password=payload.password,
        username=payload.username,
        full_name=payload.full_name,
    )
    access_token = auth_service.issue_access_token(db, user=user)
    db.commit()
    db.refresh(user)
    return _token_response(access_token, user)


@router.post('/login', response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    client_ip = request.client.host if request.client else 'unknown'
    if not login_rate_limiter.hit(client_ip):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail='Too many login attempts. Try again later.',
        )

    user = auth_service.authenticate_user(db, payload.identifier, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

    login_rate_limiter.reset(client_ip)
    access_token = auth_service.issue_access_token(db, user=user)
    db.commit()
    db.refresh(user)
    return _token_response(access_token, user)


@router.get('/me', response_model=UserSummary)
def me(current_user: User = Depends(get_current_active_user)) -> UserSummary:
    return UserSummary.model_validate(current_user)
