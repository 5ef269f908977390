import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User


logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.scalar(select(User).where(User.id == user_id))


def register_user(
    db: Session,
    *,
    email: str,
    password: str,
    username: str | None = None,
    full_name: str | None = None,
) -> User:
    email = email.strip().lower()
    final_username = (username or email.split('@')[0]).strip()

    if db.scalar(select(User.id).where(User.email == email)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Email already in use')
    if db.scalar(select(User.id).where(User.username == final_username)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Username already taken')

    user = User(
        email=email,
        username=final_username,
        full_name=full_name or final_username,
        hashed_password=hash_password(password),
        is_active=True,
    )
    db.add(user)
    db.flush()
    logger.info('Registered user username=%s', final_username)
    return user


def authenticate_user(db: Session, identifier: str, password: str) -> User | None:
    identifier = identifier.strip()
    user = db.scalar(
        select(User).where(or_(User.email == identifier.lower(), User.username == identifier))
    )
    if not user:
        logger.info('Login failed: no user for identifier=%s', identifier)
        return None
    if not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        logger.info('Login failed: password mismatch for username=%s', user.username)
        return None
    return user


def issue_access_token(db: Session, *, user: User) -> str:
    access_token = create_access_token(str(user.id), username=user.username)
    user.last_login_at = datetime.now(UTC)
    db.flush()
    return access_token
