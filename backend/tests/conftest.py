import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite+pysqlite://')

os.environ.setdefault('DATABASE_URL', TEST_DATABASE_URL)
os.environ.setdefault('JWT_SECRET_KEY', 'test-access-secret-32-chars-min-0001')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('CORS_ORIGINS', 'http://localhost:3000')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

from app.api.v1.endpoints.auth import login_rate_limiter
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import build_engine, get_db
from app.main import app
from app.models.user import User


SEED_PASSWORD = 'SeedPass123!'
SEED_PASSWORD_HASH = hash_password(SEED_PASSWORD)
SEED_USERS = [
    ('alice@example.com', 'alice', 'Alice Example'),
    ('bob@example.com', 'bob', 'Bob Example'),
    ('carol@example.com', 'carol', 'Carol Example'),
]

if TEST_DATABASE_URL.startswith('sqlite'):
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
else:
    engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        _seed_users(db)
        db.commit()
    finally:
        db.close()

    login_rate_limiter.reset()

    yield

    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def _override_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as api_client:
        yield api_client

    app.dependency_overrides.clear()


@pytest.fixture()
def users(db_session: Session) -> dict[str, User]:
    rows = db_session.scalars(select(User)).all()
    return {user.username: user for user in rows}


def _seed_users(db: Session) -> None:
    for email, username, full_name in SEED_USERS:
        db.add(
            User(
                email=email,
                username=username,
                full_name=full_name,
                hashed_password=SEED_PASSWORD_HASH,
                is_active=True,
            )
        )
    db.flush()


def login(client: TestClient, identifier: str, password: str = SEED_PASSWORD) -> dict:
    response = client.post(
        '/api/v1/auth/login',
        json={
            'identifier': identifier,
            'password': password,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


def auth_header(access_token: str) -> dict[str, str]:
    return {'Authorization': f'Bearer {access_token}'}


def submit_result(client: TestClient, access_token: str, **payload) -> dict:
    response = client.post('/api/v1/quiz-results', headers=auth_header(access_token), json=payload)
    assert response.status_code == 200, response.text
    return response.json()
