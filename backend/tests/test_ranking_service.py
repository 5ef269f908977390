import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from app.models.quiz import TestScore
from app.models.user import User
from app.services import ranking_service, score_service
from app.services.ranking_service import CountRankCalculator, ScanRankCalculator
from tests.conftest import SEED_PASSWORD_HASH


CALCULATORS = [ScanRankCalculator(), CountRankCalculator()]
BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _add_participants(db: Session, count: int) -> list[User]:
    created = []
    for index in range(count):
        user = User(
            email=f'participant{index}@example.com',
            username=f'participant{index}',
            full_name=f'Participant {index}',
            hashed_password=SEED_PASSWORD_HASH,
        )
        db.add(user)
        created.append(user)
    db.flush()
    return created


def _add_score(
    db: Session,
    user: User,
    score: int,
    seconds: float,
    achieved_at: datetime,
    test_code: str = 'T1',
) -> None:
    db.add(
        TestScore(
            test_code=test_code,
            user_id=user.id,
            score=score,
            total_questions=10,
            time_taken_seconds=seconds,
            achieved_at=achieved_at,
        )
    )
    db.flush()


@pytest.mark.parametrize('calculator', CALCULATORS, ids=['scan', 'count'])
def test_orders_by_score_then_time(calculator, db_session: Session, users: dict[str, User]) -> None:
    _add_score(db_session, users['alice'], 8, 120, BASE_TIME)
    _add_score(db_session, users['bob'], 9, 300, BASE_TIME + timedelta(seconds=1))
    _add_score(db_session, users['carol'], 8, 60, BASE_TIME + timedelta(seconds=2))
    db_session.commit()

    positions = {
        name: calculator.rank(db_session, test_code='T1', user_id=users[name].id) for name in ['alice', 'bob', 'carol']
    }
    assert positions['bob'].position == 1
    assert positions['carol'].position == 2
    assert positions['alice'].position == 3
    assert {result.total_participants for result in positions.values()} == {3}


@pytest.mark.parametrize('calculator', CALCULATORS, ids=['scan', 'count'])
def test_exact_ties_go_to_the_earlier_result(calculator, db_session: Session, users: dict[str, User]) -> None:
    _add_score(db_session, users['bob'], 7, 100, BASE_TIME + timedelta(minutes=5))
    _add_score(db_session, users['alice'], 7, 100, BASE_TIME)
    db_session.commit()

    assert calculator.rank(db_session, test_code='T1', user_id=users['alice'].id).position == 1
    assert calculator.rank(db_session, test_code='T1', user_id=users['bob'].id).position == 2


@pytest.mark.parametrize('calculator', CALCULATORS, ids=['scan', 'count'])
def test_identical_records_fall_back_to_user_id(calculator, db_session: Session, users: dict[str, User]) -> None:
    participants = [users['alice'], users['bob'], users['carol']]
    for user in participants:
        _add_score(db_session, user, 5, 200, BASE_TIME)
    db_session.commit()

    expected = sorted(participants, key=lambda user: user.id)
    for position, user in enumerate(expected, start=1):
        result = calculator.rank(db_session, test_code='T1', user_id=user.id)
        assert result.position == position
        assert result.total_participants == 3


@pytest.mark.parametrize('calculator', CALCULATORS, ids=['scan', 'count'])
def test_user_without_record_is_not_found(calculator, db_session: Session, users: dict[str, User]) -> None:
    _add_score(db_session, users['alice'], 5, 200, BASE_TIME)
    db_session.commit()

    missing = calculator.rank(db_session, test_code='T1', user_id=users['bob'].id)
    assert missing.position == 0
    assert missing.total_participants == 1
    assert not missing.found

    unknown_test = calculator.rank(db_session, test_code='NOPE', user_id=uuid.uuid4())
    assert (unknown_test.position, unknown_test.total_participants) == (0, 0)


def test_calculators_agree_and_match_strict_precedence(db_session: Session) -> None:
    participants = _add_participants(db_session, 12)
    rows = []
    for index, user in enumerate(participants):
        score = (index * 7) % 5
        seconds = float(60 + (index * 13) % 4 * 30)
        achieved_at = BASE_TIME + timedelta(seconds=index % 3)
        _add_score(db_session, user, score, seconds, achieved_at)
        rows.append((user, score, seconds, achieved_at))
    db_session.commit()

    def sort_key(row):
        user, score, seconds, achieved_at = row
        return (-score, seconds, achieved_at, user.id)

    for row in rows:
        user = row[0]
        scan = ScanRankCalculator().rank(db_session, test_code='T1', user_id=user.id)
        count = CountRankCalculator().rank(db_session, test_code='T1', user_id=user.id)
        ahead = sum(1 for other in rows if sort_key(other) < sort_key(row))

        assert scan == count
        assert scan.position == ahead + 1
        assert scan.total_participants == len(rows)

    by_score = sorted(rows, key=lambda row: row[1])
    lower, higher = by_score[0], by_score[-1]
    assert (
        ScanRankCalculator().rank(db_session, test_code='T1', user_id=higher[0].id).position
        <= ScanRankCalculator().rank(db_session, test_code='T1', user_id=lower[0].id).position
    )


def test_ranking_is_scoped_to_the_test_code(db_session: Session, users: dict[str, User]) -> None:
    _add_score(db_session, users['alice'], 3, 100, BASE_TIME, test_code='T1')
    _add_score(db_session, users['bob'], 9, 100, BASE_TIME, test_code='T2')
    db_session.commit()

    result = ScanRankCalculator().rank(db_session, test_code='T1', user_id=users['alice'].id)
    assert (result.position, result.total_participants) == (1, 1)


def test_rank_is_stable_across_repeated_calls(db_session: Session, users: dict[str, User]) -> None:
    for name in ['alice', 'bob', 'carol']:
        score_service.upsert_if_better(
            db_session, test_code='T1', user_id=users[name].id, score=4, total_questions=5, time_taken_seconds=50
        )
    db_session.commit()

    calculator = ScanRankCalculator()
    user_ids = [users[name].id for name in ['alice', 'bob', 'carol']]
    first = [calculator.rank(db_session, test_code='T1', user_id=user_id) for user_id in user_ids]
    second = [calculator.rank(db_session, test_code='T1', user_id=user_id) for user_id in user_ids]
    assert first == second
    assert sorted(result.position for result in first) == [1, 2, 3]


def test_leaderboard_rows_and_limit(db_session: Session, users: dict[str, User]) -> None:
    _add_score(db_session, users['alice'], 6, 90, BASE_TIME)
    _add_score(db_session, users['bob'], 9, 200, BASE_TIME)
    _add_score(db_session, users['carol'], 6, 45, BASE_TIME)
    db_session.commit()

    rows = ranking_service.leaderboard(db_session, test_code='T1')
    assert [(row.position, row.username, row.score, row.time_taken_seconds) for row in rows] == [
        (1, 'bob', 9, 200),
        (2, 'carol', 6, 45),
        (3, 'alice', 6, 90),
    ]
    top_two = ranking_service.leaderboard(db_session, test_code='T1', limit=2)
    assert [row.username for row in top_two] == ['bob', 'carol']
    assert ranking_service.count_participants(db_session, 'T1') == 3


def test_rank_calculator_factory(monkeypatch) -> None:
    assert isinstance(ranking_service.get_rank_calculator('scan'), ScanRankCalculator)
    assert isinstance(ranking_service.get_rank_calculator('COUNT'), CountRankCalculator)

    monkeypatch.setattr(ranking_service.settings, 'RANK_STRATEGY', 'count')
    assert isinstance(ranking_service.get_rank_calculator(), CountRankCalculator)

    with pytest.raises(ValueError):
        ranking_service.get_rank_calculator('skiplist')
