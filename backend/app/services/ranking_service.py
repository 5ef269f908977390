"""Participant ordering and positions for shared tests.

Every calculator orders a test's records the same way: score descending, time taken ascending, then
whoever reached that result first, then user id. The last two keys only break exact ties and keep the
order reproducible for a fixed set of records.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.core.config import settings
from app.core.errors import RankingUnavailable
from app.models.quiz import TestScore
from app.models.user import User


RANKING_ORDER = (
    TestScore.score.desc(),
    TestScore.time_taken_seconds.asc(),
    TestScore.achieved_at.asc(),
    TestScore.user_id.asc(),
)


@dataclass(frozen=True, slots=True)
class RankResult:
    position: int
    total_participants: int

    @property
    def found(self) -> bool:
        return self.position > 0


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    position: int
    user_id: UUID
    username: str
    score: int
    total_questions: int
    time_taken_seconds: float


class RankCalculator(Protocol):
    def rank(self, db: Session, *, test_code: str, user_id: UUID) -> RankResult:
        ...


class ScanRankCalculator:
    """Reads the whole ordered participant set and finds the user in it."""

    def rank(self, db: Session, *, test_code: str, user_id: UUID) -> RankResult:
        try:
            ordered_user_ids = db.scalars(
                select(TestScore.user_id).where(TestScore.test_code == test_code).order_by(*RANKING_ORDER)
            ).all()
        except SQLAlchemyError as exc:
            raise RankingUnavailable(f'Could not read scores for test {test_code}') from exc

        position = 0
        for index, participant_id in enumerate(ordered_user_ids, start=1):
            if participant_id == user_id:
                position = index
                break
        return RankResult(position=position, total_participants=len(ordered_user_ids))


class CountRankCalculator:
    """Counts the records ahead of the user with indexed COUNT queries instead of reading them all."""

    def rank(self, db: Session, *, test_code: str, user_id: UUID) -> RankResult:
        own = aliased(TestScore)
        ahead = or_(
            TestScore.score > own.score,
            and_(TestScore.score == own.score, TestScore.time_taken_seconds < own.time_taken_seconds),
            and_(
                TestScore.score == own.score,
                TestScore.time_taken_seconds == own.time_taken_seconds,
                TestScore.achieved_at < own.achieved_at,
            ),
            and_(
                TestScore.score == own.score,
                TestScore.time_taken_seconds == own.time_taken_seconds,
                TestScore.achieved_at == own.achieved_at,
                TestScore.user_id < own.user_id,
            ),
        )
        try:
            total = count_participants(db, test_code)
            has_record = db.scalar(
                select(own.id).where(own.test_code == test_code, own.user_id == user_id)
            )
            if has_record is None:
                return RankResult(position=0, total_participants=total)

            records_ahead = int(
                db.scalar(
                    select(func.count())
                    .select_from(TestScore)
                    .join(own, and_(own.test_code == TestScore.test_code, own.user_id == user_id))
                    .where(TestScore.test_code == test_code, ahead)
                )
                or 0
            )
        except SQLAlchemyError as exc:
            raise RankingUnavailable(f'Could not count scores for test {test_code}') from exc

        return RankResult(position=records_ahead + 1, total_participants=total)


_CALCULATORS: dict[str, Callable[[], RankCalculator]] = {
    'scan': ScanRankCalculator,
    'count': CountRankCalculator,
}


def get_rank_calculator(strategy: str | None = None) -> RankCalculator:
    name = (strategy or settings.RANK_STRATEGY).strip().lower()
    try:
        return _CALCULATORS[name]()
    except KeyError as exc:
        raise ValueError(f'Unknown rank strategy: {name}') from exc


def count_participants(db: Session, test_code: str) -> int:
    return int(
        db.scalar(select(func.count()).select_from(TestScore).where(TestScore.test_code == test_code)) or 0
    )


def leaderboard(db: Session, *, test_code: str, limit: int | None = None) -> list[LeaderboardRow]:
    query = (
        select(TestScore, User.username)
        .join(User, User.id == TestScore.user_id)
        .where(TestScore.test_code == test_code)
        .order_by(*RANKING_ORDER)
    )
    if limit is not None:
        query = query.limit(limit)

    rows = db.execute(query).all()
    return [
        LeaderboardRow(
            position=index,
            user_id=record.user_id,
            username=username,
            score=record.score,
            total_questions=record.total_questions,
            time_taken_seconds=record.time_taken_seconds,
        )
        for index, (record, username) in enumerate(rows, start=1)
    ]
