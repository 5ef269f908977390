from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import BaseSchema


# Upper bound of the INTEGER columns holding scores.
MAX_INT_VALUE = 2**31 - 1


class QuizResultCreate(BaseModel):
    # Required fields are checked by the submission service so a missing one is a 400, not a 422.
    subject: str | None = Field(default=None, max_length=200)
    topic: str | None = Field(default=None, max_length=200)
    score: int | None = Field(default=None, le=MAX_INT_VALUE)
    total_questions: int | None = Field(default=None, le=MAX_INT_VALUE)
    test_code: str | None = Field(default=None, max_length=100)
    time_taken_seconds: float | None = Field(default=None, allow_inf_nan=False)

    @field_validator('subject', 'topic', 'test_code')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class QuizAttemptOut(BaseSchema):
    id: UUID
    attempt_number: int
    subject: str
    topic: str
    score: int
    total_questions: int
    test_code: str | None
    rank: int
    total_participants: int
    time_taken_seconds: float | None
    submitted_at: datetime


class QuizResultResponse(BaseModel):
    message: str
    status: str
    attempt: QuizAttemptOut
    history: list[QuizAttemptOut]


class QuizHistoryResponse(BaseModel):
    items: list[QuizAttemptOut]
    total: int


class TestScoreOut(BaseSchema):
    test_code: str
    score: int
    total_questions: int
    time_taken_seconds: float
    achieved_at: datetime


class LeaderboardEntry(BaseModel):
    position: int
    user_id: UUID
    username: str
    score: int
    total_questions: int
    time_taken_seconds: float


class LeaderboardResponse(BaseModel):
    test_code: str
    total_participants: int
    items: list[LeaderboardEntry] = Field(default_factory=list)
