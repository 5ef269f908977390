from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import BaseSchema


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    username: str | None = Field(default=None, min_length=3, max_length=100, pattern=r'^[A-Za-z0-9_.-]+$')
    full_name: str | None = Field(default=None, min_length=1, max_length=255)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: EmailStr) -> str:
        return str(value).strip().lower()


class LoginRequest(BaseModel):
    identifier: str = Field(min_length=1, max_length=255, description='Email address or username')
    password: str = Field(min_length=8, max_length=128)


class UserSummary(BaseSchema):
    id: UUID
    email: EmailStr
    username: str
    full_name: str
    is_active: bool
    last_login_at: datetime | None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user: UserSummary
