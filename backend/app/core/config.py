from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


RANK_STRATEGY_VALUES = ('scan', 'count')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='forbid',
    )

    DATABASE_URL: str
    JWT_SECRET_KEY: str
    APP_ENV: str = 'development'
    CORS_ORIGINS: str = 'http://localhost:3000'
    LOG_LEVEL: str = 'INFO'

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_ALGORITHM: str = 'HS256'

    LOGIN_RATE_LIMIT_MAX_REQUESTS: int = 8
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 60

    DEFAULT_TIME_TAKEN_SECONDS: int = 300
    RANK_STRATEGY: str = 'scan'
    LEADERBOARD_MAX_LIMIT: int = 100

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        if not value.startswith(('postgresql', 'sqlite')):
            raise ValueError('DATABASE_URL must point to PostgreSQL or SQLite')
        return value

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret_strength(cls, value: str) -> str:
        if len(value) < 32:
            raise ValueError('JWT secrets must be at least 32 characters')
        return value

    @field_validator('RANK_STRATEGY')
    @classmethod
    def validate_rank_strategy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in RANK_STRATEGY_VALUES:
            raise ValueError(f'RANK_STRATEGY must be one of: {", ".join(RANK_STRATEGY_VALUES)}')
        return value

    @field_validator('DEFAULT_TIME_TAKEN_SECONDS')
    @classmethod
    def validate_default_time_taken(cls, value: int) -> int:
        if value < 0:
            raise ValueError('DEFAULT_TIME_TAKEN_SECONDS must not be negative')
        return value

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.CORS_ORIGINS.split(',') if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
