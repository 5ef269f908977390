import logging

from app.core.config import settings


LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure root logging once for the API process and return the app logger."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    return logging.getLogger('app')
