import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from src.app.repositories.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def translate_store_errors(func):
    """Re-raise SQLAlchemy failures from an async repository method as StoreUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error(f"Store operation {func.__qualname__} failed: {exc.__class__.__name__}")
            raise StoreUnavailable(f"Session store unavailable: {exc.__class__.__name__}") from exc

    return wrapper
