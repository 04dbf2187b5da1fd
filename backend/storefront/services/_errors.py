import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from storefront.exceptions import DatabaseError

logger = logging.getLogger(__name__)


def db_errors(message: str):
    """
    Wrap unexpected SQLAlchemy failures of a service coroutine in DatabaseError.

    Application exceptions (NotFoundError, ValidationError, ...) pass through
    untouched; only driver/ORM errors are translated, with the original type
    kept in the context for logs.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("%s failed: %s", func.__qualname__, str(e), exc_info=True)
                raise DatabaseError(
                    message=message,
                    context={"operation": func.__qualname__, "error_type": type(e).__name__},
                ) from e

        return wrapper

    return decorator
