import logging
from functools import wraps

from django.conf import settings

from pointsledger.apps.points.exceptions import BadRequest, ConversionError, InternalError

logger = logging.getLogger(__name__)

MAX_OFFSET = 2**31 - 1


def translate_errors(failure_message: str):
    """
    Let ConversionError through untouched; log anything else and replace it
    with a generic InternalError so storage details never reach a client.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except ConversionError:
                raise
            except Exception as e:
                logger.error(
                    f"[{type(self).__name__}] {func.__name__} failed: {e}", exc_info=True
                )
                raise InternalError(failure_message) from e

        return wrapper

    return decorator


def check_pagination(page, limit):
    """Validate page/limit; limit is capped at MAX_PAGE_SIZE."""
    if isinstance(page, bool) or isinstance(limit, bool):
        raise BadRequest("Page and limit must be positive integers")
    try:
        page, limit = int(page), int(limit)
    except (TypeError, ValueError):
        raise BadRequest("Page and limit must be positive integers")
    if page < 1 or limit < 1:
        raise BadRequest("Page and limit must be positive integers")
    limit = min(limit, getattr(settings, "MAX_PAGE_SIZE", 100))
    # Keep OFFSET inside a 32-bit integer on every backend
    if (page - 1) * limit > MAX_OFFSET:
        raise BadRequest("Page is out of range")
    return page, limit


def require_positive_int(value, message: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise BadRequest(message)
    return value
