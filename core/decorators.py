import logging
from functools import wraps

import requests
from pydantic import ValidationError

logger = logging.getLogger(__name__)


def remote_call(fallback_error: str):
    """
    Converts failures of an async scheduler call into a result dict.
    Callers always get {"success": bool, ...}; nothing propagates.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except requests.RequestException as e:
                logger.warning(f"[SCHEDULER_CLIENT] {func.__name__} network error: {e}")
                return {"success": False, "error": str(e) or fallback_error}
            except ValidationError as e:
                logger.warning(f"[SCHEDULER_CLIENT] {func.__name__} returned unexpected data: {e}")
                return {"success": False, "error": fallback_error}
            except ValueError as e:
                logger.warning(f"[SCHEDULER_CLIENT] {func.__name__} returned invalid JSON: {e}")
                return {"success": False, "error": fallback_error}
            except Exception as e:
                logger.exception(f"[SCHEDULER_CLIENT] {func.__name__} failed")
                return {"success": False, "error": str(e) or fallback_error}
        return wrapper
    return decorator
