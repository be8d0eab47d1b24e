"""
Common utilities for the editorial workflow.
"""
import functools
import logging
import time

from django.conf import settings
from django.db import OperationalError, InterfaceError

from apps.common.exceptions import PersistenceError

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


def workflow_setting(name, default=None):
    """Read a key from the EDITORIAL_WORKFLOW settings dict."""
    return getattr(settings, 'EDITORIAL_WORKFLOW', {}).get(name, default)


def retry_on_persistence_error(func=None, *, attempts=None, delay=None):
    """
    Retry a callable on transient database failures.

    Retries ``attempts`` times with linear backoff, then raises
    PersistenceError. Must wrap the whole transaction, never code that
    runs inside an open atomic block.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or workflow_setting('PERSISTENCE_RETRIES', 3)
            backoff = delay if delay is not None else workflow_setting('PERSISTENCE_RETRY_DELAY', 0.2)
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except TRANSIENT_DB_ERRORS as exc:
                    logger.warning(
                        f"Transient store failure in {fn.__name__} "
                        f"(attempt {attempt}/{max_attempts}): {exc}"
                    )
                    if attempt == max_attempts:
                        raise PersistenceError(
                            f"{fn.__name__} failed after {max_attempts} attempts",
                            error=str(exc),
                        ) from exc
                    time.sleep(backoff * attempt)
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
