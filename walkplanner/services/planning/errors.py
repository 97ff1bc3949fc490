"""
Exceptions raised by the planning and billing services.

Business-rule failures are never raised; they come back as ValidationReport
values. Only infrastructure problems and missing records are exceptions.
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


class PlanningError(Exception):
    retryable = False


class NotFoundError(PlanningError):
    pass


class StoreUnavailableError(PlanningError):
    """The database could not be reached or timed out. Safe to retry."""
    retryable = True


@contextmanager
def store_errors(action: str):
    """Translate connection-level database failures into StoreUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as e:
        logger.error(f"Store unavailable while trying to {action}: {e}")
        raise StoreUnavailableError(f"Store unavailable while trying to {action}") from e
