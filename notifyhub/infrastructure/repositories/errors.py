"""Translation of database I/O failures into retryable store errors."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import (
    DBAPIError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from notifyhub.domain.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(session: Session, store: str) -> Iterator[None]:
    """Roll back and raise :class:`TransientStoreError` on connectivity failures.

    Other database errors propagate unchanged after the rollback.
    """

    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        session.rollback()
        logger.warning("%s unavailable: %s", store, exc)
        raise TransientStoreError(f"{store} is temporarily unavailable") from exc
    except DBAPIError as exc:
        session.rollback()
        if exc.connection_invalidated:
            logger.warning("%s connection lost: %s", store, exc)
            raise TransientStoreError(f"{store} is temporarily unavailable") from exc
        raise


__all__ = ["translate_store_errors"]
