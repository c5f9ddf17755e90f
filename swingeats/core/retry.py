"""
SwingEats — Store retry decorator

Connectivity failures surface from SQLAlchemy as OperationalError/InterfaceError
(or any DBAPIError flagged connection_invalidated). They are translated into
TransientStoreError; reads retry them with exponential backoff + jitter.

A retry rolls the session back first, so it is only attempted while the current
transaction holds no writes. Once a write has been issued, a transient failure
aborts the whole operation: the caller's transaction rolls back and nothing
is half-applied.
"""
import asyncio
import random
import functools
import logging

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from swingeats.core.config import get_settings
from swingeats.core.errors import TransientStoreError

settings = get_settings()
logger = logging.getLogger(__name__)

PENDING_WRITES = "swingeats.pending_writes"


@event.listens_for(Session, "after_transaction_end")
def _clear_pending_writes(session, transaction):
    if transaction.parent is None:
        session.info.pop(PENDING_WRITES, None)


def has_pending_writes(session) -> bool:
    return bool(session.info.get(PENDING_WRITES))


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def with_store_retry(max_retries: int | None = None, write: bool = False):
    """
    Decorator for async Storage methods.

    The wrapped method's first argument must expose ``session``. ``write=True``
    marks the session's transaction as holding writes and makes a single
    attempt with translation only.

    Usage:
        @with_store_retry()
        async def get_active_orders(self):
            ...

        @with_store_retry(write=True)
        async def update_bay_status(self, bay_id, status):
            ...
    """
    _max = 1 if write else (max_retries or settings.STORE_MAX_RETRIES)

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            session = getattr(args[0], "session", None) if args else None
            if write and session is not None:
                session.info[PENDING_WRITES] = True

            for attempt in range(1, _max + 1):
                try:
                    return await func(*args, **kwargs)
                except DBAPIError as exc:
                    if not _is_transient(exc):
                        raise
                    # rolling back here would silently discard earlier writes
                    pinned = session is not None and has_pending_writes(session)
                    if pinned or attempt == _max:
                        logger.error(
                            "Store unreachable in %s after %d attempt(s)%s: %s",
                            func.__name__, attempt, " inside a write" if pinned else "", exc,
                        )
                        raise TransientStoreError(f"Store unavailable: {exc.orig!r}") from exc

                    if session is not None:
                        await session.rollback()
                    base_delay = settings.STORE_RETRY_BASE_DELAY_MS / 1000.0
                    max_delay = settings.STORE_RETRY_MAX_DELAY_MS / 1000.0
                    jitter = random.uniform(0, settings.STORE_RETRY_JITTER_MS / 1000.0)
                    delay = min(base_delay * (2 ** attempt), max_delay) + jitter
                    logger.warning(
                        "Transient store error on attempt %d/%d in %s, retrying in %.3fs",
                        attempt, _max, func.__name__, delay,
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
