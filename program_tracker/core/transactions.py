import asyncio
import inspect
import weakref
from contextlib import asynccontextmanager
from functools import wraps
from typing import AsyncIterator, Callable, Hashable, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.config.settings import get_settings
from program_tracker.core.exceptions import DomainError, StoreError
from program_tracker.core.logging import get_logger

P = ParamSpec('P')
T = TypeVar('T')

logger = get_logger(__name__)


class KeyedLocks:
    """Registry of asyncio locks, one per key, dropped once nobody holds them."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self.get(key)
        async with lock:
            yield


# Single-writer-per-key registry shared by every service instance in the process
engine_locks = KeyedLocks()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Begin a transaction, or a SAVEPOINT when the session already holds one."""
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session


def transactional(
    *,
    timeout: float | None = None,
    readonly: bool = False,
    serialize_on: str | None = None,
):
    """Run a service method as one atomic unit.

    The wrapped coroutine runs inside a transaction on the service's session.
    When ``serialize_on`` names an argument, calls sharing that argument's
    value wait for each other. The lock wait and the transaction together are
    bounded by ``timeout`` (settings.store_timeout_seconds by default); a
    timeout or any SQLAlchemy failure is re-raised as StoreError.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            session = _extract_session(args, kwargs)
            locks = _extract_locks(args)
            limit = timeout if timeout is not None else get_settings().store_timeout_seconds

            lock_key = None
            if serialize_on is not None:
                bound = signature.bind(*args, **kwargs)
                lock_key = (serialize_on, bound.arguments[serialize_on])

            try:
                async with asyncio.timeout(limit):
                    if lock_key is None:
                        async with transaction(session):
                            return await func(*args, **kwargs)
                    async with locks.hold(lock_key):
                        async with transaction(session):
                            return await func(*args, **kwargs)
            except DomainError:
                raise
            except TimeoutError as exc:
                logger.warning("store_timeout", operation=func.__qualname__, timeout=limit)
                raise StoreError(
                    f"{func.__name__} timed out after {limit}s",
                    code="ST_TIMEOUT",
                    retryable=True,
                    details={"operation": func.__name__},
                ) from exc
            except SQLAlchemyError as exc:
                logger.error("store_failure", operation=func.__qualname__, error=str(exc))
                raise StoreError(
                    f"{func.__name__} failed in the store",
                    details={"operation": func.__name__, "readonly": readonly},
                ) from exc

        return wrapper

    return decorator


def _extract_session(args, kwargs) -> AsyncSession:
    if args and isinstance(args[0], AsyncSession):
        return args[0]
    if 'db' in kwargs:
        return kwargs['db']
    if 'session' in kwargs:
        return kwargs['session']
    if args and hasattr(args[0], '_session') and isinstance(args[0]._session, AsyncSession):
        return args[0]._session
    raise ValueError("No session found in function arguments")


def _extract_locks(args) -> KeyedLocks:
    if args and isinstance(getattr(args[0], '_locks', None), KeyedLocks):
        return args[0]._locks
    return engine_locks
