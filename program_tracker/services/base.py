from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.core.clock import Clock, get_clock
from program_tracker.core.exceptions import NotFoundError
from program_tracker.core.transactions import KeyedLocks, engine_locks

T = TypeVar("T")


class BaseService:
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._session = session
        self._clock = clock or get_clock()
        self._locks = locks or engine_locks

    async def _get_or_404(self, model: type[T], id: int, error_msg: str | None = None) -> T:
        result = await self._session.get(model, id)
        if not result:
            entity_name = model.__name__
            raise NotFoundError(
                entity_name,
                error_msg or f"{entity_name} {id} not found",
                {"id": id}
            )
        return result
