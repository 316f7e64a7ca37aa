from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")
ID = TypeVar("ID")


class Repository(ABC, Generic[T, ID]):
    """Data access for one aggregate, bound to the caller's session.

    Repositories never commit; transaction boundaries belong to services.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @abstractmethod
    async def get(self, id: ID) -> T | None:
        ...

    async def create(self, entity: T) -> T:
        self._session.add(entity)
        await self._session.flush()
        return entity
