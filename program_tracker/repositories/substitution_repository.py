from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select

from program_tracker.models import DaySubstitution
from program_tracker.repositories.base import Repository


class SubstitutionRepository(Repository[DaySubstitution, int]):
    async def get(self, id: int) -> DaySubstitution | None:
        return await self._session.get(DaySubstitution, id)

    async def list_for_day(self, program_day: int) -> list[DaySubstitution]:
        result = await self._session.execute(
            select(DaySubstitution)
            .where(DaySubstitution.program_day == program_day)
            .order_by(DaySubstitution.original_exercise_id)
        )
        return list(result.scalars().all())

    async def upsert(
        self,
        program_day: int,
        original_exercise_id: int,
        substitute_exercise_id: int,
        timestamp: datetime,
    ) -> DaySubstitution:
        result = await self._session.execute(
            select(DaySubstitution).where(
                DaySubstitution.program_day == program_day,
                DaySubstitution.original_exercise_id == original_exercise_id,
            )
        )
        substitution = result.scalar_one_or_none()
        if substitution is None:
            substitution = DaySubstitution(
                program_day=program_day,
                original_exercise_id=original_exercise_id,
            )
            self._session.add(substitution)
        substitution.substitute_exercise_id = substitute_exercise_id
        substitution.timestamp = timestamp
        await self._session.flush()
        return substitution

    async def delete(self, program_day: int, original_exercise_id: int) -> bool:
        result = await self._session.execute(
            delete(DaySubstitution).where(
                DaySubstitution.program_day == program_day,
                DaySubstitution.original_exercise_id == original_exercise_id,
            )
        )
        return result.rowcount > 0

    async def clear_day(self, program_day: int) -> int:
        result = await self._session.execute(
            delete(DaySubstitution).where(DaySubstitution.program_day == program_day)
        )
        return result.rowcount
