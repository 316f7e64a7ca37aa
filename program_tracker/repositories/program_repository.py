from __future__ import annotations

from sqlalchemy import func, or_, select

from program_tracker.models import Program, ProgramDay, ProgramDayExercise
from program_tracker.repositories.base import Repository


class ProgramRepository(Repository[Program, int]):
    async def get(self, id: int) -> Program | None:
        return await self._session.get(Program, id)

    async def list(self, goal=None, experience_level=None, search: str | None = None) -> list[Program]:
        query = select(Program)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Program.name.ilike(pattern), Program.description.ilike(pattern)))
        if goal is not None:
            query = query.where(Program.goal == goal)
        if experience_level is not None:
            query = query.where(Program.experience_level == experience_level)
        result = await self._session.execute(query.order_by(Program.name))
        return list(result.scalars().all())

    async def get_day(self, day_id: int) -> ProgramDay | None:
        return await self._session.get(ProgramDay, day_id)

    async def get_day_by_number(self, program_id: int, day_number: int) -> ProgramDay | None:
        result = await self._session.execute(
            select(ProgramDay).where(
                ProgramDay.program_id == program_id,
                ProgramDay.day_number == day_number,
            )
        )
        return result.scalar_one_or_none()

    async def list_days(self, program_id: int) -> list[ProgramDay]:
        result = await self._session.execute(
            select(ProgramDay)
            .where(ProgramDay.program_id == program_id)
            .order_by(ProgramDay.day_number)
        )
        return list(result.scalars().all())

    async def get_max_day_number(self, program_id: int) -> int | None:
        result = await self._session.execute(
            select(func.max(ProgramDay.day_number)).where(ProgramDay.program_id == program_id)
        )
        return result.scalar_one_or_none()

    async def count_days(self, program_id: int) -> int:
        result = await self._session.execute(
            select(func.count(ProgramDay.id)).where(ProgramDay.program_id == program_id)
        )
        return result.scalar_one()

    async def list_day_exercises(self, program_day_id: int) -> list[ProgramDayExercise]:
        result = await self._session.execute(
            select(ProgramDayExercise)
            .where(ProgramDayExercise.program_day_id == program_day_id)
            .order_by(ProgramDayExercise.order_index)
        )
        return list(result.scalars().all())

    def add(self, entity) -> None:
        self._session.add(entity)

    async def count_custom_by_user(self, user_id: int) -> int:
        result = await self._session.execute(
            select(func.count(Program.id)).where(
                Program.is_custom.is_(True),
                Program.created_by == user_id,
            )
        )
        return result.scalar_one()

    async def delete(self, program: Program) -> None:
        """Remove a program; days, exercises and enrollment history cascade in the store."""
        await self._session.delete(program)
        await self._session.flush()
