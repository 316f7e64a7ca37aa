from __future__ import annotations

from sqlalchemy import select

from program_tracker.models import Exercise, UserProgression
from program_tracker.repositories.base import Repository


class ExerciseRepository(Repository[Exercise, int]):
    """SQL-backed exercise catalog."""

    async def get(self, id: int) -> Exercise | None:
        return await self._session.get(Exercise, id)

    async def get_exercise(self, exercise_id: int) -> Exercise | None:
        return await self.get(exercise_id)

    async def get_many(self, ids: list[int]) -> dict[int, Exercise]:
        if not ids:
            return {}
        result = await self._session.execute(select(Exercise).where(Exercise.id.in_(ids)))
        return {exercise.id: exercise for exercise in result.scalars().all()}

    async def list_by_muscle(self, muscle: str) -> list[Exercise]:
        result = await self._session.execute(
            select(Exercise).where(Exercise.primary_muscle == muscle).order_by(Exercise.name)
        )
        return list(result.scalars().all())

    async def get_progressions(self, user_id: int, exercise_ids: list[int]) -> dict[int, UserProgression]:
        if not exercise_ids:
            return {}
        result = await self._session.execute(
            select(UserProgression).where(
                UserProgression.user_id == user_id,
                UserProgression.exercise_id.in_(exercise_ids),
            )
        )
        return {progression.exercise_id: progression for progression in result.scalars().all()}

    async def get_by_name(self, name: str) -> Exercise | None:
        result = await self._session.execute(select(Exercise).where(Exercise.name == name))
        return result.scalar_one_or_none()
