from __future__ import annotations

from sqlalchemy import select

from program_tracker.core.clock import DayWindow
from program_tracker.models import WorkoutSession
from program_tracker.repositories.base import Repository


class WorkoutSessionRepository(Repository[WorkoutSession, int]):
    """Read access to logged workouts, used as the engine's session lookup."""

    async def get(self, id: int) -> WorkoutSession | None:
        return await self._session.get(WorkoutSession, id)

    async def has_completed_session_today(
        self,
        enrollment_id: int,
        day_id: int,
        window: DayWindow,
        exclude_session_id: int | None = None,
    ) -> bool:
        query = select(WorkoutSession.id).where(
            WorkoutSession.enrollment_id == enrollment_id,
            WorkoutSession.program_day_id == day_id,
            WorkoutSession.is_completed.is_(True),
            WorkoutSession.completed_at >= window.start,
            WorkoutSession.completed_at < window.end,
        )
        if exclude_session_id is not None:
            query = query.where(WorkoutSession.id != exclude_session_id)
        result = await self._session.execute(query.limit(1))
        return result.first() is not None
