from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from program_tracker.models import CompletionStatus, ProgramDayCompletion
from program_tracker.repositories.base import Repository


class CompletionRepository(Repository[ProgramDayCompletion, int]):
    async def get(self, id: int) -> ProgramDayCompletion | None:
        return await self._session.get(ProgramDayCompletion, id)

    async def get_for_day(self, enrollment_id: int, day_number: int) -> ProgramDayCompletion | None:
        result = await self._session.execute(
            select(ProgramDayCompletion).where(
                ProgramDayCompletion.enrollment_id == enrollment_id,
                ProgramDayCompletion.program_day_number == day_number,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_enrollment(self, enrollment_id: int) -> list[ProgramDayCompletion]:
        result = await self._session.execute(
            select(ProgramDayCompletion)
            .where(ProgramDayCompletion.enrollment_id == enrollment_id)
            .order_by(ProgramDayCompletion.program_day_number)
        )
        return list(result.scalars().all())

    async def list_for_enrollments(self, enrollment_ids: list[int]) -> list[ProgramDayCompletion]:
        if not enrollment_ids:
            return []
        result = await self._session.execute(
            select(ProgramDayCompletion)
            .where(ProgramDayCompletion.enrollment_id.in_(enrollment_ids))
            .order_by(ProgramDayCompletion.completion_date)
        )
        return list(result.scalars().all())

    async def upsert(
        self,
        enrollment_id: int,
        program_day_id: int,
        program_day_number: int,
        status: CompletionStatus,
        completion_date: datetime,
        workout_session_id: int | None = None,
        skipped_reason: str | None = None,
        notes: str | None = None,
    ) -> ProgramDayCompletion:
        """Record the outcome of a day, replacing any earlier outcome for the same day number."""
        completion = await self.get_for_day(enrollment_id, program_day_number)
        if completion is None:
            completion = ProgramDayCompletion(
                enrollment_id=enrollment_id,
                program_day_number=program_day_number,
            )
            self._session.add(completion)

        completion.program_day_id = program_day_id
        completion.status = status
        completion.completion_date = completion_date
        completion.workout_session_id = workout_session_id
        completion.skipped_reason = skipped_reason
        completion.notes = notes
        await self._session.flush()
        return completion
