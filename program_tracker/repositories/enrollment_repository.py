from __future__ import annotations

from sqlalchemy import func, select, update

from program_tracker.models import (
    CumulativeStats,
    EnrollmentStatus,
    OPEN_ENROLLMENT_STATUSES,
    UserProgramEnrollment,
)
from program_tracker.repositories.base import Repository


class EnrollmentRepository(Repository[UserProgramEnrollment, int]):
    async def get(self, id: int) -> UserProgramEnrollment | None:
        return await self._session.get(UserProgramEnrollment, id)

    async def get_for_update(self, id: int) -> UserProgramEnrollment | None:
        """Load the row locked for the rest of the transaction where the store supports it."""
        result = await self._session.execute(
            select(UserProgramEnrollment)
            .where(UserProgramEnrollment.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_open_for_user(self, user_id: int) -> UserProgramEnrollment | None:
        result = await self._session.execute(
            select(UserProgramEnrollment)
            .where(
                UserProgramEnrollment.user_id == user_id,
                UserProgramEnrollment.status.in_(OPEN_ENROLLMENT_STATUSES),
            )
            .order_by(UserProgramEnrollment.enrolled_at.desc())
        )
        return result.scalars().first()

    async def get_current_for_user(self, user_id: int) -> UserProgramEnrollment | None:
        """Most recent enrollment that is open or paused."""
        result = await self._session.execute(
            select(UserProgramEnrollment)
            .where(
                UserProgramEnrollment.user_id == user_id,
                UserProgramEnrollment.status.in_(
                    (*OPEN_ENROLLMENT_STATUSES, EnrollmentStatus.PAUSED)
                ),
            )
            .order_by(UserProgramEnrollment.enrolled_at.desc(), UserProgramEnrollment.id.desc())
        )
        return result.scalars().first()

    async def list_for_user(self, user_id: int) -> list[UserProgramEnrollment]:
        result = await self._session.execute(
            select(UserProgramEnrollment)
            .where(UserProgramEnrollment.user_id == user_id)
            .order_by(UserProgramEnrollment.enrolled_at.desc(), UserProgramEnrollment.id.desc())
        )
        return list(result.scalars().all())

    async def cancel_open_for_user(self, user_id: int) -> list[int]:
        """Move every enrolled/active row of the user to cancelled; returns their ids."""
        result = await self._session.execute(
            select(UserProgramEnrollment.id).where(
                UserProgramEnrollment.user_id == user_id,
                UserProgramEnrollment.status.in_(OPEN_ENROLLMENT_STATUSES),
            )
        )
        ids = list(result.scalars().all())
        if ids:
            await self._session.execute(
                update(UserProgramEnrollment)
                .where(UserProgramEnrollment.id.in_(ids))
                .values(status=EnrollmentStatus.CANCELLED)
                .execution_options(synchronize_session="fetch")
            )
        return ids

    async def get_stats(self, user_id: int) -> CumulativeStats | None:
        return await self._session.get(CumulativeStats, user_id)

    async def get_or_create_stats(self, user_id: int) -> CumulativeStats:
        stats = await self.get_stats(user_id)
        if stats is None:
            stats = CumulativeStats(
                user_id=user_id,
                total_workout_days=0,
                total_programs_completed=0,
                current_streak=0,
                longest_streak=0,
            )
            self._session.add(stats)
            await self._session.flush()
        return stats

    async def count_unfinished_for_program(self, program_id: int) -> int:
        """Enrollments in the program that are enrolled, active or paused."""
        result = await self._session.execute(
            select(func.count(UserProgramEnrollment.id)).where(
                UserProgramEnrollment.program_id == program_id,
                UserProgramEnrollment.status.in_(
                    (*OPEN_ENROLLMENT_STATUSES, EnrollmentStatus.PAUSED)
                ),
            )
        )
        return result.scalar_one()
