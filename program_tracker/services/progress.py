"""
ProgressService - read-only query surface over enrollments.

Resolves every program day of an enrollment to its DayState and derives the
progress summary (streaks, completion rate, pace) and per-user statistics.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.core.clock import Clock
from program_tracker.core.exceptions import NotFoundError
from program_tracker.core.logging import get_logger
from program_tracker.core.transactions import transactional
from program_tracker.models import (
    CompletionStatus,
    DayState,
    DayType,
    EnrollmentStatus,
    ProgramDay,
    ProgramDayCompletion,
    ProgramGoal,
    UserProgramEnrollment,
)
from program_tracker.repositories import (
    CompletionRepository,
    EnrollmentRepository,
    ProgramRepository,
    WorkoutSessionRepository,
)
from program_tracker.services.base import BaseService
from program_tracker.services.day_state import (
    SKIPPABLE_STATES,
    STARTABLE_STATES,
    DayStateResolver,
    describe,
    index_completions,
)
from program_tracker.services.interfaces import WorkoutSessionLookup
from program_tracker.services.progression import completed_session_day_ids
from program_tracker.services.streaks import completion_rate, current_streak, longest_streak

logger = get_logger(__name__)


@dataclass
class ProgressSummary:
    total_days: int
    completed_days: int
    skipped_days: int
    partial_days: int
    current_streak: int
    longest_streak: int
    completion_rate: float | None
    average_workouts_per_week: float
    progress_percentage: float
    estimated_completion_date: datetime | None


@dataclass
class DayView:
    day_id: int
    day_number: int
    week_number: int
    day_of_week: int
    day_type: DayType
    name: str
    state: DayState
    label: str
    tone: str
    can_start: bool
    can_skip: bool


@dataclass
class ProgramOverview:
    enrollment: UserProgramEnrollment
    days: list[DayView]
    next_available_day: int | None
    summary: ProgressSummary


@dataclass
class ProgramStatistics:
    total_programs_completed: int
    total_enrollments: int
    favorite_goal: ProgramGoal | None
    average_program_duration_days: int
    total_custom_programs_created: int = 0
    total_workout_days: int = 0
    current_streak: int = 0
    longest_streak: int = 0


class ProgressService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        session_lookup: WorkoutSessionLookup | None = None,
    ):
        super().__init__(session, clock)
        self._programs = ProgramRepository(session)
        self._enrollments = EnrollmentRepository(session)
        self._completions = CompletionRepository(session)
        self._session_lookup = session_lookup or WorkoutSessionRepository(session)
        self._resolver = DayStateResolver(self._clock)

    @transactional(readonly=True)
    async def get_current_enrollment(self, user_id: int) -> UserProgramEnrollment:
        enrollment = await self._enrollments.get_current_for_user(user_id)
        if enrollment is None:
            raise NotFoundError("enrollment", f"User {user_id} has no current enrollment", {"user_id": user_id})
        return enrollment

    @transactional(readonly=True)
    async def get_day_state(self, enrollment_id: int, day_number: int) -> DayView:
        enrollment = await self._load_enrollment(enrollment_id)
        day = await self._programs.get_day_by_number(enrollment.program_id, day_number)
        if day is None:
            raise NotFoundError(
                "program_day",
                f"Day {day_number} not found in program {enrollment.program_id}",
                {"day_number": day_number, "program_id": enrollment.program_id},
            )
        completions = await self._completions.list_for_enrollment(enrollment.id)
        session_days = await completed_session_day_ids(
            self._session_lookup, self._clock, enrollment, [day]
        )
        state = self._resolver.resolve(
            day, enrollment, completions, completed_session_day_ids=session_days
        )
        return self._view(day, state)

    @transactional(readonly=True)
    async def get_overview(self, enrollment_id: int) -> ProgramOverview:
        enrollment = await self._load_enrollment(enrollment_id)
        days = await self._programs.list_days(enrollment.program_id)
        completions = await self._completions.list_for_enrollment(enrollment.id)
        session_days = await completed_session_day_ids(
            self._session_lookup, self._clock, enrollment, days
        )

        by_day = index_completions(completions)
        today = self._clock.today_window()
        views = [
            self._view(
                day,
                self._resolver.resolve(
                    day,
                    enrollment,
                    by_day,
                    completed_session_day_ids=session_days,
                    today=today,
                ),
            )
            for day in days
        ]
        next_day = self._resolver.next_available_day(
            enrollment, days, completions, completed_session_day_ids=session_days
        )
        summary = await self._summarize(enrollment, completions, len(days))
        return ProgramOverview(
            enrollment=enrollment,
            days=views,
            next_available_day=next_day.day_number if next_day else None,
            summary=summary,
        )

    @transactional(readonly=True)
    async def get_summary(self, enrollment_id: int) -> ProgressSummary:
        enrollment = await self._load_enrollment(enrollment_id)
        completions = await self._completions.list_for_enrollment(enrollment.id)
        total_days = await self._programs.count_days(enrollment.program_id)
        return await self._summarize(enrollment, completions, total_days)

    @transactional(readonly=True)
    async def get_statistics(self, user_id: int) -> ProgramStatistics:
        enrollments = await self._enrollments.list_for_user(user_id)
        stats = await self._enrollments.get_stats(user_id)

        goals: Counter[ProgramGoal] = Counter()
        for enrollment in enrollments:
            program = await self._programs.get(enrollment.program_id)
            if program is not None:
                goals[program.goal] += 1

        finished = [
            e for e in enrollments
            if e.status == EnrollmentStatus.COMPLETED
            and e.started_at is not None
            and e.actual_completion_date is not None
        ]
        average_days = 0
        if finished:
            total = sum((e.actual_completion_date - e.started_at).days for e in finished)
            average_days = total // len(finished)

        return ProgramStatistics(
            total_programs_completed=sum(
                1 for e in enrollments if e.status == EnrollmentStatus.COMPLETED
            ),
            total_enrollments=len(enrollments),
            favorite_goal=goals.most_common(1)[0][0] if goals else None,
            average_program_duration_days=average_days,
            total_custom_programs_created=await self._programs.count_custom_by_user(user_id),
            total_workout_days=stats.total_workout_days if stats else 0,
            current_streak=stats.current_streak if stats else 0,
            longest_streak=stats.longest_streak if stats else 0,
        )

    async def _summarize(
        self,
        enrollment: UserProgramEnrollment,
        completions: list[ProgramDayCompletion],
        total_days: int,
    ) -> ProgressSummary:
        counts = Counter(c.status for c in completions)
        completed = counts[CompletionStatus.COMPLETED]

        weeks_elapsed = 1.0
        if enrollment.started_at is not None:
            days_since_start = (self._clock.now() - enrollment.started_at).days
            weeks_elapsed = max(days_since_start / 7.0, 1.0)

        best = longest_streak(completions, self._clock)
        stats = await self._enrollments.get_stats(enrollment.user_id)
        if stats is not None:
            best = max(best, stats.longest_streak)

        return ProgressSummary(
            total_days=total_days,
            completed_days=completed,
            skipped_days=counts[CompletionStatus.SKIPPED],
            partial_days=counts[CompletionStatus.PARTIAL],
            current_streak=current_streak(completions, self._clock),
            longest_streak=best,
            completion_rate=completion_rate(completions),
            average_workouts_per_week=completed / weeks_elapsed,
            progress_percentage=(enrollment.current_day / total_days * 100) if total_days else 0.0,
            estimated_completion_date=enrollment.estimated_completion_date,
        )

    async def _load_enrollment(self, enrollment_id: int) -> UserProgramEnrollment:
        enrollment = await self._enrollments.get(enrollment_id)
        if enrollment is None:
            raise NotFoundError(
                "enrollment",
                f"Enrollment {enrollment_id} not found",
                {"enrollment_id": enrollment_id},
            )
        return enrollment

    @staticmethod
    def _view(day: ProgramDay, state: DayState) -> DayView:
        display = describe(state)
        return DayView(
            day_id=day.id,
            day_number=day.day_number,
            week_number=day.week_number,
            day_of_week=day.day_of_week,
            day_type=day.day_type,
            name=day.name,
            state=state,
            label=display.label,
            tone=display.tone,
            can_start=state in STARTABLE_STATES,
            can_skip=state in SKIPPABLE_STATES,
        )
