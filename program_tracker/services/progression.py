"""
ProgressionService - the only writer of enrollment and completion state.

Responsible for:
- Enrolling a user in a program (cancelling any open enrollment first)
- Starting, completing and skipping program days
- Advancing the day pointer and finishing the program on its last day
- Pausing, resuming and cancelling enrollments

Every public command runs through ``transactional``: commands for the same
enrollment (or, for enroll, the same user) are serialized, and each command
commits all of its writes or none of them.
"""
from datetime import timedelta
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.core.clock import Clock
from program_tracker.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from program_tracker.core.logging import get_logger
from program_tracker.core.transactions import KeyedLocks, transactional
from program_tracker.models import (
    CompletionStatus,
    CumulativeStats,
    DayState,
    DayType,
    EnrollmentStatus,
    ProgramDay,
    UserProgramEnrollment,
)
from program_tracker.repositories import (
    CompletionRepository,
    EnrollmentRepository,
    ProgramRepository,
    SubstitutionRepository,
    WorkoutSessionRepository,
)
from program_tracker.services.base import BaseService
from program_tracker.services.day_state import (
    SKIPPABLE_STATES,
    STARTABLE_STATES,
    DayStateResolver,
)
from program_tracker.services.interfaces import WorkoutSessionLookup
from program_tracker.services.streaks import StreakTracker

logger = get_logger(__name__)


async def completed_session_day_ids(
    lookup: WorkoutSessionLookup,
    clock: Clock,
    enrollment: UserProgramEnrollment,
    days: Iterable[ProgramDay],
    exclude_session_id: int | None = None,
) -> frozenset[int]:
    """Ids of the enrollment's current workout day when it already has a completed session today."""
    window = clock.today_window()
    found = set()
    for day in days:
        if day.day_number != enrollment.current_day or day.day_type != DayType.WORKOUT:
            continue
        if await lookup.has_completed_session_today(
            enrollment.id, day.id, window, exclude_session_id=exclude_session_id
        ):
            found.add(day.id)
    return frozenset(found)


class ProgressionService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        locks: KeyedLocks | None = None,
        session_lookup: WorkoutSessionLookup | None = None,
    ):
        super().__init__(session, clock, locks)
        self._programs = ProgramRepository(session)
        self._enrollments = EnrollmentRepository(session)
        self._completions = CompletionRepository(session)
        self._substitutions = SubstitutionRepository(session)
        self._session_lookup = session_lookup or WorkoutSessionRepository(session)
        self._resolver = DayStateResolver(self._clock)
        self._streaks = StreakTracker(self._clock)

    # ====== Enrollment lifecycle ======

    @transactional(serialize_on="user_id")
    async def enroll(
        self,
        user_id: int,
        program_id: int,
        replace_existing: bool = True,
    ) -> UserProgramEnrollment:
        """
        Enroll a user in a program.

        Args:
            user_id: User enrolling
            program_id: Program to enroll in
            replace_existing: Cancel the user's open enrollment instead of refusing

        Returns:
            The new enrollment, status=enrolled and current_day=0

        Raises:
            NotFoundError: Program does not exist
            ConflictError: User already has an open enrollment and replace_existing is False
        """
        program = await self._programs.get(program_id)
        if program is None:
            raise NotFoundError("program", f"Program {program_id} not found", {"program_id": program_id})

        existing = await self._enrollments.get_open_for_user(user_id)
        if existing is not None and not replace_existing:
            raise ConflictError(
                f"User {user_id} already has an open enrollment",
                code="CF_ENROLLMENT_ACTIVE",
                details={"user_id": user_id, "enrollment_id": existing.id},
            )

        cancelled_ids = await self._enrollments.cancel_open_for_user(user_id)

        now = self._clock.now()
        enrollment = UserProgramEnrollment(
            user_id=user_id,
            program_id=program.id,
            enrolled_at=now,
            current_day=0,
            status=EnrollmentStatus.ENROLLED,
            total_days_completed=0,
            total_days_skipped=0,
            estimated_completion_date=now + timedelta(weeks=program.duration_weeks),
        )
        try:
            await self._enrollments.create(enrollment)
        except IntegrityError as exc:
            raise ConflictError(
                f"User {user_id} already has an open enrollment",
                code="CF_ENROLLMENT_ACTIVE",
                details={"user_id": user_id},
            ) from exc

        logger.info(
            "enrolled",
            user_id=user_id,
            program_id=program.id,
            enrollment_id=enrollment.id,
            cancelled_enrollment_ids=cancelled_ids,
        )
        return enrollment

    @transactional(serialize_on="enrollment_id")
    async def start_day(self, enrollment_id: int) -> UserProgramEnrollment:
        """Activate an enrollment on its first day. A no-op when already active."""
        enrollment = await self._load_enrollment(enrollment_id)

        if enrollment.status == EnrollmentStatus.ACTIVE:
            return enrollment
        if enrollment.status != EnrollmentStatus.ENROLLED:
            raise InvalidStateError(
                "enrollment",
                f"Cannot start a day while enrollment is {enrollment.status.value}",
                {"enrollment_id": enrollment_id, "status": enrollment.status.value},
            )

        if await self._programs.get_max_day_number(enrollment.program_id) is None:
            raise InvalidStateError(
                "program",
                f"Program {enrollment.program_id} has no days",
                {"program_id": enrollment.program_id},
            )

        now = self._clock.now()
        enrollment.status = EnrollmentStatus.ACTIVE
        enrollment.started_at = now
        enrollment.last_activity_date = now
        if enrollment.current_day == 0:
            enrollment.current_day = 1
        await self._session.flush()

        logger.info("program_started", enrollment_id=enrollment_id, current_day=enrollment.current_day)
        return enrollment

    @transactional(serialize_on="enrollment_id")
    async def pause(self, enrollment_id: int) -> UserProgramEnrollment:
        enrollment = await self._load_enrollment(enrollment_id)
        self._require_status(enrollment, EnrollmentStatus.ACTIVE, "pause")
        enrollment.status = EnrollmentStatus.PAUSED
        await self._session.flush()
        logger.info("enrollment_paused", enrollment_id=enrollment_id)
        return enrollment

    @transactional(serialize_on="enrollment_id")
    async def resume(self, enrollment_id: int) -> UserProgramEnrollment:
        enrollment = await self._load_enrollment(enrollment_id)
        self._require_status(enrollment, EnrollmentStatus.PAUSED, "resume")

        # a re-enroll while paused leaves another open enrollment behind
        other = await self._enrollments.get_open_for_user(enrollment.user_id)
        if other is not None:
            raise ConflictError(
                f"User {enrollment.user_id} already has an open enrollment",
                code="CF_ENROLLMENT_ACTIVE",
                details={"user_id": enrollment.user_id, "enrollment_id": other.id},
            )

        enrollment.status = EnrollmentStatus.ACTIVE
        enrollment.last_activity_date = self._clock.now()
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"User {enrollment.user_id} already has an open enrollment",
                code="CF_ENROLLMENT_ACTIVE",
                details={"user_id": enrollment.user_id},
            ) from exc
        logger.info("enrollment_resumed", enrollment_id=enrollment_id)
        return enrollment

    @transactional(serialize_on="enrollment_id")
    async def cancel(self, enrollment_id: int) -> UserProgramEnrollment:
        """Cancel from any status. Irreversible; enroll again to restart."""
        enrollment = await self._load_enrollment(enrollment_id)
        if enrollment.status != EnrollmentStatus.CANCELLED:
            previous = enrollment.status
            enrollment.status = EnrollmentStatus.CANCELLED
            await self._session.flush()
            logger.info("enrollment_cancelled", enrollment_id=enrollment_id, previous_status=previous.value)
        return enrollment

    # ====== Day progression ======

    @transactional(serialize_on="enrollment_id")
    async def complete_day(
        self,
        enrollment_id: int,
        day_id: int,
        day_number: int,
        workout_session_id: int | None = None,
        notes: str | None = None,
    ) -> UserProgramEnrollment:
        """
        Record a day as completed and move to the next one.

        The day must currently be startable. The workout session being linked
        does not itself count as "already worked out today".

        Raises:
            NotFoundError: Unknown enrollment, or day not in the enrolled program
            ValidationError: day_number does not match the day
            InvalidStateError: Day cannot be started in its current state
        """
        enrollment = await self._load_enrollment(enrollment_id)
        day = await self._load_day(enrollment, day_id, day_number)

        state = await self._resolve(enrollment, day, exclude_session_id=workout_session_id)
        if state not in STARTABLE_STATES:
            raise self._day_state_error("complete", enrollment, day, state)

        now = self._clock.now()
        await self._completions.upsert(
            enrollment_id=enrollment.id,
            program_day_id=day.id,
            program_day_number=day.day_number,
            status=CompletionStatus.COMPLETED,
            completion_date=now,
            workout_session_id=workout_session_id,
            notes=notes,
        )
        enrollment.total_days_completed += 1
        enrollment.last_activity_date = now

        stats = await self._enrollments.get_or_create_stats(enrollment.user_id)
        stats.total_workout_days += 1
        await self._refresh_streak(enrollment.user_id, stats)

        logger.info(
            "day_completed",
            enrollment_id=enrollment.id,
            day_number=day.day_number,
            workout_session_id=workout_session_id,
        )
        return await self._advance(enrollment, stats)

    @transactional(serialize_on="enrollment_id")
    async def skip_day(
        self,
        enrollment_id: int,
        day_id: int,
        day_number: int,
        reason: str | None = None,
    ) -> UserProgramEnrollment:
        """Record a day as skipped, push the estimated finish back a day and move on."""
        enrollment = await self._load_enrollment(enrollment_id)
        day = await self._load_day(enrollment, day_id, day_number)

        state = await self._resolve(enrollment, day)
        if state not in SKIPPABLE_STATES:
            raise self._day_state_error("skip", enrollment, day, state)

        await self._completions.upsert(
            enrollment_id=enrollment.id,
            program_day_id=day.id,
            program_day_number=day.day_number,
            status=CompletionStatus.SKIPPED,
            completion_date=self._clock.now(),
            skipped_reason=reason,
        )
        enrollment.total_days_skipped += 1
        if enrollment.estimated_completion_date is not None:
            enrollment.estimated_completion_date = enrollment.estimated_completion_date + timedelta(days=1)

        stats = await self._enrollments.get_or_create_stats(enrollment.user_id)
        await self._refresh_streak(enrollment.user_id, stats)

        logger.info("day_skipped", enrollment_id=enrollment.id, day_number=day.day_number, reason=reason)
        return await self._advance(enrollment, stats)

    @transactional(serialize_on="enrollment_id")
    async def advance(self, enrollment_id: int) -> UserProgramEnrollment:
        """Move to the next day, or finish the program when already on its last day."""
        enrollment = await self._load_enrollment(enrollment_id)
        return await self._advance(enrollment)

    # ====== Internals ======

    async def _advance(
        self,
        enrollment: UserProgramEnrollment,
        stats: CumulativeStats | None = None,
    ) -> UserProgramEnrollment:
        if enrollment.status == EnrollmentStatus.COMPLETED:
            return enrollment
        self._require_status(enrollment, EnrollmentStatus.ACTIVE, "advance")

        max_day = await self._programs.get_max_day_number(enrollment.program_id)
        if max_day is None:
            raise InvalidStateError(
                "program",
                f"Program {enrollment.program_id} has no days",
                {"program_id": enrollment.program_id},
            )

        if enrollment.current_day < max_day:
            vacated_day = enrollment.current_day
            enrollment.current_day = vacated_day + 1
            cleared = await self._substitutions.clear_day(vacated_day)
            logger.info(
                "day_advanced",
                enrollment_id=enrollment.id,
                current_day=enrollment.current_day,
                substitutions_cleared=cleared,
            )
        else:
            enrollment.status = EnrollmentStatus.COMPLETED
            enrollment.actual_completion_date = self._clock.now()
            stats = stats or await self._enrollments.get_or_create_stats(enrollment.user_id)
            stats.total_programs_completed += 1
            logger.info("program_completed", enrollment_id=enrollment.id, final_day=enrollment.current_day)

        await self._session.flush()
        return enrollment

    async def _load_enrollment(self, enrollment_id: int) -> UserProgramEnrollment:
        enrollment = await self._enrollments.get_for_update(enrollment_id)
        if enrollment is None:
            raise NotFoundError(
                "enrollment",
                f"Enrollment {enrollment_id} not found",
                {"enrollment_id": enrollment_id},
            )
        return enrollment

    async def _load_day(
        self,
        enrollment: UserProgramEnrollment,
        day_id: int,
        day_number: int,
    ) -> ProgramDay:
        day = await self._programs.get_day(day_id)
        if day is None or day.program_id != enrollment.program_id:
            raise NotFoundError(
                "program_day",
                f"Day {day_id} not found in program {enrollment.program_id}",
                {"day_id": day_id, "program_id": enrollment.program_id},
            )
        if day.day_number != day_number:
            raise ValidationError(
                "day_number",
                f"day {day_id} is day number {day.day_number}, not {day_number}",
                {"day_id": day_id, "day_number": day_number, "actual_day_number": day.day_number},
            )
        return day

    async def _resolve(
        self,
        enrollment: UserProgramEnrollment,
        day: ProgramDay,
        exclude_session_id: int | None = None,
    ) -> DayState:
        completions = await self._completions.list_for_enrollment(enrollment.id)
        session_days = await completed_session_day_ids(
            self._session_lookup,
            self._clock,
            enrollment,
            [day],
            exclude_session_id=exclude_session_id,
        )
        return self._resolver.resolve(
            day,
            enrollment,
            completions,
            completed_session_day_ids=session_days,
        )

    async def _refresh_streak(self, user_id: int, stats: CumulativeStats) -> None:
        enrollments = await self._enrollments.list_for_user(user_id)
        completions = await self._completions.list_for_enrollments([e.id for e in enrollments])
        self._streaks.refresh(stats, completions)

    @staticmethod
    def _require_status(
        enrollment: UserProgramEnrollment,
        expected: EnrollmentStatus,
        action: str,
    ) -> None:
        if enrollment.status != expected:
            raise InvalidStateError(
                "enrollment",
                f"Cannot {action} an enrollment that is {enrollment.status.value}",
                {
                    "enrollment_id": enrollment.id,
                    "status": enrollment.status.value,
                    "expected_status": expected.value,
                },
            )

    @staticmethod
    def _day_state_error(
        action: str,
        enrollment: UserProgramEnrollment,
        day: ProgramDay,
        state: DayState,
    ) -> InvalidStateError:
        return InvalidStateError(
            "day",
            f"Cannot {action} day {day.day_number} while it is {state.value}",
            {
                "enrollment_id": enrollment.id,
                "day_number": day.day_number,
                "state": state.value,
            },
        )
