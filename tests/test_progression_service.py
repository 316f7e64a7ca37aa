"""Integration tests for ProgressionService against an in-memory database."""
import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from program_tracker.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from program_tracker.models import (
    CompletionStatus,
    DayState,
    DayType,
    EnrollmentStatus,
    ProgramDayCompletion,
    UserProgramEnrollment,
    WorkoutSession,
)
from program_tracker.repositories import CompletionRepository
from program_tracker.services.progress import ProgressService
from program_tracker.services.progression import ProgressionService
from program_tracker.services.substitution import SubstitutionService

USER_ID = 7


@pytest.fixture
def progression(async_db_session, clock, locks) -> ProgressionService:
    return ProgressionService(async_db_session, clock=clock, locks=locks)


@pytest.fixture
def progress(async_db_session, clock) -> ProgressService:
    return ProgressService(async_db_session, clock=clock)


async def started(progression: ProgressionService, program_id: int) -> int:
    enrollment = await progression.enroll(USER_ID, program_id)
    await progression.start_day(enrollment.id)
    return enrollment.id


class TestEnroll:
    @pytest.mark.asyncio
    async def test_new_enrollment_is_not_started(self, progression, weekly_program, clock):
        enrollment = await progression.enroll(USER_ID, weekly_program.id)

        assert enrollment.status == EnrollmentStatus.ENROLLED
        assert enrollment.current_day == 0
        assert enrollment.started_at is None
        assert enrollment.total_days_completed == 0
        assert enrollment.estimated_completion_date == clock.now() + timedelta(weeks=2)

    @pytest.mark.asyncio
    async def test_unknown_program(self, progression, weekly_program):
        with pytest.raises(NotFoundError) as exc_info:
            await progression.enroll(USER_ID, 9999)

        assert exc_info.value.code == "NF_PROGRAM_001"

    @pytest.mark.asyncio
    async def test_re_enrolling_cancels_open_enrollment(self, progression, program_factory, fetch_all):
        first_program = await program_factory([DayType.WORKOUT] * 3, name="First")
        second_program = await program_factory([DayType.WORKOUT] * 3, name="Second")

        first = await progression.enroll(USER_ID, first_program.id)
        await progression.start_day(first.id)
        second = await progression.enroll(USER_ID, second_program.id)

        rows = await fetch_all(
            select(UserProgramEnrollment).where(UserProgramEnrollment.user_id == USER_ID)
        )
        statuses = {row.id: row.status for row in rows}
        assert statuses == {first.id: EnrollmentStatus.CANCELLED, second.id: EnrollmentStatus.ENROLLED}

    @pytest.mark.asyncio
    async def test_refuses_second_open_enrollment_without_replace(self, progression, weekly_program, fetch_all):
        first = await progression.enroll(USER_ID, weekly_program.id)
        first_id = first.id

        with pytest.raises(ConflictError) as exc_info:
            await progression.enroll(USER_ID, weekly_program.id, replace_existing=False)

        assert exc_info.value.code == "CF_ENROLLMENT_ACTIVE"
        rows = await fetch_all(
            select(UserProgramEnrollment).where(UserProgramEnrollment.user_id == USER_ID)
        )
        assert [(row.id, row.status) for row in rows] == [(first_id, EnrollmentStatus.ENROLLED)]

    @pytest.mark.asyncio
    async def test_at_most_one_open_enrollment_per_user(self, progression, weekly_program, fetch_all):
        for _ in range(4):
            await progression.enroll(USER_ID, weekly_program.id)

        rows = await fetch_all(
            select(UserProgramEnrollment).where(
                UserProgramEnrollment.user_id == USER_ID,
                UserProgramEnrollment.status.in_([EnrollmentStatus.ENROLLED, EnrollmentStatus.ACTIVE]),
            )
        )
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_enrollments_of_other_users_untouched(self, progression, weekly_program):
        other = await progression.enroll(USER_ID + 1, weekly_program.id)
        await progression.enroll(USER_ID, weekly_program.id)

        assert other.status == EnrollmentStatus.ENROLLED

    @pytest.mark.asyncio
    async def test_concurrent_enrolls_leave_one_open(self, progression, weekly_program, fetch_all):
        await asyncio.gather(*(progression.enroll(USER_ID, weekly_program.id) for _ in range(3)))

        rows = await fetch_all(
            select(UserProgramEnrollment).where(
                UserProgramEnrollment.user_id == USER_ID,
                UserProgramEnrollment.status == EnrollmentStatus.ENROLLED,
            )
        )
        assert len(rows) == 1


class TestStartDay:
    @pytest.mark.asyncio
    async def test_activates_on_day_one(self, progression, weekly_program, clock):
        enrollment = await progression.enroll(USER_ID, weekly_program.id)

        enrollment = await progression.start_day(enrollment.id)

        assert enrollment.status == EnrollmentStatus.ACTIVE
        assert enrollment.current_day == 1
        assert enrollment.started_at == clock.now()

    @pytest.mark.asyncio
    async def test_idempotent_when_active(self, progression, weekly_program, clock):
        enrollment_id = await started(progression, weekly_program.id)
        first_start = clock.now()
        clock.advance(timedelta(hours=3))

        enrollment = await progression.start_day(enrollment_id)

        assert enrollment.current_day == 1
        assert enrollment.started_at == first_start

    @pytest.mark.asyncio
    async def test_cannot_start_cancelled(self, progression, weekly_program):
        enrollment = await progression.enroll(USER_ID, weekly_program.id)
        await progression.cancel(enrollment.id)

        with pytest.raises(InvalidStateError):
            await progression.start_day(enrollment.id)

    @pytest.mark.asyncio
    async def test_unknown_enrollment(self, progression):
        with pytest.raises(NotFoundError) as exc_info:
            await progression.start_day(4242)

        assert exc_info.value.code == "NF_ENROLLMENT_001"


class TestCompleteDay:
    @pytest.mark.asyncio
    async def test_records_and_advances(self, progression, progress, weekly_program, fetch_all, clock):
        enrollment_id = await started(progression, weekly_program.id)

        enrollment = await progression.complete_day(
            enrollment_id, weekly_program.day_ids[1], 1, notes="felt strong"
        )

        assert enrollment.current_day == 2
        assert enrollment.total_days_completed == 1
        assert enrollment.last_activity_date == clock.now()
        rows = await fetch_all(
            select(ProgramDayCompletion).where(ProgramDayCompletion.enrollment_id == enrollment_id)
        )
        assert [(r.program_day_number, r.status, r.notes) for r in rows] == [
            (1, CompletionStatus.COMPLETED, "felt strong")
        ]

    @pytest.mark.asyncio
    async def test_completed_day_reads_today_then_past(self, progression, progress, weekly_program, clock):
        enrollment_id = await started(progression, weekly_program.id)
        await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)

        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.COMPLETED_TODAY

        clock.advance(timedelta(days=1))

        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.COMPLETED_PAST

    @pytest.mark.asyncio
    async def test_cannot_complete_twice(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)
        await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)

        with pytest.raises(InvalidStateError) as exc_info:
            await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)

        assert exc_info.value.code == "IS_DAY_001"
        assert exc_info.value.details["state"] == DayState.COMPLETED_TODAY.value

    @pytest.mark.asyncio
    async def test_cannot_complete_rest_day(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)
        await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)

        with pytest.raises(InvalidStateError):
            await progression.complete_day(enrollment_id, weekly_program.day_ids[2], 2)

    @pytest.mark.asyncio
    async def test_cannot_complete_upcoming_day(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        with pytest.raises(InvalidStateError) as exc_info:
            await progression.complete_day(enrollment_id, weekly_program.day_ids[3], 3)

        assert exc_info.value.details["state"] == DayState.UPCOMING.value

    @pytest.mark.asyncio
    async def test_active_recovery_can_be_completed(self, progression, program_factory):
        program = await program_factory([DayType.ACTIVE_RECOVERY, DayType.WORKOUT])
        enrollment_id = await started(progression, program.id)

        enrollment = await progression.complete_day(enrollment_id, program.day_ids[1], 1)

        assert enrollment.current_day == 2

    @pytest.mark.asyncio
    async def test_day_number_must_match_day(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        with pytest.raises(ValidationError) as exc_info:
            await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 3)

        assert exc_info.value.code == "VAL_DAY_NUMBER_001"

    @pytest.mark.asyncio
    async def test_day_from_another_program(self, progression, weekly_program, program_factory):
        other = await program_factory([DayType.WORKOUT], name="Other")
        enrollment_id = await started(progression, weekly_program.id)

        with pytest.raises(NotFoundError) as exc_info:
            await progression.complete_day(enrollment_id, other.day_ids[1], 1)

        assert exc_info.value.code == "NF_PROGRAM_DAY_001"

    @pytest.mark.asyncio
    async def test_failed_completion_writes_nothing(self, progression, progress, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        with pytest.raises(ValidationError):
            await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 2)

        summary = await progress.get_summary(enrollment_id)
        assert summary.completed_days == 0
        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.AVAILABLE_TODAY

    @pytest.mark.asyncio
    async def test_concurrent_completions_of_one_day(self, progression, progress, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)
        day_id = weekly_program.day_ids[1]

        results = await asyncio.gather(
            progression.complete_day(enrollment_id, day_id, 1),
            progression.complete_day(enrollment_id, day_id, 1),
            return_exceptions=True,
        )

        assert sum(1 for r in results if isinstance(r, InvalidStateError)) == 1
        summary = await progress.get_summary(enrollment_id)
        assert summary.completed_days == 1
        current = await progress.get_current_enrollment(USER_ID)
        assert current.current_day == 2


class TestLoggedWorkoutSession:
    """A completed workout session logged today blocks a second workout."""

    async def _log_session(self, session, enrollment_id: int, day_id: int, clock) -> int:
        workout = WorkoutSession(
            user_id=USER_ID,
            enrollment_id=enrollment_id,
            program_day_id=day_id,
            started_at=clock.now() - timedelta(hours=1),
            completed_at=clock.now(),
            is_completed=True,
        )
        session.add(workout)
        await session.commit()
        return workout.id

    @pytest.mark.asyncio
    async def test_day_reads_completed_today(self, async_db_session, progression, progress, weekly_program, clock):
        enrollment_id = await started(progression, weekly_program.id)
        await self._log_session(async_db_session, enrollment_id, weekly_program.day_ids[1], clock)

        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.COMPLETED_TODAY

        with pytest.raises(InvalidStateError):
            await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)

    @pytest.mark.asyncio
    async def test_linked_session_does_not_block_itself(
        self, async_db_session, progression, weekly_program, clock
    ):
        enrollment_id = await started(progression, weekly_program.id)
        session_id = await self._log_session(async_db_session, enrollment_id, weekly_program.day_ids[1], clock)

        enrollment = await progression.complete_day(
            enrollment_id, weekly_program.day_ids[1], 1, workout_session_id=session_id
        )

        assert enrollment.current_day == 2

    @pytest.mark.asyncio
    async def test_yesterdays_session_does_not_block(
        self, async_db_session, progression, progress, weekly_program, clock
    ):
        enrollment_id = await started(progression, weekly_program.id)
        await self._log_session(async_db_session, enrollment_id, weekly_program.day_ids[1], clock)
        clock.advance(timedelta(days=1))

        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.AVAILABLE_TODAY


class TestSkipDay:
    @pytest.mark.asyncio
    async def test_skip_rest_day(self, progression, progress, weekly_program, clock):
        enrollment_id = await started(progression, weekly_program.id)
        enrollment = await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)
        estimate = enrollment.estimated_completion_date
        clock.advance(timedelta(days=1))

        enrollment = await progression.skip_day(enrollment_id, weekly_program.day_ids[2], 2, reason="travel")

        assert enrollment.current_day == 3
        assert enrollment.total_days_skipped == 1
        assert enrollment.estimated_completion_date == estimate + timedelta(days=1)
        assert (await progress.get_day_state(enrollment_id, 2)).state == DayState.SKIPPED

    @pytest.mark.asyncio
    async def test_skip_workout_day(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        enrollment = await progression.skip_day(enrollment_id, weekly_program.day_ids[1], 1)

        assert enrollment.current_day == 2
        assert enrollment.total_days_completed == 0

    @pytest.mark.asyncio
    async def test_cannot_skip_upcoming_day(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        with pytest.raises(InvalidStateError):
            await progression.skip_day(enrollment_id, weekly_program.day_ids[2], 2)

    @pytest.mark.asyncio
    async def test_skip_resets_streak(self, progression, progress, weekly_program, clock):
        enrollment_id = await started(progression, weekly_program.id)
        await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)
        clock.advance(timedelta(days=1))

        await progression.skip_day(enrollment_id, weekly_program.day_ids[2], 2)

        summary = await progress.get_summary(enrollment_id)
        statistics = await progress.get_statistics(USER_ID)
        assert summary.current_streak == 0
        assert summary.longest_streak == 1
        assert statistics.current_streak == 0
        assert statistics.longest_streak == 1


class TestAdvance:
    @pytest.mark.asyncio
    async def test_current_day_never_decreases(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)
        seen = []
        for _ in range(weekly_program.total_days + 3):
            enrollment = await progression.advance(enrollment_id)
            seen.append(enrollment.current_day)

        assert seen == sorted(seen)
        assert max(seen) == weekly_program.total_days

    @pytest.mark.asyncio
    async def test_program_completes_once_on_last_day(self, progression, progress, program_factory, clock):
        program = await program_factory([DayType.WORKOUT] * 3)
        enrollment_id = await started(progression, program.id)
        for number in (1, 2):
            await progression.complete_day(enrollment_id, program.day_ids[number], number)
            clock.advance(timedelta(days=1))

        enrollment = await progression.complete_day(enrollment_id, program.day_ids[3], 3)
        completed_at = enrollment.actual_completion_date

        assert enrollment.status == EnrollmentStatus.COMPLETED
        assert enrollment.current_day == 3
        assert completed_at == clock.now()

        clock.advance(timedelta(days=1))
        enrollment = await progression.advance(enrollment_id)

        assert enrollment.status == EnrollmentStatus.COMPLETED
        assert enrollment.actual_completion_date == completed_at
        statistics = await progress.get_statistics(USER_ID)
        assert statistics.total_programs_completed == 1

    @pytest.mark.asyncio
    async def test_ninety_day_program(self, progression, program_factory):
        program = await program_factory([DayType.WORKOUT] * 90)
        enrollment_id = await started(progression, program.id)
        for _ in range(89):
            await progression.advance(enrollment_id)

        enrollment = await progression.complete_day(enrollment_id, program.day_ids[90], 90)

        assert enrollment.status == EnrollmentStatus.COMPLETED
        assert enrollment.current_day == 90

    @pytest.mark.asyncio
    async def test_completed_program_locks_days(self, progression, progress, program_factory):
        program = await program_factory([DayType.WORKOUT])
        enrollment_id = await started(progression, program.id)
        await progression.complete_day(enrollment_id, program.day_ids[1], 1)

        with pytest.raises(InvalidStateError) as exc_info:
            await progression.complete_day(enrollment_id, program.day_ids[1], 1)

        assert exc_info.value.details["state"] == DayState.LOCKED.value

    @pytest.mark.asyncio
    async def test_cannot_advance_paused(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)
        await progression.pause(enrollment_id)

        with pytest.raises(InvalidStateError):
            await progression.advance(enrollment_id)

    @pytest.mark.asyncio
    async def test_clears_substitutions_of_vacated_day(
        self, async_db_session, progression, weekly_program, exercises, clock
    ):
        substitutions = SubstitutionService(async_db_session, clock=clock)
        enrollment_id = await started(progression, weekly_program.id)
        await substitutions.set_day_substitution(
            1, exercises["Barbell Back Squat"], exercises["Goblet Squat"]
        )
        await substitutions.set_day_substitution(
            3, exercises["Barbell Bench Press"], exercises["Dumbbell Bench Press"]
        )

        await progression.complete_day(enrollment_id, weekly_program.day_ids[1], 1)

        assert await substitutions.get_substitutions_for_day(1) == {}
        assert await substitutions.get_substitutions_for_day(3) == {
            exercises["Barbell Bench Press"]: exercises["Dumbbell Bench Press"]
        }


class TestPauseResumeCancel:
    @pytest.mark.asyncio
    async def test_pause_and_resume(self, progression, progress, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        paused = await progression.pause(enrollment_id)
        assert paused.status == EnrollmentStatus.PAUSED
        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.LOCKED

        resumed = await progression.resume(enrollment_id)
        assert resumed.status == EnrollmentStatus.ACTIVE
        assert resumed.current_day == 1
        assert (await progress.get_day_state(enrollment_id, 1)).state == DayState.AVAILABLE_TODAY

    @pytest.mark.asyncio
    async def test_pause_requires_active(self, progression, weekly_program):
        enrollment = await progression.enroll(USER_ID, weekly_program.id)

        with pytest.raises(InvalidStateError) as exc_info:
            await progression.pause(enrollment.id)

        assert exc_info.value.code == "IS_ENROLLMENT_001"

    @pytest.mark.asyncio
    async def test_resume_requires_paused(self, progression, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        with pytest.raises(InvalidStateError):
            await progression.resume(enrollment_id)

    @pytest.mark.asyncio
    async def test_resume_refused_after_enrolling_elsewhere(self, progression, weekly_program, fetch_all):
        paused_id = await started(progression, weekly_program.id)
        await progression.pause(paused_id)
        newer = await progression.enroll(USER_ID, weekly_program.id)
        newer_id = newer.id

        with pytest.raises(ConflictError) as exc_info:
            await progression.resume(paused_id)

        assert exc_info.value.code == "CF_ENROLLMENT_ACTIVE"
        assert exc_info.value.details["enrollment_id"] == newer_id
        rows = await fetch_all(
            select(UserProgramEnrollment).where(UserProgramEnrollment.user_id == USER_ID)
        )
        statuses = {row.id: row.status for row in rows}
        assert statuses == {paused_id: EnrollmentStatus.PAUSED, newer_id: EnrollmentStatus.ENROLLED}

    @pytest.mark.asyncio
    async def test_paused_enrollment_is_still_current(self, progression, progress, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)
        await progression.pause(enrollment_id)

        current = await progress.get_current_enrollment(USER_ID)

        assert current.id == enrollment_id

    @pytest.mark.asyncio
    async def test_cancel_then_enroll_again(self, progression, progress, weekly_program):
        enrollment_id = await started(progression, weekly_program.id)

        cancelled = await progression.cancel(enrollment_id)
        assert cancelled.status == EnrollmentStatus.CANCELLED

        with pytest.raises(NotFoundError):
            await progress.get_current_enrollment(USER_ID)

        fresh = await progression.enroll(USER_ID, weekly_program.id, replace_existing=False)
        assert fresh.id != enrollment_id
        assert fresh.current_day == 0


class TestCompletionUpsert:
    @pytest.mark.asyncio
    async def test_same_day_number_replaces_record(self, async_db_session, progression, weekly_program, clock, fetch_all):
        enrollment = await progression.enroll(USER_ID, weekly_program.id)
        repository = CompletionRepository(async_db_session)

        async with async_db_session.begin():
            await repository.upsert(
                enrollment_id=enrollment.id,
                program_day_id=weekly_program.day_ids[1],
                program_day_number=1,
                status=CompletionStatus.SKIPPED,
                completion_date=clock.now(),
                skipped_reason="sick",
            )
        async with async_db_session.begin():
            await repository.upsert(
                enrollment_id=enrollment.id,
                program_day_id=weekly_program.day_ids[1],
                program_day_number=1,
                status=CompletionStatus.COMPLETED,
                completion_date=clock.now() + timedelta(hours=1),
            )

        rows = await fetch_all(
            select(ProgramDayCompletion).where(ProgramDayCompletion.enrollment_id == enrollment.id)
        )
        assert len(rows) == 1
        assert rows[0].status == CompletionStatus.COMPLETED
        assert rows[0].skipped_reason is None
