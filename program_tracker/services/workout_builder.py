"""
WorkoutBuilder - assembles the current program day's exercise list.

Applies the day-number substitutions and asks the progression weight service
for a suggested working weight per exercise. Read-only.
"""
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.core.clock import Clock
from program_tracker.core.exceptions import InvalidStateError, NotFoundError
from program_tracker.core.logging import get_logger
from program_tracker.core.transactions import transactional
from program_tracker.models import DayState, DayType
from program_tracker.repositories import (
    CompletionRepository,
    EnrollmentRepository,
    ExerciseRepository,
    ProgramRepository,
    SubstitutionRepository,
    WorkoutSessionRepository,
)
from program_tracker.services.base import BaseService
from program_tracker.services.day_state import DayStateResolver
from program_tracker.services.interfaces import ProgressionWeightService, WorkoutSessionLookup
from program_tracker.services.progression import completed_session_day_ids
from program_tracker.services.progression_weight import CarryForwardWeightService

logger = get_logger(__name__)


@dataclass
class PlannedExercise:
    order_index: int
    original_exercise_id: int
    exercise_id: int
    exercise_name: str | None
    is_substituted: bool
    sets: int
    reps: str
    rest_seconds: int
    target_rpe: int | None
    suggested_weight: float | None
    notes: str | None = None


@dataclass
class TodaysWorkout:
    enrollment_id: int
    day_id: int
    day_number: int
    week_number: int
    day_type: DayType
    name: str
    state: DayState
    exercises: list[PlannedExercise] = field(default_factory=list)


class WorkoutBuilder(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        weight_service: ProgressionWeightService | None = None,
        session_lookup: WorkoutSessionLookup | None = None,
    ):
        super().__init__(session, clock)
        self._programs = ProgramRepository(session)
        self._enrollments = EnrollmentRepository(session)
        self._completions = CompletionRepository(session)
        self._substitutions = SubstitutionRepository(session)
        self._exercises = ExerciseRepository(session)
        self._weights = weight_service or CarryForwardWeightService()
        self._session_lookup = session_lookup or WorkoutSessionRepository(session)
        self._resolver = DayStateResolver(self._clock)

    @transactional(readonly=True)
    async def build_for_enrollment(self, enrollment_id: int) -> TodaysWorkout:
        enrollment = await self._enrollments.get(enrollment_id)
        if enrollment is None:
            raise NotFoundError(
                "enrollment",
                f"Enrollment {enrollment_id} not found",
                {"enrollment_id": enrollment_id},
            )
        if enrollment.current_day == 0:
            raise InvalidStateError(
                "enrollment",
                "Program has not been started yet",
                {"enrollment_id": enrollment_id, "status": enrollment.status.value},
            )

        day = await self._programs.get_day_by_number(enrollment.program_id, enrollment.current_day)
        if day is None:
            raise NotFoundError(
                "program_day",
                f"Day {enrollment.current_day} not found in program {enrollment.program_id}",
                {"day_number": enrollment.current_day, "program_id": enrollment.program_id},
            )

        completions = await self._completions.list_for_enrollment(enrollment.id)
        session_days = await completed_session_day_ids(
            self._session_lookup, self._clock, enrollment, [day]
        )
        state = self._resolver.resolve(
            day, enrollment, completions, completed_session_day_ids=session_days
        )

        workout = TodaysWorkout(
            enrollment_id=enrollment.id,
            day_id=day.id,
            day_number=day.day_number,
            week_number=day.week_number,
            day_type=day.day_type,
            name=day.name,
            state=state,
        )
        if day.day_type in (DayType.REST, DayType.ACTIVE_RECOVERY):
            return workout

        targets = await self._programs.list_day_exercises(day.id)
        swaps = {
            row.original_exercise_id: row.substitute_exercise_id
            for row in await self._substitutions.list_for_day(day.day_number)
        }
        effective_ids = [swaps.get(t.exercise_id, t.exercise_id) for t in targets]
        catalog = await self._exercises.get_many(sorted(set(effective_ids)))
        progressions = await self._exercises.get_progressions(enrollment.user_id, effective_ids)

        for target, exercise_id in zip(targets, effective_ids):
            exercise = catalog.get(exercise_id)
            workout.exercises.append(
                PlannedExercise(
                    order_index=target.order_index,
                    original_exercise_id=target.exercise_id,
                    exercise_id=exercise_id,
                    exercise_name=exercise.name if exercise else None,
                    is_substituted=exercise_id != target.exercise_id,
                    sets=target.sets,
                    reps=target.reps,
                    rest_seconds=target.rest_seconds,
                    target_rpe=target.target_rpe,
                    suggested_weight=self._weights.suggest_next_weight(
                        progressions.get(exercise_id), target
                    ),
                    notes=target.notes,
                )
            )

        logger.debug(
            "workout_built",
            enrollment_id=enrollment.id,
            day_number=day.day_number,
            exercises=len(workout.exercises),
            substituted=sum(1 for e in workout.exercises if e.is_substituted),
        )
        return workout
