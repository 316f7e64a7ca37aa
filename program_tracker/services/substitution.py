"""
SubstitutionService - "swap this exercise for today" overrides.

Overrides are keyed by absolute program day number and original exercise,
not by enrollment: every enrollment sitting on that day number sees them.
They are cleared by ProgressionService when it advances past the day.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.core.clock import Clock
from program_tracker.core.exceptions import NotFoundError, ValidationError
from program_tracker.core.logging import get_logger
from program_tracker.core.transactions import transactional
from program_tracker.models import DaySubstitution, Exercise
from program_tracker.repositories import ExerciseRepository, SubstitutionRepository
from program_tracker.services.base import BaseService
from program_tracker.services.interfaces import ExerciseCatalog

logger = get_logger(__name__)


class SubstitutionService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        catalog: ExerciseCatalog | None = None,
    ):
        super().__init__(session, clock)
        self._substitutions = SubstitutionRepository(session)
        self._catalog = catalog or ExerciseRepository(session)

    @transactional(serialize_on="day_number")
    async def set_day_substitution(
        self,
        day_number: int,
        original_exercise_id: int,
        substitute_exercise_id: int,
    ) -> DaySubstitution:
        """Swap an exercise on one day number, replacing any earlier swap of the same exercise.

        Raises:
            ValidationError: Bad day number, self-substitution, or muscle group mismatch
            NotFoundError: Either exercise is missing from the catalog
        """
        if day_number < 1:
            raise ValidationError("day_number", "must be 1 or greater", {"day_number": day_number})
        if original_exercise_id == substitute_exercise_id:
            raise ValidationError(
                "substitute_exercise_id",
                "an exercise cannot substitute for itself",
                {"exercise_id": original_exercise_id},
            )

        original = await self._require_exercise(original_exercise_id)
        substitute = await self._require_exercise(substitute_exercise_id)
        if original.primary_muscle != substitute.primary_muscle:
            raise ValidationError(
                "substitute_exercise_id",
                f"{substitute.name} does not train {original.primary_muscle}",
                {
                    "original_muscle": original.primary_muscle,
                    "substitute_muscle": substitute.primary_muscle,
                },
            )

        substitution = await self._substitutions.upsert(
            program_day=day_number,
            original_exercise_id=original_exercise_id,
            substitute_exercise_id=substitute_exercise_id,
            timestamp=self._clock.now(),
        )
        logger.info(
            "day_substitution_set",
            day_number=day_number,
            original_exercise_id=original_exercise_id,
            substitute_exercise_id=substitute_exercise_id,
        )
        return substitution

    @transactional(serialize_on="day_number")
    async def clear_day_substitution(self, day_number: int, original_exercise_id: int) -> bool:
        removed = await self._substitutions.delete(day_number, original_exercise_id)
        logger.info(
            "day_substitution_cleared",
            day_number=day_number,
            original_exercise_id=original_exercise_id,
            removed=removed,
        )
        return removed

    @transactional(readonly=True)
    async def get_substitutions_for_day(self, day_number: int) -> dict[int, int]:
        """Original exercise id -> substitute exercise id for one day number."""
        rows = await self._substitutions.list_for_day(day_number)
        return {row.original_exercise_id: row.substitute_exercise_id for row in rows}

    @transactional(readonly=True)
    async def valid_substitutes(self, original_exercise_id: int) -> list[Exercise]:
        """Catalog exercises sharing the original's primary muscle, by name."""
        original = await self._require_exercise(original_exercise_id)
        candidates = await self._catalog.list_by_muscle(original.primary_muscle)
        return sorted(
            (exercise for exercise in candidates if exercise.id != original.id),
            key=lambda exercise: exercise.name,
        )

    async def _require_exercise(self, exercise_id: int) -> Exercise:
        exercise = await self._catalog.get_exercise(exercise_id)
        if exercise is None:
            raise NotFoundError("exercise", f"Exercise {exercise_id} not found", {"exercise_id": exercise_id})
        return exercise
