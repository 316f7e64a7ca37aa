"""
ProgramCatalogService - program templates: import, custom programs and reads.

The progression engine only reads programs. An imported or user-built program
must number its days 1..N without gaps and give every exercise on a day a
distinct order index. Only custom programs (user-built or duplicated) can be
deleted, and not while anyone is still enrolled in them.
"""
from collections import Counter
from dataclasses import dataclass, field

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
    Exercise,
    ExperienceLevel,
    Program,
    ProgramDay,
    ProgramDayExercise,
    ProgramGoal,
)
from program_tracker.repositories import (
    EnrollmentRepository,
    ExerciseRepository,
    ProgramRepository,
)
from program_tracker.schemas.program import ExerciseSeed, ProgramDefinition
from program_tracker.services.base import BaseService

logger = get_logger(__name__)


@dataclass
class ProgramDayDetail:
    day: ProgramDay
    exercises: list[ProgramDayExercise] = field(default_factory=list)


@dataclass
class ProgramDetail:
    program: Program
    days: list[ProgramDayDetail] = field(default_factory=list)


class ProgramCatalogService(BaseService):
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        locks: KeyedLocks | None = None,
    ):
        super().__init__(session, clock, locks)
        self._programs = ProgramRepository(session)
        self._enrollments = EnrollmentRepository(session)
        self._exercises = ExerciseRepository(session)

    @transactional()
    async def import_exercises(self, seeds: list[ExerciseSeed]) -> list[Exercise]:
        """Insert catalog exercises, updating muscle and equipment of ones already present by name."""
        imported = []
        for seed in seeds:
            exercise = await self._exercises.get_by_name(seed.name)
            if exercise is None:
                exercise = Exercise(
                    id=seed.id,
                    name=seed.name,
                    primary_muscle=seed.primary_muscle,
                    equipment=seed.equipment,
                )
                await self._exercises.create(exercise)
            else:
                exercise.primary_muscle = seed.primary_muscle
                exercise.equipment = seed.equipment
            imported.append(exercise)
        await self._session.flush()
        logger.info("exercises_imported", count=len(imported))
        return imported

    @transactional()
    async def import_program(self, definition: ProgramDefinition) -> Program:
        """
        Persist a program template with its days and exercises.

        Raises:
            ValidationError: Day numbers are not 1..N, or an order index repeats within a day
            NotFoundError: A day references an exercise missing from the catalog
        """
        program = await self._persist(definition, is_custom=definition.is_custom)
        logger.info(
            "program_imported",
            program_id=program.id,
            name=program.name,
            days=len(definition.days),
        )
        return program

    # ====== Custom programs ======

    @transactional(serialize_on="user_id")
    async def create_custom_program(self, user_id: int, definition: ProgramDefinition) -> Program:
        """Build a user's own program; validated like an import and always marked custom."""
        program = await self._persist(definition, is_custom=True, created_by=user_id)
        logger.info("custom_program_created", program_id=program.id, user_id=user_id, days=len(definition.days))
        return program

    @transactional(serialize_on="source_program_id")
    async def duplicate_program(self, source_program_id: int, new_name: str, user_id: int) -> Program:
        """
        Copy a program with all of its days and prescribed exercises.

        The copy belongs to ``user_id`` and is custom even when the source is
        a stock template.

        Raises:
            NotFoundError: Source program does not exist
            ValidationError: new_name is blank
        """
        name = new_name.strip()
        if not name:
            raise ValidationError("name", "must not be blank", {"name": new_name})
        source = await self._get_or_404(Program, source_program_id, f"Program {source_program_id} not found")

        copy = Program(
            name=name,
            description=source.description,
            goal=source.goal,
            experience_level=source.experience_level,
            duration_weeks=source.duration_weeks,
            workouts_per_week=source.workouts_per_week,
            equipment_required=list(source.equipment_required or []),
            is_custom=True,
            created_by=user_id,
            created_at=self._clock.now(),
        )
        await self._programs.create(copy)

        days = await self._programs.list_days(source.id)
        for day in days:
            day_copy = ProgramDay(
                program_id=copy.id,
                day_number=day.day_number,
                day_of_week=day.day_of_week,
                day_type=day.day_type,
                routine_id=day.routine_id,
                name=day.name,
                description=day.description,
            )
            self._programs.add(day_copy)
            await self._session.flush()
            for exercise in await self._programs.list_day_exercises(day.id):
                self._programs.add(
                    ProgramDayExercise(
                        program_day_id=day_copy.id,
                        exercise_id=exercise.exercise_id,
                        order_index=exercise.order_index,
                        sets=exercise.sets,
                        reps=exercise.reps,
                        rest_seconds=exercise.rest_seconds,
                        target_rpe=exercise.target_rpe,
                        notes=exercise.notes,
                    )
                )
        await self._session.flush()

        logger.info(
            "program_duplicated",
            source_program_id=source.id,
            program_id=copy.id,
            user_id=user_id,
            days=len(days),
        )
        return copy

    @transactional(serialize_on="program_id")
    async def delete_custom_program(self, program_id: int) -> None:
        """
        Delete a custom program together with its days and finished enrollments.

        Raises:
            NotFoundError: Program does not exist
            InvalidStateError: Program is a stock template
            ConflictError: Someone is enrolled in it, is following it or has paused it
        """
        program = await self._get_or_404(Program, program_id, f"Program {program_id} not found")
        if not program.is_custom:
            raise InvalidStateError(
                "program",
                f"Program {program_id} is not a custom program",
                {"program_id": program_id},
            )
        in_use = await self._enrollments.count_unfinished_for_program(program_id)
        if in_use:
            raise ConflictError(
                f"Program {program_id} has unfinished enrollments",
                code="CF_PROGRAM_IN_USE",
                details={"program_id": program_id, "enrollments": in_use},
            )
        await self._programs.delete(program)
        logger.info("custom_program_deleted", program_id=program_id)

    # ====== Reads ======

    @transactional(readonly=True)
    async def list_programs(
        self,
        goal: ProgramGoal | None = None,
        experience_level: ExperienceLevel | None = None,
        search: str | None = None,
    ) -> list[Program]:
        """Programs ordered by name; ``search`` matches name or description, case-insensitively."""
        search = search.strip() if search else None
        return await self._programs.list(goal=goal, experience_level=experience_level, search=search)

    @transactional(readonly=True)
    async def get_program_with_days(self, program_id: int) -> ProgramDetail:
        program = await self._get_or_404(Program, program_id, f"Program {program_id} not found")
        detail = ProgramDetail(program=program)
        for day in await self._programs.list_days(program.id):
            exercises = await self._programs.list_day_exercises(day.id)
            detail.days.append(ProgramDayDetail(day=day, exercises=exercises))
        return detail

    async def _persist(
        self,
        definition: ProgramDefinition,
        is_custom: bool,
        created_by: int | None = None,
    ) -> Program:
        self._validate_definition(definition)

        referenced = sorted({e.exercise_id for d in definition.days for e in d.exercises})
        known = await self._exercises.get_many(referenced)
        missing = [exercise_id for exercise_id in referenced if exercise_id not in known]
        if missing:
            raise NotFoundError("exercise", f"Unknown exercises: {missing}", {"exercise_ids": missing})

        program = Program(
            name=definition.name,
            description=definition.description,
            goal=definition.goal,
            experience_level=definition.experience_level,
            duration_weeks=definition.duration_weeks,
            workouts_per_week=definition.workouts_per_week,
            equipment_required=definition.equipment_required,
            is_custom=is_custom,
            created_by=created_by,
            created_at=self._clock.now(),
        )
        await self._programs.create(program)

        for day_def in sorted(definition.days, key=lambda d: d.day_number):
            day = ProgramDay(
                program_id=program.id,
                day_number=day_def.day_number,
                day_of_week=day_def.day_of_week,
                day_type=day_def.day_type,
                routine_id=day_def.routine_id,
                name=day_def.name,
                description=day_def.description,
            )
            self._programs.add(day)
            await self._session.flush()
            for exercise_def in day_def.exercises:
                self._programs.add(
                    ProgramDayExercise(
                        program_day_id=day.id,
                        exercise_id=exercise_def.exercise_id,
                        order_index=exercise_def.order_index,
                        sets=exercise_def.sets,
                        reps=exercise_def.reps,
                        rest_seconds=exercise_def.rest_seconds,
                        target_rpe=exercise_def.target_rpe,
                        notes=exercise_def.notes,
                    )
                )
        await self._session.flush()
        return program

    @staticmethod
    def _validate_definition(definition: ProgramDefinition) -> None:
        numbers = sorted(day.day_number for day in definition.days)
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValidationError(
                "days",
                "day numbers must run from 1 without gaps or repeats",
                {"day_numbers": numbers},
            )
        for day in definition.days:
            repeated = [i for i, n in Counter(e.order_index for e in day.exercises).items() if n > 1]
            if repeated:
                raise ValidationError(
                    "order_index",
                    f"day {day.day_number} repeats order index {repeated[0]}",
                    {"day_number": day.day_number, "order_indexes": repeated},
                )
