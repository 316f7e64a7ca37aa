"""Collaborators the engine consumes but does not own."""
from typing import Protocol

from program_tracker.core.clock import DayWindow
from program_tracker.models import Exercise, ProgramDayExercise, UserProgression


class WorkoutSessionLookup(Protocol):
    async def has_completed_session_today(
        self,
        enrollment_id: int,
        day_id: int,
        window: DayWindow,
        exclude_session_id: int | None = None,
    ) -> bool:
        ...


class ProgressionWeightService(Protocol):
    def suggest_next_weight(
        self,
        current_progression: UserProgression | None,
        exercise_target: ProgramDayExercise,
    ) -> float | None:
        ...


class ExerciseCatalog(Protocol):
    async def get_exercise(self, exercise_id: int) -> Exercise | None:
        ...

    async def list_by_muscle(self, muscle: str) -> list[Exercise]:
        ...
