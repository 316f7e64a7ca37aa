"""Default progression weight service.

Sizing the next working weight is owned by the progression feature; this
implementation only carries the last recorded working weight forward so the
workout builder has something to show.
"""
from program_tracker.models import ProgramDayExercise, UserProgression


class CarryForwardWeightService:
    def suggest_next_weight(
        self,
        current_progression: UserProgression | None,
        exercise_target: ProgramDayExercise,
    ) -> float | None:
        if current_progression is None:
            return None
        return current_progression.current_weight
