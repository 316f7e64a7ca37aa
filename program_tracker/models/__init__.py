"""SQLAlchemy models."""
from program_tracker.models.enums import (
    CompletionStatus,
    DayState,
    DayType,
    EnrollmentStatus,
    ExperienceLevel,
    OPEN_ENROLLMENT_STATUSES,
    ProgramGoal,
)
from program_tracker.models.exercise import Exercise, UserProgression
from program_tracker.models.program import Program, ProgramDay, ProgramDayExercise
from program_tracker.models.enrollment import (
    CumulativeStats,
    ProgramDayCompletion,
    UserProgramEnrollment,
)
from program_tracker.models.substitution import DaySubstitution
from program_tracker.models.workout_session import WorkoutSession

__all__ = [
    "CompletionStatus",
    "CumulativeStats",
    "DayState",
    "DaySubstitution",
    "DayType",
    "EnrollmentStatus",
    "Exercise",
    "ExperienceLevel",
    "OPEN_ENROLLMENT_STATUSES",
    "Program",
    "ProgramDay",
    "ProgramDayCompletion",
    "ProgramDayExercise",
    "ProgramGoal",
    "UserProgramEnrollment",
    "UserProgression",
    "WorkoutSession",
]
