"""Repositories package."""
from program_tracker.repositories.base import Repository
from program_tracker.repositories.completion_repository import CompletionRepository
from program_tracker.repositories.enrollment_repository import EnrollmentRepository
from program_tracker.repositories.exercise_repository import ExerciseRepository
from program_tracker.repositories.program_repository import ProgramRepository
from program_tracker.repositories.substitution_repository import SubstitutionRepository
from program_tracker.repositories.workout_session_repository import WorkoutSessionRepository

__all__ = [
    "Repository",
    "CompletionRepository",
    "EnrollmentRepository",
    "ExerciseRepository",
    "ProgramRepository",
    "SubstitutionRepository",
    "WorkoutSessionRepository",
]
