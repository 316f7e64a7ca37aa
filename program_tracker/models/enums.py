"""Closed enumerations shared by models, services and schemas."""
from enum import Enum

from sqlalchemy import Enum as SAEnum


class ProgramGoal(str, Enum):
    FAT_LOSS = "fat_loss"
    MUSCLE_BUILDING = "muscle_building"
    GENERAL_FITNESS = "general_fitness"
    STRENGTH = "strength"
    ENDURANCE = "endurance"
    ATHLETIC_PERFORMANCE = "athletic_performance"
    OTHER = "other"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class DayType(str, Enum):
    WORKOUT = "workout"
    REST = "rest"
    ACTIVE_RECOVERY = "active_recovery"
    OPTIONAL = "optional"
    DELOAD = "deload"


class EnrollmentStatus(str, Enum):
    ENROLLED = "enrolled"      # enrolled but not started
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"    # terminal; re-enrolling creates a new row


OPEN_ENROLLMENT_STATUSES = (EnrollmentStatus.ENROLLED, EnrollmentStatus.ACTIVE)


class CompletionStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    PARTIAL = "partial"
    SUBSTITUTED = "substituted"  # completed with a different routine


class DayState(str, Enum):
    """What a program day currently permits. Derived, never persisted."""

    AVAILABLE_TODAY = "available_today"
    COMPLETED_TODAY = "completed_today"
    COMPLETED_PAST = "completed_past"
    SKIPPED = "skipped"
    REST_DAY_ACTIVE = "rest_day_active"
    ACTIVE_RECOVERY_AVAILABLE = "active_recovery_available"
    UPCOMING = "upcoming"
    LOCKED = "locked"


def enum_column(enum_cls: type[Enum], name: str) -> SAEnum:
    """Column type persisting an enum by its value."""
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
