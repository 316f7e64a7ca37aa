"""Program catalog schemas, including the import format used by seeding."""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from program_tracker.models import DayType, ExperienceLevel, ProgramGoal


class ProgramDayExerciseDefinition(BaseModel):
    exercise_id: int
    order_index: int = Field(..., ge=0)
    sets: int = Field(default=3, ge=1)
    reps: str = "8-12"
    rest_seconds: int = Field(default=90, ge=0)
    target_rpe: int | None = Field(default=None, ge=1, le=10)
    notes: str | None = None


class ProgramDayDefinition(BaseModel):
    day_number: int = Field(..., ge=1)
    day_of_week: int = Field(..., ge=1, le=7)
    day_type: DayType
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    routine_id: int | None = None
    exercises: list[ProgramDayExerciseDefinition] = Field(default_factory=list)


class ProgramDefinition(BaseModel):
    """A complete program template as read from a seed file."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    goal: ProgramGoal
    experience_level: ExperienceLevel
    duration_weeks: int = Field(..., ge=1)
    workouts_per_week: int = Field(..., ge=1, le=7)
    equipment_required: list[str] = Field(default_factory=list)
    is_custom: bool = False
    days: list[ProgramDayDefinition] = Field(..., min_length=1)

    @field_validator("equipment_required")
    @classmethod
    def strip_equipment(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item.strip()]


class DuplicateProgramRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class ExerciseSeed(BaseModel):
    id: int | None = None
    name: str = Field(..., min_length=1, max_length=200)
    primary_muscle: str = Field(..., min_length=1, max_length=100)
    equipment: str | None = None


class ProgramResponse(BaseModel):
    id: int
    name: str
    description: str
    goal: ProgramGoal
    experience_level: ExperienceLevel
    duration_weeks: int
    workouts_per_week: int
    equipment_required: list[str]
    is_custom: bool
    created_by: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProgramDayExerciseResponse(BaseModel):
    exercise_id: int
    order_index: int
    sets: int
    reps: str
    rest_seconds: int
    target_rpe: int | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class ProgramDayResponse(BaseModel):
    id: int
    day_number: int
    week_number: int
    day_of_week: int
    day_type: DayType
    name: str
    description: str | None = None
    exercises: list[ProgramDayExerciseResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ProgramWithDaysResponse(ProgramResponse):
    days: list[ProgramDayResponse] = Field(default_factory=list)
