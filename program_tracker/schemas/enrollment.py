"""Enrollment, progression and progress schemas."""
from datetime import datetime

from pydantic import BaseModel, Field

from program_tracker.models import DayState, DayType, EnrollmentStatus, ProgramGoal


class EnrollRequest(BaseModel):
    program_id: int
    replace_existing: bool = True


class CompleteDayRequest(BaseModel):
    day_id: int
    day_number: int = Field(..., ge=1)
    workout_session_id: int | None = None
    notes: str | None = None


class SkipDayRequest(BaseModel):
    day_id: int
    day_number: int = Field(..., ge=1)
    reason: str | None = Field(default=None, max_length=500)


class EnrollmentResponse(BaseModel):
    id: int
    user_id: int
    program_id: int
    status: EnrollmentStatus
    current_day: int
    enrolled_at: datetime
    started_at: datetime | None = None
    total_days_completed: int
    total_days_skipped: int
    last_activity_date: datetime | None = None
    estimated_completion_date: datetime | None = None
    actual_completion_date: datetime | None = None

    class Config:
        from_attributes = True


class DayStateResponse(BaseModel):
    day_id: int
    day_number: int
    week_number: int
    day_of_week: int
    day_type: DayType
    name: str
    state: DayState
    label: str
    tone: str
    can_start: bool
    can_skip: bool

    class Config:
        from_attributes = True


class ProgressSummaryResponse(BaseModel):
    total_days: int
    completed_days: int
    skipped_days: int
    partial_days: int
    current_streak: int
    longest_streak: int
    completion_rate: float | None = None
    average_workouts_per_week: float
    progress_percentage: float
    estimated_completion_date: datetime | None = None

    class Config:
        from_attributes = True


class ProgramOverviewResponse(BaseModel):
    enrollment: EnrollmentResponse
    days: list[DayStateResponse]
    next_available_day: int | None = None
    summary: ProgressSummaryResponse

    class Config:
        from_attributes = True


class ProgramStatisticsResponse(BaseModel):
    total_programs_completed: int
    total_enrollments: int
    favorite_goal: ProgramGoal | None = None
    average_program_duration_days: int
    total_custom_programs_created: int = 0
    total_workout_days: int
    current_streak: int
    longest_streak: int

    class Config:
        from_attributes = True


class PlannedExerciseResponse(BaseModel):
    order_index: int
    original_exercise_id: int
    exercise_id: int
    exercise_name: str | None = None
    is_substituted: bool
    sets: int
    reps: str
    rest_seconds: int
    target_rpe: int | None = None
    suggested_weight: float | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class TodaysWorkoutResponse(BaseModel):
    enrollment_id: int
    day_id: int
    day_number: int
    week_number: int
    day_type: DayType
    name: str
    state: DayState
    exercises: list[PlannedExerciseResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True
