from datetime import datetime

from pydantic import BaseModel


class SubstitutionRequest(BaseModel):
    original_exercise_id: int
    substitute_exercise_id: int


class SubstitutionResponse(BaseModel):
    program_day: int
    original_exercise_id: int
    substitute_exercise_id: int
    timestamp: datetime

    class Config:
        from_attributes = True


class DaySubstitutionsResponse(BaseModel):
    day_number: int
    substitutions: dict[int, int]


class ExerciseResponse(BaseModel):
    id: int
    name: str
    primary_muscle: str
    equipment: str | None = None

    class Config:
        from_attributes = True
