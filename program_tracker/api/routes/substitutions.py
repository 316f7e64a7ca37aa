"""API routes for per-day exercise substitutions."""
from fastapi import APIRouter, Depends, status

from program_tracker.api.routes.dependencies import get_substitution_service
from program_tracker.core.exceptions import NotFoundError
from program_tracker.schemas.substitution import (
    DaySubstitutionsResponse,
    ExerciseResponse,
    SubstitutionRequest,
    SubstitutionResponse,
)
from program_tracker.services.substitution import SubstitutionService

router = APIRouter()


@router.get("/exercises/{exercise_id}/alternatives", response_model=list[ExerciseResponse])
async def list_alternatives(
    exercise_id: int,
    service: SubstitutionService = Depends(get_substitution_service),
):
    """Exercises that may replace the given one (same primary muscle)."""
    exercises = await service.valid_substitutes(exercise_id)
    return [ExerciseResponse.model_validate(e) for e in exercises]


@router.get("/{day_number}", response_model=DaySubstitutionsResponse)
async def get_day_substitutions(
    day_number: int,
    service: SubstitutionService = Depends(get_substitution_service),
):
    substitutions = await service.get_substitutions_for_day(day_number)
    return DaySubstitutionsResponse(day_number=day_number, substitutions=substitutions)


@router.put("/{day_number}", response_model=SubstitutionResponse)
async def set_day_substitution(
    day_number: int,
    request: SubstitutionRequest,
    service: SubstitutionService = Depends(get_substitution_service),
):
    substitution = await service.set_day_substitution(
        day_number,
        request.original_exercise_id,
        request.substitute_exercise_id,
    )
    return SubstitutionResponse.model_validate(substitution)


@router.delete("/{day_number}/{original_exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_day_substitution(
    day_number: int,
    original_exercise_id: int,
    service: SubstitutionService = Depends(get_substitution_service),
):
    removed = await service.clear_day_substitution(day_number, original_exercise_id)
    if not removed:
        raise NotFoundError(
            "substitution",
            f"No substitution for exercise {original_exercise_id} on day {day_number}",
            {"day_number": day_number, "original_exercise_id": original_exercise_id},
        )
