"""API routes for the program catalog."""
from fastapi import APIRouter, Depends, Query, status

from program_tracker.api.routes.dependencies import get_catalog_service, get_current_user_id
from program_tracker.models import ExperienceLevel, ProgramGoal
from program_tracker.schemas.program import (
    DuplicateProgramRequest,
    ProgramDefinition,
    ProgramDayExerciseResponse,
    ProgramDayResponse,
    ProgramResponse,
    ProgramWithDaysResponse,
)
from program_tracker.services.program_catalog import ProgramCatalogService

router = APIRouter()


@router.get("", response_model=list[ProgramResponse])
async def list_programs(
    goal: ProgramGoal | None = Query(None),
    experience_level: ExperienceLevel | None = Query(None),
    search: str | None = Query(None, max_length=200),
    service: ProgramCatalogService = Depends(get_catalog_service),
):
    programs = await service.list_programs(
        goal=goal, experience_level=experience_level, search=search
    )
    return [ProgramResponse.model_validate(p) for p in programs]


@router.get("/{program_id}", response_model=ProgramWithDaysResponse)
async def get_program(
    program_id: int,
    service: ProgramCatalogService = Depends(get_catalog_service),
):
    """Program template with every day and its prescribed exercises."""
    detail = await service.get_program_with_days(program_id)
    base = ProgramResponse.model_validate(detail.program)
    return ProgramWithDaysResponse(
        **base.model_dump(),
        days=[
            ProgramDayResponse(
                id=item.day.id,
                day_number=item.day.day_number,
                week_number=item.day.week_number,
                day_of_week=item.day.day_of_week,
                day_type=item.day.day_type,
                name=item.day.name,
                description=item.day.description,
                exercises=[ProgramDayExerciseResponse.model_validate(e) for e in item.exercises],
            )
            for item in detail.days
        ],
    )


@router.post("", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
async def create_custom_program(
    definition: ProgramDefinition,
    user_id: int = Depends(get_current_user_id),
    service: ProgramCatalogService = Depends(get_catalog_service),
):
    """Create a custom program owned by the caller."""
    program = await service.create_custom_program(user_id, definition)
    return ProgramResponse.model_validate(program)


@router.post("/{program_id}/duplicate", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_program(
    program_id: int,
    request: DuplicateProgramRequest,
    user_id: int = Depends(get_current_user_id),
    service: ProgramCatalogService = Depends(get_catalog_service),
):
    program = await service.duplicate_program(program_id, request.name, user_id)
    return ProgramResponse.model_validate(program)


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_custom_program(
    program_id: int,
    service: ProgramCatalogService = Depends(get_catalog_service),
):
    await service.delete_custom_program(program_id)
