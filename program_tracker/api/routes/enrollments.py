"""API routes for enrollment lifecycle and day progression."""
from fastapi import APIRouter, Depends, status

from program_tracker.api.routes.dependencies import (
    get_current_user_id,
    get_progress_service,
    get_progression_service,
    get_workout_builder,
)
from program_tracker.schemas.enrollment import (
    CompleteDayRequest,
    DayStateResponse,
    EnrollmentResponse,
    EnrollRequest,
    ProgramOverviewResponse,
    ProgressSummaryResponse,
    SkipDayRequest,
    TodaysWorkoutResponse,
)
from program_tracker.services.progress import ProgressService
from program_tracker.services.progression import ProgressionService
from program_tracker.services.workout_builder import WorkoutBuilder

router = APIRouter()


@router.post("", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    request: EnrollRequest,
    user_id: int = Depends(get_current_user_id),
    service: ProgressionService = Depends(get_progression_service),
):
    """
    Enroll the current user in a program.

    Any enrolled or active enrollment of the user is cancelled first unless
    replace_existing is false, in which case the request fails with 409.
    """
    enrollment = await service.enroll(user_id, request.program_id, replace_existing=request.replace_existing)
    return EnrollmentResponse.model_validate(enrollment)


@router.get("/active", response_model=EnrollmentResponse)
async def get_active_enrollment(
    user_id: int = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    """Current user's enrolled, active or paused enrollment."""
    enrollment = await service.get_current_enrollment(user_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/start", response_model=EnrollmentResponse)
async def start_day(
    enrollment_id: int,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.start_day(enrollment_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/complete-day", response_model=EnrollmentResponse)
async def complete_day(
    enrollment_id: int,
    request: CompleteDayRequest,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.complete_day(
        enrollment_id,
        request.day_id,
        request.day_number,
        workout_session_id=request.workout_session_id,
        notes=request.notes,
    )
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/skip-day", response_model=EnrollmentResponse)
async def skip_day(
    enrollment_id: int,
    request: SkipDayRequest,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.skip_day(
        enrollment_id,
        request.day_id,
        request.day_number,
        reason=request.reason,
    )
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/advance", response_model=EnrollmentResponse)
async def advance(
    enrollment_id: int,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.advance(enrollment_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/pause", response_model=EnrollmentResponse)
async def pause(
    enrollment_id: int,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.pause(enrollment_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/resume", response_model=EnrollmentResponse)
async def resume(
    enrollment_id: int,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.resume(enrollment_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.post("/{enrollment_id}/cancel", response_model=EnrollmentResponse)
async def cancel(
    enrollment_id: int,
    service: ProgressionService = Depends(get_progression_service),
):
    enrollment = await service.cancel(enrollment_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.get("/{enrollment_id}/overview", response_model=ProgramOverviewResponse)
async def get_overview(
    enrollment_id: int,
    service: ProgressService = Depends(get_progress_service),
):
    """Every program day with its current state, plus the progress summary."""
    overview = await service.get_overview(enrollment_id)
    return ProgramOverviewResponse.model_validate(overview)


@router.get("/{enrollment_id}/summary", response_model=ProgressSummaryResponse)
async def get_summary(
    enrollment_id: int,
    service: ProgressService = Depends(get_progress_service),
):
    summary = await service.get_summary(enrollment_id)
    return ProgressSummaryResponse.model_validate(summary)


@router.get("/{enrollment_id}/days/{day_number}/state", response_model=DayStateResponse)
async def get_day_state(
    enrollment_id: int,
    day_number: int,
    service: ProgressService = Depends(get_progress_service),
):
    view = await service.get_day_state(enrollment_id, day_number)
    return DayStateResponse.model_validate(view)


@router.get("/{enrollment_id}/today", response_model=TodaysWorkoutResponse)
async def get_todays_workout(
    enrollment_id: int,
    builder: WorkoutBuilder = Depends(get_workout_builder),
):
    """Current day's exercises with substitutions applied and suggested weights."""
    workout = await builder.build_for_enrollment(enrollment_id)
    return TodaysWorkoutResponse.model_validate(workout)
