"""API routes for the current user's aggregate statistics."""
from fastapi import APIRouter, Depends

from program_tracker.api.routes.dependencies import get_current_user_id, get_progress_service
from program_tracker.schemas.enrollment import ProgramStatisticsResponse
from program_tracker.services.progress import ProgressService

router = APIRouter()


@router.get("/me/statistics", response_model=ProgramStatisticsResponse)
async def get_my_statistics(
    user_id: int = Depends(get_current_user_id),
    service: ProgressService = Depends(get_progress_service),
):
    statistics = await service.get_statistics(user_id)
    return ProgramStatisticsResponse.model_validate(statistics)
