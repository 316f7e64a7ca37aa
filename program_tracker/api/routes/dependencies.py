"""Shared dependencies for API routes."""
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from program_tracker.config.settings import get_settings
from program_tracker.core.clock import Clock, get_clock
from program_tracker.core.exceptions import ValidationError
from program_tracker.core.logging import add_log_context
from program_tracker.db.database import get_db
from program_tracker.services.progress import ProgressService
from program_tracker.services.progression import ProgressionService
from program_tracker.services.program_catalog import ProgramCatalogService
from program_tracker.services.substitution import SubstitutionService
from program_tracker.services.workout_builder import WorkoutBuilder

settings = get_settings()


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> int:
    """Caller's user id.

    Authentication lives in front of this service; the caller is identified by
    the X-User-Id header, falling back to default_user_id for single-user setups.
    """
    if x_user_id is None:
        user_id = settings.default_user_id
    else:
        try:
            user_id = int(x_user_id)
        except ValueError:
            raise ValidationError("x_user_id", "must be an integer", {"value": x_user_id})
    add_log_context(user_id=user_id)
    return user_id


def get_request_clock() -> Clock:
    return get_clock()


def get_progression_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
) -> ProgressionService:
    return ProgressionService(db, clock=clock)


def get_progress_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
) -> ProgressService:
    return ProgressService(db, clock=clock)


def get_substitution_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
) -> SubstitutionService:
    return SubstitutionService(db, clock=clock)


def get_workout_builder(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
) -> WorkoutBuilder:
    return WorkoutBuilder(db, clock=clock)


def get_catalog_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_request_clock),
) -> ProgramCatalogService:
    return ProgramCatalogService(db, clock=clock)
