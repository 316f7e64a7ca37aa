"""API route modules."""
from program_tracker.api.routes.enrollments import router as enrollments_router
from program_tracker.api.routes.programs import router as programs_router
from program_tracker.api.routes.substitutions import router as substitutions_router
from program_tracker.api.routes.users import router as users_router

__all__ = [
    "enrollments_router",
    "programs_router",
    "substitutions_router",
    "users_router",
]
