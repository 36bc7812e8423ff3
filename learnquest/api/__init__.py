from fastapi import APIRouter

from learnquest.api.gamification import router as gamification_router
from learnquest.api.schemas import HealthResponse
from learnquest import __version__

router = APIRouter()
router.include_router(gamification_router)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(status="healthy", version=__version__)
