"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core.config import API_VERSION, SETTLE_CONFIG_PATH

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if the rules file is missing.
    """
    config_available = SETTLE_CONFIG_PATH.exists()
    timestamp = datetime.now(timezone.utc).isoformat()

    if config_available:
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            config_available=True,
            timestamp=timestamp,
        )
    else:
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=API_VERSION,
                config_available=False,
                timestamp=timestamp,
                error=f"Rules file not found at {SETTLE_CONFIG_PATH}",
            ).model_dump(),
        )
