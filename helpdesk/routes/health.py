"""
Health check endpoint
"""
import time
from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from helpdesk import __version__
from helpdesk.config import get_settings
from helpdesk.models.schemas import utc_now

router = APIRouter(prefix="/api/health", tags=["health"])

# Application start time for uptime calculation
APP_START_TIME = time.time()


class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded")
    timestamp: datetime = Field(default_factory=utc_now, description="Check timestamp")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    llm_configured: bool = Field(..., description="False means offline heuristics only")
    data_store: str


@router.get("", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint

    Reports "degraded" when no language model is configured; the service
    still works on offline heuristics.
    """
    settings = get_settings()
    return HealthResponse(
        status="healthy" if settings.llm_configured else "degraded",
        version=__version__,
        uptime_seconds=round(time.time() - APP_START_TIME, 2),
        llm_configured=settings.llm_configured,
        data_store=settings.data_store,
    )
