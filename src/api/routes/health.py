"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core.config import API_VERSION, COLORS_WORKBOOK_PATH

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns 200 if the colors workbook is present, 503 otherwise.
    """
    colors_available = COLORS_WORKBOOK_PATH.exists()
    timestamp = datetime.now(timezone.utc).isoformat()

    if colors_available:
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            colors_available=True,
            timestamp=timestamp,
        )
    else:
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=API_VERSION,
                colors_available=False,
                timestamp=timestamp,
                error="Colors workbook not found",
            ).model_dump(),
        )
