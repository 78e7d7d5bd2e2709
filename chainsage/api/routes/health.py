"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from chainsage import __version__
from chainsage.models.api import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK if the service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check for the configured pipeline.

    Checks:
    - Pipeline is initialized
    - Gemini API key is configured
    - Data provider API key is configured

    Returns:
        200 OK if all checks pass
        503 Service Unavailable if any check fails
    """
    from chainsage.api.main import app_state
    from chainsage.config import get_settings

    settings = app_state["settings"] or get_settings()
    missing = settings.missing_credentials()

    checks = {
        "pipeline": app_state["pipeline"] is not None,
        "llm_credentials": "GEMINI_API" not in missing,
        "provider_credentials": settings.provider.api_key_env not in missing,
    }
    for name, ok in checks.items():
        if not ok:
            logger.warning(f"Readiness check failed: {name}")
    all_ready = all(checks.values())

    response_data = ReadinessResponse(
        status="ready" if all_ready else "not_ready",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        provider=settings.provider.name,
        checks=checks,
        missing_credentials=missing,
    )

    status_code = status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=response_data.model_dump())
