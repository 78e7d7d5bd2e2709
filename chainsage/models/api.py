"""
API Request/Response Models

Pydantic models for FastAPI endpoints.
"""

from typing import Any

from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    """Request body accepted by the ask endpoint (documentation only; the
    handler validates the raw body itself so malformed JSON maps to 400)."""

    question: str = Field(..., min_length=1, description="Natural-language question")

    model_config = {
        "json_schema_extra": {
            "example": {"question": "What is the total ETH balance of address 0xABC?"}
        }
    }


class InsightResponse(BaseModel):
    """Successful answer, or a tagged pipeline failure on a 500."""

    insight: str = Field(..., description="Prose answer or 'ChainSage Error: ...'")

    model_config = {
        "json_schema_extra": {
            "example": {"insight": "The address holds 12.5 ETH as of the latest block."}
        }
    }


class ErrorResponse(BaseModel):
    """Request validation failure."""

    error: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "example": {"error": "Invalid or missing 'question' in request body."}
        }
    }


class ProxyResponse(BaseModel):
    """Transport-neutral result of handling one inbound request."""

    status_code: int
    body: dict[str, Any] | str
    media_type: str = "application/json"


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status: 'healthy' or 'unhealthy'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")


class ReadinessResponse(BaseModel):
    """Response model for readiness check endpoint."""

    status: str = Field(..., description="Readiness status: 'ready' or 'not_ready'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")
    provider: str = Field(..., description="Configured data provider")
    checks: dict[str, bool] = Field(..., description="Individual readiness checks")
    missing_credentials: list[str] = Field(
        default_factory=list,
        description="Environment variables that must be set before questions succeed",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "not_ready",
                "version": "0.1.0",
                "timestamp": "2026-01-16T12:00:00Z",
                "provider": "flipside",
                "checks": {"pipeline": True, "llm_credentials": True, "provider_credentials": False},
                "missing_credentials": ["FLIPSIDE_API"],
            }
        }
    }
