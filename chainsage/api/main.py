"""
FastAPI Application

Main FastAPI application for ChainSage with:
- Lifespan management for the shared HTTP gateway and pipeline
- CORS middleware for the browser chat widget
- Global exception handler for pipeline errors
- Health, readiness and ask endpoints

Usage:
    uvicorn chainsage.api.main:app --reload --port 8000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chainsage import __version__
from chainsage.api.routes import ask, health
from chainsage.config import get_settings
from chainsage.gateway import ServiceGateway
from chainsage.models.agent import PipelineError
from chainsage.pipeline import ChainSagePipeline, create_pipeline

logger = logging.getLogger(__name__)

# Global state for pipeline and components
app_state = {
    "settings": None,
    "gateway": None,
    "pipeline": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - Settings
    - Shared outbound HTTP gateway
    - Pipeline orchestrator for the configured data provider

    Missing credentials only produce warnings here; requests that need them
    fail with a tagged error and /ready reports them.
    """
    config = get_settings()
    app_state["settings"] = config
    logger.info(f"Starting {config.app_name} API server...")

    try:
        logger.info("Initializing service gateway...")
        gateway = ServiceGateway(timeout=config.llm.timeout)
        app_state["gateway"] = gateway

        logger.info(f"Initializing pipeline for provider '{config.provider.name}'...")
        app_state["pipeline"] = create_pipeline(config, gateway)

        for env_var in config.missing_credentials():
            logger.warning(f"{env_var} is not set; questions will fail until it is configured")

        logger.info(f"{config.app_name} API server started successfully")
        yield  # Application runs here
    finally:
        logger.info(f"Shutting down {config.app_name} API server...")
        if app_state["gateway"]:
            await app_state["gateway"].aclose()
            logger.info("Service gateway closed")
        app_state["pipeline"] = None
        app_state["gateway"] = None
        logger.info(f"{config.app_name} API server shut down complete")


# Create FastAPI app
app = FastAPI(
    title="ChainSage API",
    description="Natural-language questions answered from on-chain data providers",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for the chat widget
config = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials="*" not in config.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Render pipeline errors that escape a route as a tagged insight."""
    logger.error(f"Pipeline error: {exc}", extra={"error": exc.to_dict()})
    product_tag = config.pipeline.product_tag
    return JSONResponse(
        status_code=exc.status_code,
        content={"insight": f"{product_tag}: {exc.message}"},
    )


# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(ask.router, prefix="/api/v1", tags=["ask"])
# Path the chat widget was originally deployed against
app.include_router(ask.legacy_router, tags=["ask"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "ChainSage API",
        "version": __version__,
        "provider": config.provider.name,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


def get_pipeline() -> ChainSagePipeline | None:
    """Return the pipeline built at startup, if any."""
    return app_state["pipeline"]
