"""
Ask Routes

Proxy endpoint for the chat widget: a JSON body with a question goes in,
a JSON body with an insight (or an error) comes out.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from chainsage.models.api import AskRequest, ErrorResponse, InsightResponse

logger = logging.getLogger(__name__)

router = APIRouter()
legacy_router = APIRouter()

ASK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed body or missing question"},
    405: {"description": "Any method other than POST"},
    500: {"model": InsightResponse, "description": "Tagged pipeline failure"},
    503: {"description": "Pipeline not initialized"},
}


async def _handle(request: Request) -> Response:
    from chainsage.api.main import app_state

    pipeline = app_state["pipeline"]
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline not initialized",
        )

    body = await request.body()
    result = await pipeline.handle(request.method, body)
    logger.info(f"{request.method} {request.url.path} -> {result.status_code}")

    if result.media_type == "text/plain":
        return PlainTextResponse(content=str(result.body), status_code=result.status_code)
    return JSONResponse(content=result.body, status_code=result.status_code)


@router.api_route(
    "/ask",
    methods=ASK_METHODS,
    response_model=InsightResponse,
    responses=_RESPONSES,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": AskRequest.model_json_schema()}}
        }
    },
)
async def ask(request: Request) -> Response:
    """
    Answer a natural-language question about on-chain data.

    The raw body is handed to the pipeline so that malformed JSON maps to a
    400 with an ``error`` field rather than FastAPI's validation format.
    """
    return await _handle(request)


@legacy_router.api_route(
    "/.netlify/functions/chainsage-proxy",
    methods=ASK_METHODS,
    include_in_schema=False,
)
async def ask_legacy(request: Request) -> Response:
    return await _handle(request)
