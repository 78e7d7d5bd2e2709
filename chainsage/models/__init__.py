"""
ChainSage Models Module

Pydantic models and exceptions shared across the pipeline.

Available Models:
    Stage Models:
        - PipelineStage: Lifecycle states of one request
        - StageMetadata: Per-stage timing and LLM call tracking
        - PipelineError and its failure kinds

    Query Models:
        - SQLQuery / EndpointSelection: GeneratedQuery variants
        - ResultSet: Canonical {columnNames, rows} result

    API Models:
        - AskRequest, InsightResponse, ErrorResponse, ProxyResponse
        - HealthResponse, ReadinessResponse

Usage:
    from chainsage.models import ResultSet, GenerationFailure
"""

from chainsage.models.agent import (
    ExecutionFailure,
    ExecutionTimeout,
    GenerationFailure,
    PipelineError,
    PipelineStage,
    RequestValidationError,
    ResultFetchFailure,
    StageMetadata,
    SubmissionFailure,
    SummarizationFailure,
)
from chainsage.models.api import (
    AskRequest,
    ErrorResponse,
    HealthResponse,
    InsightResponse,
    ProxyResponse,
    ReadinessResponse,
)
from chainsage.models.query import (
    EndpointCall,
    EndpointSelection,
    GeneratedQuery,
    ResultSet,
    SQLQuery,
)

__all__ = [
    # Stage models
    "PipelineStage",
    "StageMetadata",
    "PipelineError",
    "RequestValidationError",
    "GenerationFailure",
    "SubmissionFailure",
    "ExecutionFailure",
    "ExecutionTimeout",
    "ResultFetchFailure",
    "SummarizationFailure",
    # Query models
    "SQLQuery",
    "EndpointCall",
    "EndpointSelection",
    "GeneratedQuery",
    "ResultSet",
    # API models
    "AskRequest",
    "InsightResponse",
    "ErrorResponse",
    "ProxyResponse",
    "HealthResponse",
    "ReadinessResponse",
]
