"""
LLM Request and Response Models

Pydantic models for LLM provider interactions.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationConfig(BaseModel):
    """Sampling parameters sent with a generation request."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(
        ...,
        ge=0.0,
        le=2.0,
        description="Sampling temperature"
    )
    top_p: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling probability mass"
    )
    candidate_count: int = Field(
        default=1,
        ge=1,
        description="Number of candidates to generate"
    )

    def to_payload(self) -> Dict[str, Any]:
        """Render as a Gemini ``generationConfig`` object."""
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "candidateCount": self.candidate_count,
        }


class LLMMessage(BaseModel):
    """Single message in an LLM conversation."""

    role: Literal["user"] = Field(
        ...,
        description="Message role"
    )
    content: str = Field(
        ...,
        description="Message content",
        min_length=1
    )


class LLMRequest(BaseModel):
    """Request to an LLM provider."""

    messages: List[LLMMessage] = Field(
        ...,
        description="Conversation messages",
        min_length=1
    )
    temperature: Optional[float] = Field(
        None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (overrides default)"
    )
    top_p: Optional[float] = Field(
        None,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling mass (overrides default)"
    )
    candidate_count: Optional[int] = Field(
        None,
        ge=1,
        description="Candidates to generate (overrides default)"
    )
    model: Optional[str] = Field(
        None,
        description="Specific model to use (overrides default)"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific parameters"
    )

    @classmethod
    def from_prompt(
        cls,
        prompt: str,
        config: GenerationConfig | None = None,
        **metadata: Any,
    ) -> "LLMRequest":
        """Build a single-turn user request with optional sampling config."""
        request = cls(messages=[LLMMessage(role="user", content=prompt)], metadata=metadata)
        if config is not None:
            request.temperature = config.temperature
            request.top_p = config.top_p
            request.candidate_count = config.candidate_count
        return request


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = Field(
        ...,
        ge=0,
        description="Number of tokens in the prompt"
    )
    completion_tokens: int = Field(
        ...,
        ge=0,
        description="Number of tokens in the completion"
    )
    total_tokens: int = Field(
        ...,
        ge=0,
        description="Total tokens used"
    )


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str = Field(
        ...,
        description="Generated text content"
    )
    model: str = Field(
        ...,
        description="Model that generated the response"
    )
    usage: LLMUsage = Field(
        ...,
        description="Token usage information"
    )
    finish_reason: Literal["stop", "length", "content_filter", "error"] = Field(
        ...,
        description="Reason the generation stopped"
    )
    provider: str = Field(
        ...,
        description="Provider that handled the request"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific response data"
    )
