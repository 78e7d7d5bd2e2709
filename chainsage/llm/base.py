"""
Base LLM Provider

Abstract base class defining the interface for LLM providers used by the
query generator and the summarizer.
"""

import logging
from abc import ABC, abstractmethod

from chainsage.llm.models import LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """Base exception for LLM provider failures not raised by the gateway."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(message)


class InvalidLLMResponseError(LLMProviderError):
    """The provider answered, but without text at the expected location."""


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Attributes:
        provider_name: Unique identifier for this provider
        temperature: Default sampling temperature
        top_p: Default nucleus sampling mass
        candidate_count: Default number of candidates
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.1,
        top_p: float = 0.95,
        candidate_count: int = 1,
        timeout: int = 30,
    ):
        self.provider_name = provider_name
        self.temperature = temperature
        self.top_p = top_p
        self.candidate_count = candidate_count
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider",
            extra={
                "provider": provider_name,
                "temperature": temperature,
                "top_p": top_p,
            },
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            request: LLM request with messages and sampling parameters

        Returns:
            LLMResponse with generated content and metadata

        Raises:
            GatewayError: The HTTP call failed
            InvalidLLMResponseError: The response carried no text
        """
        pass  # pragma: no cover - abstract method

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Count (or estimate) tokens in a text string."""
        pass  # pragma: no cover - abstract method

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        """Fill unset sampling parameters from provider defaults."""
        if request.temperature is None:
            request.temperature = self.temperature
        if request.top_p is None:
            request.top_p = self.top_p
        if request.candidate_count is None:
            request.candidate_count = self.candidate_count
        return request

    def _log_request(self, request: LLMRequest) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "message_count": len(request.messages),
                "temperature": request.temperature,
                "top_p": request.top_p,
                "candidate_count": request.candidate_count,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        """Log response details for debugging."""
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
                "finish_reason": response.finish_reason,
            },
        )
