"""
Google LLM Provider

Implementation of BaseLLMProvider for Google's Gemini models over the
Generative Language REST API (``models/{model}:generateContent``).
"""

import logging
from typing import Any

from chainsage.gateway import ServiceGateway, require_credential
from chainsage.llm.base import BaseLLMProvider, InvalidLLMResponseError
from chainsage.llm.models import GenerationConfig, LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class GoogleProvider(BaseLLMProvider):
    """
    Google (Gemini) LLM provider implementation.

    Requests go through the shared ServiceGateway so failures surface as
    gateway errors. The API key is checked at call time, not construction.
    """

    def __init__(
        self,
        gateway: ServiceGateway,
        api_key: str | None,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        temperature: float = 0.1,
        top_p: float = 0.95,
        candidate_count: int = 1,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="google",
            temperature=temperature,
            top_p=top_p,
            candidate_count=candidate_count,
            timeout=timeout,
        )
        self.gateway = gateway
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")

        logger.info(f"Google provider initialized with model: {model}", extra={"model": model})

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate a completion using the Gemini REST API."""
        service_name = request.metadata.get("service_name", "Gemini")
        api_key = require_credential(self.api_key, service_name, "GEMINI_API")

        request = self._apply_defaults(request)
        self._log_request(request)

        model_name = request.model or self.model
        prompt = "\n\n".join(msg.content for msg in request.messages)
        config = GenerationConfig(
            temperature=request.temperature,
            top_p=request.top_p,
            candidate_count=request.candidate_count,
        )

        data = await self.gateway.call(
            f"{self.base_url}/models/{model_name}:generateContent",
            method="POST",
            headers={"Content-Type": "application/json", "x-goog-api-key": api_key},
            body={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": config.to_payload(),
            },
            service_name=service_name,
        )

        response_text = self._extract_response_text(data)
        usage = self._extract_usage(data, prompt, response_text)

        llm_response = LLMResponse(
            content=response_text,
            model=model_name,
            usage=usage,
            finish_reason=self._extract_finish_reason(data),
            provider="google",
            metadata={"raw_finish_reason": self._extract_raw_finish_reason(data)},
        )

        self._log_response(llm_response)
        return llm_response

    def count_tokens(self, text: str) -> int:
        """Count tokens for Google models."""
        # Rough approximation
        return len(text) // 4

    def _extract_response_text(self, data: Any) -> str:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise InvalidLLMResponseError(
                self.provider_name,
                "Gemini response did not contain candidates[0].content.parts[0].text",
            ) from exc
        if not isinstance(text, str):
            raise InvalidLLMResponseError(
                self.provider_name, "Gemini response text was not a string"
            )
        return text

    def _extract_usage(self, data: dict, prompt: str, response_text: str) -> LLMUsage:
        metadata = data.get("usageMetadata") or {}
        prompt_tokens = metadata.get("promptTokenCount")
        completion_tokens = metadata.get("candidatesTokenCount")
        if prompt_tokens is None or completion_tokens is None:
            # Estimate when the API omits usage
            prompt_tokens = self.count_tokens(prompt)
            completion_tokens = self.count_tokens(response_text)
        return LLMUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=metadata.get("totalTokenCount", prompt_tokens + completion_tokens),
        )

    def _extract_raw_finish_reason(self, data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        return str(candidates[0].get("finishReason") or "")

    def _extract_finish_reason(self, data: dict) -> str:
        raw_reason = self._extract_raw_finish_reason(data).lower()
        if any(token in raw_reason for token in ("max_tokens", "length")):
            return "length"
        if any(token in raw_reason for token in ("safety", "blocked", "recitation")):
            return "content_filter"
        if "error" in raw_reason:
            return "error"
        return "stop"
