"""Unit tests for BaseAgent error translation and metadata."""

import pytest

from chainsage.agents.base import AgentResult, BaseAgent
from chainsage.llm.base import InvalidLLMResponseError
from chainsage.models.agent import GenerationFailure, StageMetadata


class EchoAgent(BaseAgent):
    failure_type = GenerationFailure
    action = "Failed to echo"

    def __init__(self, behavior):
        super().__init__(name="EchoAgent")
        self.behavior = behavior

    async def execute(self, metadata: StageMetadata, text: str) -> str:
        self._track_llm_call(metadata, tokens=7)
        return self.behavior(text)


def _raise(exc):
    def behavior(text):
        raise exc

    return behavior


@pytest.mark.asyncio
async def test_success_returns_result_with_metadata():
    result = await EchoAgent(lambda text: text.upper())(text="hi")

    assert isinstance(result, AgentResult)
    assert result.value == "HI"
    assert result.metadata.stage_name == "EchoAgent"
    assert result.metadata.llm_calls == 1
    assert result.metadata.tokens_used == 7
    assert result.metadata.duration_ms is not None
    assert result.metadata.error is None


@pytest.mark.asyncio
async def test_pipeline_errors_pass_through_unchanged():
    original = GenerationFailure("model refused")

    with pytest.raises(GenerationFailure) as exc_info:
        await EchoAgent(_raise(original))(text="hi")

    assert exc_info.value is original


@pytest.mark.asyncio
async def test_llm_errors_wrapped_in_failure_type():
    with pytest.raises(GenerationFailure) as exc_info:
        await EchoAgent(_raise(InvalidLLMResponseError("google", "no candidates")))(text="hi")

    assert exc_info.value.message == "Failed to echo: no candidates"
    assert exc_info.value.context["service"] == "google"


@pytest.mark.asyncio
async def test_unexpected_errors_wrapped():
    with pytest.raises(GenerationFailure, match="unexpected error: boom"):
        await EchoAgent(_raise(RuntimeError("boom")))(text="hi")
