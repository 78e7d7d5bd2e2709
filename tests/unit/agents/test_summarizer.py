"""Unit tests for SummarizerAgent."""

import pytest

from chainsage.agents.summarizer import SummarizerAgent
from chainsage.gateway import TransportError
from chainsage.llm.models import GenerationConfig
from chainsage.models.agent import SummarizationFailure
from chainsage.models.query import ResultSet

SUMMARY_CONFIG = GenerationConfig(temperature=0.7, top_p=0.9, candidate_count=1)
RESULT = ResultSet(column_names=["balance"], rows=[{"balance": "1.23"}])


@pytest.fixture
def agent(mock_llm_provider):
    return SummarizerAgent(
        mock_llm_provider, generation_config=SUMMARY_CONFIG, provider_label="Flipside"
    )


@pytest.mark.asyncio
async def test_returns_insight(agent, mock_llm_provider):
    mock_llm_provider.set_response("  Address 0xabc holds 1.23 ETH.  ")

    result = await agent(question="What is the ETH balance of 0xabc?", result_set=RESULT)

    assert result.value == "Address 0xabc holds 1.23 ETH."
    request = mock_llm_provider.generate.call_args.args[0]
    assert request.temperature == 0.7
    assert request.top_p == 0.9
    prompt = request.messages[0].content
    assert "What is the ETH balance of 0xabc?" in prompt
    assert '{"columnNames": ["balance"], "rows": [{"balance": "1.23"}]}' in prompt
    assert "Flipside" in prompt
    assert "sampled" not in prompt


@pytest.mark.asyncio
async def test_prompt_mentions_sampling(agent, mock_llm_provider):
    mock_llm_provider.set_response("Most transfers were small.")

    await agent(question="Summarize transfers", result_set=RESULT, total_rows=400)

    assert "the first 1 of 400 rows" in mock_llm_provider.prompts[0]


@pytest.mark.asyncio
async def test_empty_summary_fails(agent, mock_llm_provider):
    mock_llm_provider.set_response("   ")

    with pytest.raises(SummarizationFailure, match="empty summary"):
        await agent(question="q", result_set=RESULT)


@pytest.mark.asyncio
async def test_transport_error_wrapped(agent, mock_llm_provider):
    mock_llm_provider.generate.side_effect = TransportError(
        "Gemini (Summarization)", "Failed to reach Gemini (Summarization): timed out"
    )

    with pytest.raises(SummarizationFailure) as exc_info:
        await agent(question="q", result_set=RESULT)

    assert exc_info.value.message.startswith("Failed to summarize results:")
    assert exc_info.value.context["service"] == "Gemini (Summarization)"
