"""
Summarizer Agent

Turns a (possibly sampled) ResultSet and the original question into a short
prose insight using the creative generation config.
"""

import logging

from chainsage.agents.base import BaseAgent
from chainsage.llm.base import BaseLLMProvider
from chainsage.llm.models import GenerationConfig, LLMRequest
from chainsage.models.agent import StageMetadata, SummarizationFailure
from chainsage.models.query import ResultSet
from chainsage.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)


class SummarizerAgent(BaseAgent):
    """Result set to insight text."""

    failure_type = SummarizationFailure
    action = "Failed to summarize results"

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        generation_config: GenerationConfig,
        provider_label: str,
        prompts: PromptLoader | None = None,
    ):
        super().__init__(name="SummarizerAgent")
        self.llm = llm_provider
        self.generation_config = generation_config
        self.provider_label = provider_label
        self.prompts = prompts or PromptLoader()

    async def execute(
        self,
        metadata: StageMetadata,
        question: str,
        result_set: ResultSet,
        total_rows: int | None = None,
    ) -> str:
        total_rows = result_set.row_count if total_rows is None else total_rows
        prompt = self.prompts.render(
            "agents/summarization.md",
            question=question,
            provider=self.provider_label,
            data=result_set.to_json(),
            sampled=total_rows > result_set.row_count,
            row_count=result_set.row_count,
            total_rows=total_rows,
        )
        response = await self.llm.generate(
            LLMRequest.from_prompt(
                prompt,
                self.generation_config,
                service_name="Gemini (Summarization)",
            )
        )
        self._track_llm_call(metadata, response.usage.total_tokens)

        insight = response.content.strip()
        if not insight:
            raise SummarizationFailure(
                f"{self.action}: model returned an empty summary",
                context={"finish_reason": response.finish_reason},
            )

        logger.info("Generated insight", extra={"insight_length": len(insight)})
        return insight
