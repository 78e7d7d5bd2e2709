"""
Query Generator Agents

Translate a natural-language question into the query form the configured
provider consumes:

- SQLGeneratorAgent: raw SQL in the provider's dialect
- EndpointSelectorAgent: a catalog endpoint plus extracted parameters

Both use the deterministic query generation config and fail with
GenerationFailure rather than handing an unusable query downstream.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from chainsage.agents.base import BaseAgent
from chainsage.knowledge.endpoints import EndpointCatalog
from chainsage.llm.base import BaseLLMProvider
from chainsage.llm.models import GenerationConfig, LLMRequest
from chainsage.models.agent import GenerationFailure, StageMetadata
from chainsage.models.query import EndpointCall, EndpointSelection, SQLQuery
from chainsage.prompts.loader import PromptLoader
from chainsage.utils.llm_output import JSONParseError, parse_json_with_fallback, strip_code_fences

logger = logging.getLogger(__name__)

SQL_PROMPTS = {
    "flipside": "agents/sql_flipside.md",
    "dune": "agents/sql_dune.md",
    "covalent": "agents/sql_covalent.md",
}


class SQLGeneratorAgent(BaseAgent):
    """Question to SQL for asynchronous-job providers."""

    failure_type = GenerationFailure
    action = "Failed to convert question to SQL"

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        dialect: str,
        generation_config: GenerationConfig,
        prompts: PromptLoader | None = None,
        sentinel: str = "ERROR:",
        min_query_length: int = 10,
    ):
        super().__init__(name="SQLGeneratorAgent")
        if dialect not in SQL_PROMPTS:
            raise ValueError(f"No SQL prompt for dialect '{dialect}'")
        self.llm = llm_provider
        self.dialect = dialect
        self.generation_config = generation_config
        self.prompts = prompts or PromptLoader()
        self.sentinel = sentinel
        self.min_query_length = min_query_length

    async def execute(self, metadata: StageMetadata, question: str) -> SQLQuery:
        prompt = self.prompts.render(
            SQL_PROMPTS[self.dialect],
            question=question,
            sentinel=self.sentinel,
        )
        response = await self.llm.generate(
            LLMRequest.from_prompt(
                prompt,
                self.generation_config,
                service_name="Gemini (SQL Generation)",
            )
        )
        self._track_llm_call(metadata, response.usage.total_tokens)

        sql = strip_code_fences(response.content)
        if sql.startswith(self.sentinel) or len(sql) < self.min_query_length:
            raise GenerationFailure(
                f"{self.action}: model indicated an issue or returned a non-query response: {sql}",
                context={"dialect": self.dialect, "output": sql[:200]},
            )

        logger.info(
            "Generated SQL",
            extra={"dialect": self.dialect, "sql_length": len(sql)},
        )
        logger.debug(f"Generated SQL: {sql}")
        return SQLQuery(sql=sql, dialect=self.dialect, question=question)


class EndpointSelectorAgent(BaseAgent):
    """Question to catalog endpoint selection for synchronous providers."""

    failure_type = GenerationFailure
    action = "Failed to select an endpoint"

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        catalog: EndpointCatalog,
        generation_config: GenerationConfig,
        prompts: PromptLoader | None = None,
    ):
        super().__init__(name="EndpointSelectorAgent")
        self.llm = llm_provider
        self.catalog = catalog
        self.generation_config = generation_config
        self.prompts = prompts or PromptLoader()

    async def execute(self, metadata: StageMetadata, question: str) -> EndpointSelection:
        prompt = self.prompts.render(
            "agents/endpoint_selection.md",
            question=question,
            catalog=json.dumps(self.catalog.for_prompt(), indent=2),
        )
        response = await self.llm.generate(
            LLMRequest.from_prompt(
                prompt,
                self.generation_config,
                service_name="Gemini (NL to Endpoint)",
            )
        )
        self._track_llm_call(metadata, response.usage.total_tokens)

        try:
            payload = parse_json_with_fallback(response.content)
        except JSONParseError as exc:
            raise GenerationFailure(
                f"{self.action}: model output was not valid JSON",
                context={"output": exc.raw_text[:200]},
            ) from exc

        selection = self._build_selection(payload, question)
        logger.info(
            "Endpoint selection parsed",
            extra={
                "can_query": selection.can_query,
                "endpoints": [e.path for e in selection.endpoints],
                "missing_parameters": selection.missing_parameters,
            },
        )
        return selection

    def _build_selection(self, payload: Any, question: str) -> EndpointSelection:
        if not isinstance(payload, dict):
            raise GenerationFailure(
                f"{self.action}: model output was not a JSON object",
                context={"output_type": type(payload).__name__},
            )
        try:
            selection = EndpointSelection.model_validate({**payload, "question": question})
        except ValidationError as exc:
            raise GenerationFailure(
                f"{self.action}: model output did not match the selection format",
                context={"errors": exc.errors(include_url=False)[:5]},
            ) from exc

        if not selection.can_query:
            return selection
        if not selection.endpoints:
            raise GenerationFailure(
                f"{self.action}: model reported a possible query but chose no endpoint",
            )

        endpoints: list[EndpointCall] = []
        for endpoint in selection.endpoints:
            entry = self.catalog.get(endpoint.path)
            if entry is None:
                raise GenerationFailure(
                    f"{self.action}: model chose an unknown endpoint {endpoint.path}",
                    context={"path": endpoint.path},
                )
            # Required parameters come from the catalog, not the model
            endpoints.append(
                endpoint.model_copy(
                    update={
                        "endpoint_group": entry.endpoint_group,
                        "name": entry.name,
                        "required_parameters": list(entry.required_parameters),
                    }
                )
            )
        return selection.model_copy(update={"endpoints": endpoints})
