"""
ChainSage Pipeline Orchestrator

LangGraph-based pipeline answering one question per request:
- Query generator → Executor → Normalizer → Summarizer
- Early exits: an endpoint selection that cannot be queried answers with the
  model's explanation; an empty result answers with a fixed message and
  skips the summarizer
- Per-stage latency and LLM call tracking
- One top-level failure boundary mapping every PipelineError onto the
  tagged user-facing insight
"""

import json
import logging
import time
from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

from chainsage.agents.base import BaseAgent
from chainsage.agents.query_generator import EndpointSelectorAgent, SQLGeneratorAgent
from chainsage.agents.summarizer import SummarizerAgent
from chainsage.config import Settings
from chainsage.connectors.base import BaseQueryExecutor
from chainsage.connectors.factory import create_executor
from chainsage.connectors.normalizer import is_sampled, normalize, sample
from chainsage.connectors.polling import PollPolicy
from chainsage.gateway import ServiceGateway
from chainsage.knowledge.endpoints import load_catalog
from chainsage.llm.base import BaseLLMProvider
from chainsage.llm.factory import LLMProviderFactory
from chainsage.models.agent import PipelineError, PipelineStage, RequestValidationError
from chainsage.models.api import ProxyResponse
from chainsage.models.query import EndpointSelection, ResultSet
from chainsage.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON request body."
INVALID_QUESTION_MESSAGE = "Invalid or missing 'question' in request body."
UNANSWERABLE_MESSAGE = "I cannot answer this question with the available data."


# ============================================================================
# Pipeline State Schema
# ============================================================================


class PipelineState(TypedDict, total=False):
    """State carried through the graph for one question."""

    question: str
    stage: str
    stage_history: list[str]

    # Generator output
    generated_query: Any

    # Executor / normalizer output
    result_set: ResultSet | None
    total_rows: int
    sampled: bool

    # Final answer
    insight: str | None
    outcome: str

    # Metrics
    stage_timings: dict[str, float]
    llm_calls: int


# ============================================================================
# ChainSage Pipeline
# ============================================================================


class ChainSagePipeline:
    """
    Orchestrates the four stages for one question.

    Collaborators are injected and shared across requests; all per-request
    data lives in the graph state.

    Usage:
        pipeline = create_pipeline(settings, gateway)
        state = await pipeline.run("What is the ETH balance of 0xABC?")
        print(state["insight"])

        response = await pipeline.handle("POST", b'{"question": "..."}')
        print(response.status_code, response.body)
    """

    def __init__(
        self,
        generator: BaseAgent,
        executor: BaseQueryExecutor,
        summarizer: SummarizerAgent,
        product_tag: str = "ChainSage Error",
        max_data_length: int = 5000,
        max_sample_rows: int = 50,
        empty_result_message: str = "The query ran successfully but returned no data.",
    ):
        self.generator = generator
        self.executor = executor
        self.summarizer = summarizer
        self.product_tag = product_tag
        self.max_data_length = max_data_length
        self.max_sample_rows = max_sample_rows
        self.empty_result_message = empty_result_message

        self.graph = self._build_graph()

        logger.info(
            "ChainSagePipeline initialized",
            extra={"generator": generator.name, "executor": executor.provider_name},
        )

    def _build_graph(self):
        workflow = StateGraph(PipelineState)

        workflow.add_node("generate", self._run_generator)
        workflow.add_node("explain", self._run_explain)
        workflow.add_node("execute", self._run_executor)
        workflow.add_node("normalize", self._run_normalizer)
        workflow.add_node("report_empty", self._run_report_empty)
        workflow.add_node("summarize", self._run_summarizer)

        workflow.set_entry_point("generate")

        workflow.add_conditional_edges(
            "generate",
            self._should_execute,
            {
                "execute": "execute",
                "explain": "explain",
            },
        )
        workflow.add_edge("execute", "normalize")
        workflow.add_conditional_edges(
            "normalize",
            self._should_summarize,
            {
                "summarize": "summarize",
                "empty": "report_empty",
            },
        )
        workflow.add_edge("explain", END)
        workflow.add_edge("report_empty", END)
        workflow.add_edge("summarize", END)

        return workflow.compile()

    # ========================================================================
    # Stage Nodes
    # ========================================================================

    async def _run_generator(self, state: PipelineState) -> PipelineState:
        history = self._advance(state.get("stage_history", []), PipelineStage.GENERATING)
        result = await self.generator(question=state["question"])
        return {
            "stage": PipelineStage.GENERATING.value,
            "stage_history": history,
            "generated_query": result.value,
            "stage_timings": _timing(state, "generate", result.metadata.duration_ms),
            "llm_calls": state.get("llm_calls", 0) + result.metadata.llm_calls,
        }

    async def _run_explain(self, state: PipelineState) -> PipelineState:
        history = self._advance(state.get("stage_history", []), PipelineStage.DONE)
        selection: EndpointSelection = state["generated_query"]
        if selection.can_query and selection.missing_parameters:
            insight = (
                f"Missing parameters: {', '.join(selection.missing_parameters)}. "
                "Please include them in your question."
            )
        else:
            insight = selection.message or UNANSWERABLE_MESSAGE
        return {
            "stage": PipelineStage.DONE.value,
            "stage_history": history,
            "insight": insight,
            "outcome": "unanswerable",
        }

    async def _run_executor(self, state: PipelineState) -> PipelineState:
        history = self._advance(state.get("stage_history", []), PipelineStage.EXECUTING)
        started = time.perf_counter()
        result_set = await self.executor.execute(state["generated_query"])
        return {
            "stage": PipelineStage.EXECUTING.value,
            "stage_history": history,
            "result_set": result_set,
            "stage_timings": _timing(state, "execute", (time.perf_counter() - started) * 1000),
        }

    async def _run_normalizer(self, state: PipelineState) -> PipelineState:
        history = self._advance(state.get("stage_history", []), PipelineStage.NORMALIZING)
        started = time.perf_counter()
        result_set = normalize(state.get("result_set"))
        bounded = sample(
            result_set,
            max_serialized_length=self.max_data_length,
            max_rows=self.max_sample_rows,
        )
        return {
            "stage": PipelineStage.NORMALIZING.value,
            "stage_history": history,
            "result_set": bounded,
            "total_rows": result_set.row_count,
            "sampled": is_sampled(result_set, bounded),
            "stage_timings": _timing(state, "normalize", (time.perf_counter() - started) * 1000),
        }

    async def _run_report_empty(self, state: PipelineState) -> PipelineState:
        return {
            "stage": PipelineStage.DONE.value,
            "stage_history": self._advance(state.get("stage_history", []), PipelineStage.DONE),
            "insight": self.empty_result_message,
            "outcome": "empty",
        }

    async def _run_summarizer(self, state: PipelineState) -> PipelineState:
        history = self._advance(state.get("stage_history", []), PipelineStage.SUMMARIZING)
        result = await self.summarizer(
            question=state["question"],
            result_set=state["result_set"],
            total_rows=state.get("total_rows"),
        )
        return {
            "stage": PipelineStage.DONE.value,
            "stage_history": self._advance(history, PipelineStage.DONE),
            "insight": result.value,
            "outcome": "answered",
            "stage_timings": _timing(state, "summarize", result.metadata.duration_ms),
            "llm_calls": state.get("llm_calls", 0) + result.metadata.llm_calls,
        }

    @staticmethod
    def _advance(history: list[str], stage: PipelineStage) -> list[str]:
        logger.info(f"Pipeline stage: {stage.value}", extra={"stage": stage.value})
        return [*history, stage.value]

    # ========================================================================
    # Routing
    # ========================================================================

    def _should_execute(self, state: PipelineState) -> str:
        query = state.get("generated_query")
        if isinstance(query, EndpointSelection) and not query.is_executable:
            return "explain"
        return "execute"

    def _should_summarize(self, state: PipelineState) -> str:
        result_set = state.get("result_set")
        if result_set is None or result_set.is_empty:
            return "empty"
        return "summarize"

    # ========================================================================
    # Public API
    # ========================================================================

    async def run(self, question: str) -> PipelineState:
        """
        Run the pipeline for one question.

        Returns:
            Final pipeline state (``insight`` holds the answer)

        Raises:
            PipelineError: Any stage failure
        """
        initial_state: PipelineState = {
            "question": question,
            "stage": PipelineStage.RECEIVED.value,
            "stage_history": [PipelineStage.RECEIVED.value],
            "generated_query": None,
            "result_set": None,
            "total_rows": 0,
            "sampled": False,
            "insight": None,
            "outcome": "",
            "stage_timings": {},
            "llm_calls": 0,
        }

        logger.info(f"Starting pipeline for question: {question[:100]}")
        start_time = time.perf_counter()

        result = await self.graph.ainvoke(initial_state)

        total_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Pipeline complete in {total_time:.1f}ms ({result.get('llm_calls', 0)} LLM calls)",
            extra={
                "outcome": result.get("outcome"),
                "stage_timings": result.get("stage_timings"),
                "sampled": result.get("sampled"),
            },
        )
        return result

    async def handle(self, method: str, body: bytes | str | None) -> ProxyResponse:
        """
        Handle one inbound HTTP request end to end.

        Never raises: every outcome is encoded in the returned ProxyResponse.
        """
        if method.upper() != "POST":
            return ProxyResponse(
                status_code=405, body="Method Not Allowed", media_type="text/plain"
            )

        try:
            question = self.parse_question(body)
        except RequestValidationError as exc:
            logger.info(f"Rejected request: {exc.message}")
            return ProxyResponse(status_code=400, body={"error": exc.message})

        try:
            state = await self.run(question)
        except Exception as exc:
            if isinstance(exc, PipelineError):
                message = exc.message
                extra = {"error": exc.to_dict(), "failed_stage": exc.stage}
            else:
                message = str(exc) or type(exc).__name__
                extra = {"error_type": type(exc).__name__}
            extra["stage"] = PipelineStage.FAILED.value
            logger.error(f"Pipeline failed: {message}", extra=extra, exc_info=True)
            return ProxyResponse(
                status_code=500,
                body={"insight": f"{self.product_tag}: {message}"},
            )

        return ProxyResponse(status_code=200, body={"insight": state["insight"]})

    @staticmethod
    def parse_question(body: bytes | str | None) -> str:
        """
        Extract the question from a raw JSON request body.

        Raises:
            RequestValidationError: Body is not JSON, or has no usable question
        """
        try:
            if isinstance(body, bytes):
                body = body.decode("utf-8")
            payload = json.loads(body) if body else None
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RequestValidationError(INVALID_JSON_MESSAGE) from exc
        if payload is None:
            raise RequestValidationError(INVALID_JSON_MESSAGE)

        question = payload.get("question") if isinstance(payload, dict) else None
        if not isinstance(question, str) or not question.strip():
            raise RequestValidationError(INVALID_QUESTION_MESSAGE)
        return question.strip()


def _timing(state: PipelineState, stage: str, duration_ms: float | None) -> dict[str, float]:
    timings = dict(state.get("stage_timings") or {})
    timings[stage] = duration_ms or 0.0
    return timings


# ============================================================================
# Factory
# ============================================================================


def create_pipeline(
    settings: Settings,
    gateway: ServiceGateway,
    *,
    llm_provider: BaseLLMProvider | None = None,
    executor: BaseQueryExecutor | None = None,
    poll_policy: PollPolicy | None = None,
    prompts: PromptLoader | None = None,
) -> ChainSagePipeline:
    """
    Create a ChainSagePipeline from settings.

    Credentials are not required here; a missing key fails the first request
    that needs it.

    Args:
        settings: Frozen application settings
        gateway: Shared outbound HTTP gateway
        llm_provider: Override for the LLM provider
        executor: Override for the data provider executor
        poll_policy: Override for the job polling policy
        prompts: Override for the prompt loader
    """
    llm = llm_provider or LLMProviderFactory.create_default_provider(settings.llm, gateway)
    prompts = prompts or PromptLoader()
    executor = executor or create_executor(
        provider=settings.provider,
        polling=settings.polling,
        gateway=gateway,
        poll_policy=poll_policy,
    )

    query_config = settings.llm.query_generation_config()
    if executor.query_kind == "endpoint":
        generator: BaseAgent = EndpointSelectorAgent(
            llm,
            catalog=load_catalog(executor.provider_name),
            generation_config=query_config,
            prompts=prompts,
        )
    else:
        generator = SQLGeneratorAgent(
            llm,
            dialect=executor.provider_name,
            generation_config=query_config,
            prompts=prompts,
            sentinel=settings.pipeline.sql_sentinel,
            min_query_length=settings.pipeline.min_query_length,
        )

    summarizer = SummarizerAgent(
        llm,
        generation_config=settings.llm.summary_generation_config(),
        provider_label=executor.display_name,
        prompts=prompts,
    )

    return ChainSagePipeline(
        generator=generator,
        executor=executor,
        summarizer=summarizer,
        product_tag=settings.pipeline.product_tag,
        max_data_length=settings.pipeline.max_data_length,
        max_sample_rows=settings.pipeline.max_sample_rows,
        empty_result_message=settings.pipeline.empty_result_message,
    )
