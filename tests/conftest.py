"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging

import httpx
import pytest

from chainsage.config import clear_settings_cache
from chainsage.connectors.polling import PollPolicy
from chainsage.gateway import ServiceGateway

CREDENTIAL_ENV_VARS = (
    "GEMINI_API",
    "LLM_GOOGLE_API_KEY",
    "FLIPSIDE_API",
    "DUNE_API",
    "COVALENT_API",
    "MOBULA_API",
    "MODULA_API",
    "PROVIDER_FLIPSIDE_API_KEY",
    "PROVIDER_DUNE_API_KEY",
    "PROVIDER_COVALENT_API_KEY",
    "PROVIDER_MOBULA_API_KEY",
    "PROVIDER_NAME",
    "DATA_PROVIDER",
)

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires API keys and network access)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """
    Ensure a clean, credential-free environment for each test.

    Settings are cached process-wide, so the cache is cleared on both sides
    of every test. ``.env`` files are never read during tests.
    """
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CHAINSAGE_ENV_SOURCE", "environment")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def disable_logging():
    """Disable logging for tests that generate excessive logs."""
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# ============================================================================
# HTTP Fakes
# ============================================================================


class RecordingTransport(httpx.AsyncBaseTransport):
    """
    httpx transport that records requests and answers from a handler.

    Usage:
        transport = RecordingTransport(lambda request: httpx.Response(200, json={}))
        gateway = ServiceGateway(transport=transport)
    """

    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.handler(request)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_gateway():
    """
    Factory for a ServiceGateway backed by a recording transport.

    Returns (gateway, transport). The transport holds no connections, so
    gateways need no explicit close.
    """

    def _make(handler):
        transport = RecordingTransport(handler)
        return ServiceGateway(timeout=5.0, transport=transport), transport

    return _make


# ============================================================================
# Polling Helpers
# ============================================================================


class FakeClock:
    """Manually advanced monotonic clock; sleeping advances it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_poll_policy(fake_clock) -> PollPolicy:
    """PollPolicy driven by the fake clock: 5s interval, 30s ceiling."""
    return PollPolicy(
        interval_seconds=5.0,
        max_wait_seconds=30.0,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


# ============================================================================
# Mock LLM Provider
# ============================================================================


@pytest.fixture
def mock_llm_provider():
    """
    Mock LLM provider for testing agents.

    Usage:
        def test_agent(mock_llm_provider):
            mock_llm_provider.set_response("test response")
            result = await agent(question="...")
    """
    from unittest.mock import AsyncMock, Mock

    from chainsage.llm.models import LLMResponse, LLMUsage

    def _response(content: str) -> LLMResponse:
        return LLMResponse(
            content=content,
            model="mock-model",
            usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
            finish_reason="stop",
            provider="mock",
            metadata={},
        )

    class MockLLMProvider:
        def __init__(self):
            self.generate = AsyncMock()
            self.count_tokens = Mock(return_value=100)

        def set_response(self, response: str):
            """Set the response that generate() will return."""
            self.generate.return_value = _response(response)

        def set_responses(self, responses: list[str]):
            """Return the given responses in order, one per call."""
            self.generate.side_effect = [_response(r) for r in responses]

        @property
        def prompts(self) -> list[str]:
            return [call.args[0].messages[0].content for call in self.generate.call_args_list]

    return MockLLMProvider()
