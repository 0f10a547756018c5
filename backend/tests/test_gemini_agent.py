"""Tests for the search-grounded Gemini agent with a fake genai client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from study_assistant.agents.gemini_agent import (
    NO_TEXT,
    SearchGroundedAgent,
    extract_retry_after,
    is_rate_limited,
    is_search_tool_failure,
)
from study_assistant.agents.prompts import DEFAULT_SYSTEM_PROMPT
from study_assistant.core.config import ProviderConfig
from study_assistant.core.errors import ProviderHTTPError, ProviderRateLimitError


CONFIG = ProviderConfig(model="gemini-2.5-flash", api_key="g-test")


class FakeAPIError(Exception):
    """Shaped like google.genai.errors.APIError."""

    def __init__(self, code, message, status=None, details=None):
        super().__init__(f"{code} {status}. {message}")
        self.code = code
        self.message = message
        self.status = status
        self.details = details


def grounded_response(text="Grounded answer"):
    metadata = SimpleNamespace(
        grounding_chunks=[
            SimpleNamespace(web=SimpleNamespace(uri="https://example.org/esg", title="ESG primer")),
            SimpleNamespace(web=None),
        ],
        web_search_queries=["esg disclosure rules"],
    )
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=metadata)])


def plain_response(text="Plain answer"):
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=None)])


def fake_client(**mock_kwargs):
    generate_content = AsyncMock(**mock_kwargs)
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))


def sent_config(client, call_index=0):
    return client.aio.models.generate_content.call_args_list[call_index].kwargs["config"]


@pytest.mark.asyncio
async def test_search_returns_grounding_metadata():
    client = fake_client(return_value=grounded_response())
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    result = await agent.generate("What are ESG disclosure rules?", "notes", use_search=True)

    assert result.text == "Grounded answer"
    chunks = result.grounding_metadata.grounding_chunks
    assert chunks[0].uri == "https://example.org/esg"
    assert chunks[0].title == "ESG primer"
    assert chunks[1].uri is None
    assert result.grounding_metadata.web_search_queries == ["esg disclosure rules"]

    config = sent_config(client)
    assert config.tools and config.tools[0].google_search is not None
    assert config.system_instruction == DEFAULT_SYSTEM_PROMPT


@pytest.mark.asyncio
async def test_without_search_no_tools_and_no_grounding():
    client = fake_client(return_value=grounded_response())
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    result = await agent.generate("Q", "", use_search=False, system_prompt="Be brief.")

    assert result.grounding_metadata is None
    config = sent_config(client)
    assert not config.tools
    assert config.system_instruction == "Be brief."

    call = client.aio.models.generate_content.call_args
    assert call.kwargs["model"] == "gemini-2.5-flash"
    assert "User question:\nQ" in call.kwargs["contents"]


@pytest.mark.asyncio
async def test_search_failure_retries_once_without_search():
    client = fake_client(side_effect=[FakeAPIError(400, "Search tool unavailable"), plain_response("Fallback")])
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    result = await agent.generate("Q", "", use_search=True)

    assert result.text == "Fallback"
    assert result.grounding_metadata is None
    assert client.aio.models.generate_content.await_count == 2
    assert sent_config(client, 0).tools
    assert not sent_config(client, 1).tools


@pytest.mark.asyncio
async def test_retry_failure_propagates():
    client = fake_client(side_effect=[FakeAPIError(400, "no search"), FakeAPIError(500, "backend down")])
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    with pytest.raises(ProviderHTTPError) as exc_info:
        await agent.generate("Q", "", use_search=True)

    assert exc_info.value.status_code == 500
    assert client.aio.models.generate_content.await_count == 2


@pytest.mark.asyncio
async def test_non_search_failure_not_retried():
    client = fake_client(side_effect=FakeAPIError(500, "backend down"))
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    with pytest.raises(ProviderHTTPError):
        await agent.generate("Q", "", use_search=False)

    assert client.aio.models.generate_content.await_count == 1


@pytest.mark.asyncio
async def test_rate_limit_with_retry_delay_not_retried():
    error = FakeAPIError(
        429,
        "You exceeded your current quota",
        status="RESOURCE_EXHAUSTED",
        details={"error": {"details": [
            {"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "37s"},
        ]}},
    )
    client = fake_client(side_effect=error)
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    with pytest.raises(ProviderRateLimitError) as exc_info:
        await agent.generate("Q", "", use_search=True)

    assert exc_info.value.retry_after == 37.0
    assert "37" in exc_info.value.user_hint()
    assert client.aio.models.generate_content.await_count == 1


@pytest.mark.asyncio
async def test_empty_text_falls_back():
    client = fake_client(return_value=SimpleNamespace(text=None, candidates=[]))
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    result = await agent.generate("Q", "")

    assert result.text == NO_TEXT


def test_rate_limit_detection():
    assert is_rate_limited(FakeAPIError(429, "slow"))
    assert is_rate_limited(FakeAPIError(400, "x", status="RESOURCE_EXHAUSTED"))
    assert is_rate_limited(RuntimeError("Quota exceeded for project"))
    assert not is_rate_limited(FakeAPIError(500, "internal"))


def test_retry_after_from_message():
    assert extract_retry_after(RuntimeError("Please retry in 21.5s.")) == 21.5
    assert extract_retry_after(RuntimeError("no hint here")) is None


def test_model_alias_and_default():
    client = fake_client(return_value=plain_response())
    assert SearchGroundedAgent("gemini", ProviderConfig(model="Gemini Pro", api_key="k"), client=client).model == "gemini-2.5-pro"
    assert SearchGroundedAgent("gemini", ProviderConfig(model="", api_key="k"), client=client).model == "gemini-2.5-flash"


@pytest.mark.asyncio
@pytest.mark.parametrize("error,expected", [
    (FakeAPIError(401, "API key not valid", status="UNAUTHENTICATED"), ProviderHTTPError),
    (FakeAPIError(503, "The model is overloaded", status="UNAVAILABLE"), ProviderHTTPError),
    (FakeAPIError(400, "Invalid model name", status="INVALID_ARGUMENT"), ProviderHTTPError),
    (httpx.ConnectError("connection refused"), httpx.ConnectError),
])
async def test_unrelated_failures_not_retried_without_search(error, expected):
    client = fake_client(side_effect=error)
    agent = SearchGroundedAgent("gemini", CONFIG, client=client)

    with pytest.raises(expected):
        await agent.generate("Q", "", use_search=True)

    assert client.aio.models.generate_content.await_count == 1


def test_search_tool_failure_detection():
    assert is_search_tool_failure(FakeAPIError(400, "google_search tool is not supported for this model"))
    assert is_search_tool_failure(FakeAPIError(400, "Grounding is unavailable"))
    assert not is_search_tool_failure(FakeAPIError(500, "search backend error"))
    assert not is_search_tool_failure(RuntimeError("search failed"))
