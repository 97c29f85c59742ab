"""
Unit tests for the summary generator and LLM clients.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from loguru import logger

from bookcatalog.errors import SummaryFailureKind, SummaryGenerationError
from bookcatalog.summaries.generator import (
    LLMProvider,
    MockLLMClient,
    OpenAIClient,
    SummaryGenerator,
    classify_error,
    create_summary_generator,
)
from bookcatalog.summaries.prompts import PromptTemplates


COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def make_timeout_error() -> openai.APITimeoutError:
    return openai.APITimeoutError(request=httpx.Request("POST", COMPLETIONS_URL))


def make_rate_limit_error() -> openai.RateLimitError:
    response = httpx.Response(429, request=httpx.Request("POST", COMPLETIONS_URL))
    return openai.RateLimitError("Rate limit reached", response=response, body=None)


def make_completion(content, usage=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=usage,
    )


class TestSummaryGenerator:
    """Tests for SummaryGenerator."""

    @pytest.mark.asyncio
    async def test_sends_fixed_prompts_and_limits(self, summary_generator, llm_client):
        await summary_generator.generate("9780441172719", "Dune")

        call = llm_client.calls[0]
        assert call["system_prompt"] == "You are a helpful assistant that summarizes books."
        assert call["user_prompt"] == (
            "Write a concise 2-line summary of the book with the following details:"
            "\n\nTitle: Dune\nISBN: 9780441172719"
        )
        assert call["max_tokens"] == 70
        assert call["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_returns_stripped_content(self, summary_generator, llm_client):
        llm_client.content = "  Spice, sand and politics.\n"

        summary = await summary_generator.generate("9780441172719", "Dune")

        assert summary == "Spice, sand and politics."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "\n  "])
    async def test_empty_content_fails(self, summary_generator, llm_client, content):
        llm_client.content = content

        with pytest.raises(SummaryGenerationError) as exc_info:
            await summary_generator.generate("9780441172719", "Dune")

        assert exc_info.value.kind == SummaryFailureKind.EMPTY_RESPONSE

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, summary_generator, llm_client):
        cause = RuntimeError("malformed response")
        llm_client.errors.append(cause)

        with pytest.raises(SummaryGenerationError) as exc_info:
            await summary_generator.generate("9780441172719", "Dune")

        assert exc_info.value.kind == SummaryFailureKind.PROVIDER_ERROR
        assert exc_info.value.__cause__ is cause
        assert "malformed" not in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self, summary_generator, llm_client):
        llm_client.errors.append(make_timeout_error())

        with pytest.raises(SummaryGenerationError) as exc_info:
            await summary_generator.generate("9780441172719", "Dune")

        assert exc_info.value.kind == SummaryFailureKind.TIMEOUT
        assert len(llm_client.calls) == 1

    @pytest.mark.asyncio
    async def test_retryable_errors_are_retried(self, llm_client):
        generator = SummaryGenerator(llm_client=llm_client, max_retries=2, retry_backoff=0)
        llm_client.errors.extend([make_timeout_error(), make_rate_limit_error()])

        summary = await generator.generate("9780441172719", "Dune")

        assert summary == llm_client.content
        assert len(llm_client.calls) == 3

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self, llm_client):
        generator = SummaryGenerator(llm_client=llm_client, max_retries=1, retry_backoff=0)
        llm_client.errors.extend([make_rate_limit_error(), make_rate_limit_error()])

        with pytest.raises(SummaryGenerationError) as exc_info:
            await generator.generate("9780441172719", "Dune")

        assert exc_info.value.kind == SummaryFailureKind.RATE_LIMITED
        assert len(llm_client.calls) == 2

    @pytest.mark.asyncio
    async def test_terminal_errors_are_not_retried(self, llm_client):
        generator = SummaryGenerator(llm_client=llm_client, max_retries=3, retry_backoff=0)
        llm_client.errors.append(ValueError("bad payload"))

        with pytest.raises(SummaryGenerationError):
            await generator.generate("9780441172719", "Dune")

        assert len(llm_client.calls) == 1

    @pytest.mark.asyncio
    async def test_negative_retries_still_call_once(self, llm_client):
        generator = SummaryGenerator(llm_client=llm_client, max_retries=-1, retry_backoff=0)

        summary = await generator.generate("9780441172719", "Dune")

        assert generator.max_retries == 0
        assert summary == llm_client.content
        assert len(llm_client.calls) == 1

    @pytest.mark.asyncio
    async def test_negative_retries_still_raise(self, llm_client):
        generator = SummaryGenerator(llm_client=llm_client, max_retries=-1, retry_backoff=0)
        llm_client.errors.append(make_timeout_error())

        with pytest.raises(SummaryGenerationError):
            await generator.generate("9780441172719", "Dune")

        assert len(llm_client.calls) == 1

    @pytest.mark.asyncio
    async def test_close_releases_client(self, summary_generator, llm_client):
        await summary_generator.close()

        assert llm_client.closed


class TestClassifyError:
    """Tests for provider error classification."""

    def test_timeouts(self):
        assert classify_error(make_timeout_error()) == SummaryFailureKind.TIMEOUT
        assert classify_error(asyncio.TimeoutError()) == SummaryFailureKind.TIMEOUT

    def test_rate_limit(self):
        assert classify_error(make_rate_limit_error()) == SummaryFailureKind.RATE_LIMITED

    def test_everything_else(self):
        assert classify_error(ConnectionError()) == SummaryFailureKind.PROVIDER_ERROR

    def test_retryable_kinds(self):
        assert SummaryFailureKind.TIMEOUT.retryable
        assert SummaryFailureKind.RATE_LIMITED.retryable
        assert not SummaryFailureKind.PROVIDER_ERROR.retryable
        assert not SummaryFailureKind.EMPTY_RESPONSE.retryable


class TestOpenAIClient:
    """Tests for OpenAIClient with a stubbed SDK."""

    @pytest.fixture
    def openai_client(self):
        client = OpenAIClient(api_key="sk-test", model="gpt-3.5-turbo")
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock()
        client._client = sdk
        return client

    @pytest.mark.asyncio
    async def test_request_shape(self, openai_client):
        create = openai_client._client.chat.completions.create
        create.return_value = make_completion(
            "Two lines.",
            usage=SimpleNamespace(prompt_tokens=30, completion_tokens=10, total_tokens=40),
        )

        result = await openai_client.generate("system", "user", max_tokens=70, temperature=0.7)

        assert result.content == "Two lines."
        assert result.total_tokens == 40
        create.assert_awaited_once_with(
            model="gpt-3.5-turbo",
            max_tokens=70,
            temperature=0.7,
            messages=[
                {"role": "system", "content": "system"},
                {"role": "user", "content": "user"},
            ],
        )

    @pytest.mark.asyncio
    async def test_no_choices_gives_no_content(self, openai_client):
        openai_client._client.chat.completions.create.return_value = SimpleNamespace(
            choices=[], usage=None,
        )

        result = await openai_client.generate("system", "user")

        assert result.content is None

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate(self, openai_client):
        openai_client._client.chat.completions.create.side_effect = make_rate_limit_error()

        with pytest.raises(openai.RateLimitError):
            await openai_client.generate("system", "user")

    @pytest.mark.asyncio
    async def test_close(self, openai_client):
        sdk = openai_client._client
        sdk.close = AsyncMock()

        await openai_client.close()

        sdk.close.assert_awaited_once()
        assert openai_client._client is None


class TestFactory:
    """Tests for create_summary_generator and the mock client."""

    def test_falls_back_to_mock_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        generator = create_summary_generator(api_key=None)

        assert isinstance(generator.llm_client, MockLLMClient)

    def test_missing_openai_key_is_logged(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        messages = []
        sink_id = logger.add(messages.append, level="WARNING")
        try:
            create_summary_generator(provider=LLMProvider.OPENAI, api_key=None)
        finally:
            logger.remove(sink_id)

        assert any("No API key found" in str(message) for message in messages)

    def test_configured_mock_is_not_a_warning(self):
        messages = []
        sink_id = logger.add(messages.append, level="WARNING")
        try:
            generator = create_summary_generator(provider=LLMProvider.MOCK)
        finally:
            logger.remove(sink_id)

        assert isinstance(generator.llm_client, MockLLMClient)
        assert messages == []

    def test_openai_with_key(self):
        generator = create_summary_generator(
            api_key="sk-test",
            model="gpt-4o-mini",
            max_tokens=50,
            temperature=0.2,
        )

        assert isinstance(generator.llm_client, OpenAIClient)
        assert generator.llm_client.model == "gpt-4o-mini"
        assert generator.max_tokens == 50
        assert generator.temperature == 0.2

    @pytest.mark.asyncio
    async def test_mock_client_mentions_title(self):
        prompt = PromptTemplates.format_user_message(isbn="123", title="Dune")

        result = await MockLLMClient().generate(PromptTemplates.SYSTEM_PROMPT, prompt)

        assert "Dune" in result.content
