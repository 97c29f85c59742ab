"""
Summary Generator

LLM integration for generating short book summaries.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import openai
from loguru import logger

from bookcatalog.errors import SummaryFailureKind, SummaryGenerationError
from bookcatalog.summaries.prompts import PromptTemplates


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    MOCK = "mock"


@dataclass
class GeneratedText:
    """Complete response from an LLM client."""

    content: Optional[str]

    # Metadata
    model: str = ""
    provider: LLMProvider = LLMProvider.OPENAI
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    # Timing
    generation_time_ms: float = 0.0


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 70,
        temperature: float = 0.7,
    ) -> GeneratedText:
        """Generate a complete response."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None


class OpenAIClient(BaseLLMClient):
    """
    OpenAI chat-completions client.

    The SDK's own retries are disabled; retry policy belongs to
    SummaryGenerator.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        timeout: float = 30.0,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Model identifier
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = None

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 70,
        temperature: float = 0.7,
    ) -> GeneratedText:
        """Generate complete response using GPT."""
        start_time = time.time()

        client = self._get_client()

        response = await client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )

        if not response.choices:
            content = None
        else:
            content = response.choices[0].message.content

        elapsed_ms = (time.time() - start_time) * 1000
        usage = response.usage

        return GeneratedText(
            content=content,
            model=self.model,
            provider=LLMProvider.OPENAI,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else 0,
            generation_time_ms=elapsed_ms,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class MockLLMClient(BaseLLMClient):
    """
    Mock client for development without API keys.
    """

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 70,
        temperature: float = 0.7,
    ) -> GeneratedText:
        """Generate a mock summary from the prompt's title line."""
        title = "this book"
        for line in user_prompt.splitlines():
            if line.startswith("Title: "):
                title = line[len("Title: "):]
                break

        content = (
            f"Summary for {title} is unavailable in offline mode.\n"
            "Configure OPENAI_API_KEY to generate real summaries."
        )

        return GeneratedText(
            content=content,
            model="mock-v1",
            provider=LLMProvider.MOCK,
            generation_time_ms=1.0,
        )


def classify_error(error: Exception) -> SummaryFailureKind:
    """Map a provider exception onto a SummaryFailureKind."""
    if isinstance(error, SummaryGenerationError):
        return error.kind
    if isinstance(error, (openai.APITimeoutError, asyncio.TimeoutError)):
        return SummaryFailureKind.TIMEOUT
    if isinstance(error, openai.RateLimitError):
        return SummaryFailureKind.RATE_LIMITED
    return SummaryFailureKind.PROVIDER_ERROR


class SummaryGenerator:
    """
    Generates book summaries.

    Every failure, including an empty completion, is reported as
    SummaryGenerationError. Timeouts and rate limits are retried with
    exponential backoff when max_retries > 0.
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        max_tokens: int = 70,
        temperature: float = 0.7,
        max_retries: int = 0,
        retry_backoff: float = 1.0,
    ):
        """
        Initialize generator.

        Args:
            llm_client: LLM client (OpenAI or mock)
            max_tokens: Output length bound
            temperature: Sampling temperature
            max_retries: Extra attempts for retryable failures (negative means none)
            retry_backoff: Base delay in seconds between attempts
        """
        self.llm_client = llm_client
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff

    async def generate(self, isbn: str, title: str) -> str:
        """
        Generate a summary for a book.

        Args:
            isbn: Book ISBN
            title: Book title

        Returns:
            Non-empty summary text

        Raises:
            SummaryGenerationError: On any provider failure or empty content
        """
        user_prompt = PromptTemplates.format_user_message(isbn=isbn, title=title)

        for attempt in range(self.max_retries + 1):
            try:
                return await self._generate_once(user_prompt)
            except Exception as e:
                kind = classify_error(e)
                logger.error(
                    f"Summary generation failed for ISBN {isbn} "
                    f"(attempt {attempt + 1}, {kind.value}): {e}"
                )

                if not kind.retryable or attempt >= self.max_retries:
                    raise SummaryGenerationError(kind) from e

                await asyncio.sleep(self.retry_backoff * 2 ** attempt)

    async def _generate_once(self, user_prompt: str) -> str:
        response = await self.llm_client.generate(
            system_prompt=PromptTemplates.SYSTEM_PROMPT,
            user_prompt=user_prompt,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        logger.debug(
            f"Summary generated by {response.model} "
            f"({response.total_tokens} tokens, {response.generation_time_ms:.0f}ms)"
        )

        content = (response.content or "").strip()
        if not content:
            raise SummaryGenerationError(SummaryFailureKind.EMPTY_RESPONSE)
        return content

    async def close(self) -> None:
        await self.llm_client.close()


def create_summary_generator(
    provider: LLMProvider = LLMProvider.OPENAI,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    timeout: float = 30.0,
    **kwargs,
) -> SummaryGenerator:
    """
    Factory function to create a SummaryGenerator.

    Args:
        provider: LLM provider
        api_key: API key (or from env)
        model: Model name (uses default if not specified)
        timeout: Request timeout in seconds
        **kwargs: Additional SummaryGenerator params
    """
    import os

    client = None

    if provider == LLMProvider.OPENAI:
        key = api_key or os.environ.get("OPENAI_API_KEY")
        if key:
            client = OpenAIClient(
                api_key=key,
                model=model or "gpt-3.5-turbo",
                timeout=timeout,
            )

    # Fallback to Mock if no client created
    if client is None:
        if provider == LLMProvider.OPENAI:
            logger.warning("No API key found for provider openai. Using MockLLMClient.")
        client = MockLLMClient()

    return SummaryGenerator(llm_client=client, **kwargs)
