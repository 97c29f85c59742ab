"""
Summary Module for the book catalog

Short book summaries from an external text-generation API:
- LLM clients (OpenAI, offline mock)
- Failure classification and bounded retry
- Prompt templates
"""

from bookcatalog.summaries.generator import (
    LLMProvider,
    GeneratedText,
    BaseLLMClient,
    OpenAIClient,
    MockLLMClient,
    SummaryGenerator,
    classify_error,
    create_summary_generator,
)
from bookcatalog.summaries.prompts import PromptTemplates

__all__ = [
    # Clients
    "LLMProvider",
    "GeneratedText",
    "BaseLLMClient",
    "OpenAIClient",
    "MockLLMClient",
    # Generator
    "SummaryGenerator",
    "classify_error",
    "create_summary_generator",
    # Prompts
    "PromptTemplates",
]
