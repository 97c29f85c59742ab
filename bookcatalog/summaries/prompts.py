"""
Summary Prompts

Templates for the book summary request.
"""

from dataclasses import dataclass


@dataclass
class PromptTemplates:
    """
    Collection of prompt templates for summary generation.
    """

    SYSTEM_PROMPT = "You are a helpful assistant that summarizes books."

    USER_MESSAGE_TEMPLATE = (
        "Write a concise 2-line summary of the book with the following details:"
        "\n\nTitle: {title}\nISBN: {isbn}"
    )

    @classmethod
    def format_user_message(cls, isbn: str, title: str) -> str:
        """Fill the user message with the book details."""
        return cls.USER_MESSAGE_TEMPLATE.format(title=title, isbn=isbn)
