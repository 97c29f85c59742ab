"""
Book catalog service.

Async CRUD API for books and user accounts with LLM-generated summaries.
"""

__version__ = "1.0.0"
