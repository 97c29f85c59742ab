"""
Book catalog test suite

Tests are organized into:
- unit/: Services, repositories, summary generation, middleware helpers
- integration/: HTTP API through an in-process ASGI client
"""
