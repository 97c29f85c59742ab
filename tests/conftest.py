"""
Pytest configuration and fixtures for the book catalog tests.
"""

from pathlib import Path
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from bookcatalog.api.main import create_app
from bookcatalog.api.dependencies import (
    Settings,
    init_database,
    create_tables,
    dispose_database,
    init_services,
    close_services,
)
from bookcatalog.services.book_service import BookService
from bookcatalog.storage.book_repository import BookRepository
from bookcatalog.storage.models import Base
from bookcatalog.storage.user_repository import UserRepository
from bookcatalog.summaries.generator import (
    BaseLLMClient,
    GeneratedText,
    LLMProvider,
    SummaryGenerator,
)


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings(db_path: Path) -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        database_echo=False,
        llm_provider="mock",
        environment="test",
        debug=True,
    )


# =============================================================================
# Fake LLM
# =============================================================================

class RecordingLLMClient(BaseLLMClient):
    """
    LLM client that records its calls.

    Set ``content`` for the text to return, or ``errors`` for exceptions
    raised by successive calls before falling back to ``content``.
    """

    def __init__(self, content: Optional[str] = "A concise two-line summary."):
        self.content = content
        self.errors: list[Exception] = []
        self.calls: list[dict] = []
        self.closed = False

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 70,
        temperature: float = 0.7,
    ) -> GeneratedText:
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.errors:
            raise self.errors.pop(0)
        return GeneratedText(content=self.content, model="recording", provider=LLMProvider.MOCK)

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Session factory bound to a fresh SQLite file per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def book_repository(session_factory) -> BookRepository:
    return BookRepository(session_factory)


@pytest.fixture
def user_repository(session_factory) -> UserRepository:
    return UserRepository(session_factory)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def llm_client() -> RecordingLLMClient:
    return RecordingLLMClient()


@pytest.fixture
def summary_generator(llm_client) -> SummaryGenerator:
    return SummaryGenerator(llm_client=llm_client, retry_backoff=0)


@pytest.fixture
def book_service(book_repository, summary_generator) -> BookService:
    return BookService(
        book_repository=book_repository,
        summary_generator=summary_generator,
    )


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def app(tmp_path):
    """
    Create FastAPI application for testing.

    ASGITransport does not run the lifespan, so the process-wide
    resources are initialized here.
    """
    settings = get_test_settings(tmp_path / "api.db")
    init_database(settings)
    await create_tables()
    init_services(settings)

    application = create_app(settings)

    yield application

    application.dependency_overrides.clear()
    await close_services()
    await dispose_database()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def sample_book_data() -> dict:
    """Sample book payload."""
    return {
        "isbn": "9780743273565",
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "publication_year": 1925,
        "language": "en",
    }


@pytest.fixture
def sample_books_batch() -> list[dict]:
    """Multiple sample books for list and aggregate tests."""
    return [
        {
            "isbn": "9780451524935",
            "title": "1984",
            "author": "George Orwell",
            "publication_year": 2001,
            "language": "en",
        },
        {
            "isbn": "9780061120084",
            "title": "To Kill a Mockingbird",
            "author": "Harper Lee",
            "publication_year": 1999,
            "language": "fr",
        },
        {
            "isbn": "9780141439518",
            "title": "Pride and Prejudice",
            "author": "Jane Austen",
            "publication_year": 2010,
            "language": "de",
        },
    ]
