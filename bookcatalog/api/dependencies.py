"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Database engine and sessions
- Service instances (repositories, summary generator, book service)
"""

import os
from typing import AsyncGenerator, Optional
from functools import lru_cache
from dataclasses import dataclass

from fastapi import Depends
from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./bookcatalog.db"
    database_echo: bool = False

    # LLM
    llm_provider: str = "openai"  # openai, mock
    openai_api_key: Optional[str] = None
    summary_model: str = "gpt-3.5-turbo"
    summary_temperature: float = 0.7
    summary_max_tokens: int = 70
    summary_timeout: float = 30.0

    # Retry policy for timeouts and rate limits
    summary_max_retries: int = 0
    summary_retry_backoff: float = 1.0

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            llm_provider=os.getenv("LLM_PROVIDER", cls.llm_provider),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            summary_model=os.getenv("SUMMARY_MODEL", cls.summary_model),
            summary_temperature=float(os.getenv("SUMMARY_TEMPERATURE", cls.summary_temperature)),
            summary_max_tokens=int(os.getenv("SUMMARY_MAX_TOKENS", cls.summary_max_tokens)),
            summary_timeout=float(os.getenv("SUMMARY_TIMEOUT", cls.summary_timeout)),
            summary_max_retries=int(os.getenv("SUMMARY_MAX_RETRIES", cls.summary_max_retries)),
            summary_retry_backoff=float(os.getenv("SUMMARY_RETRY_BACKOFF", cls.summary_retry_backoff)),
            environment=os.getenv("BOOKCATALOG_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Database
# =============================================================================

# Global engine and session factory (initialized in lifespan)
_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker] = None


def init_database(settings: Settings) -> None:
    """Initialize database engine and session factory."""
    global _engine, _async_session_factory

    _engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )

    _async_session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_session_factory() -> async_sessionmaker:
    """Return the process-wide session factory."""
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create database tables."""
    from ..storage.models import Base
    if _engine is None:
        raise RuntimeError("Database not initialized.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_database() -> None:
    """Close every pooled connection."""
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    One instance per process; services are built on first access and
    shared by every request.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._book_repository = None
        self._user_repository = None
        self._summary_generator = None
        self._book_service = None

    @property
    def book_repository(self):
        """Get book repository instance."""
        if self._book_repository is None:
            from ..storage.book_repository import BookRepository
            self._book_repository = BookRepository(get_session_factory())
        return self._book_repository

    @property
    def user_repository(self):
        """Get user repository instance."""
        if self._user_repository is None:
            from ..storage.user_repository import UserRepository
            self._user_repository = UserRepository(get_session_factory())
        return self._user_repository

    @property
    def summary_generator(self):
        """Get summary generator instance."""
        if self._summary_generator is None:
            from ..summaries.generator import create_summary_generator, LLMProvider

            try:
                provider = LLMProvider(self.settings.llm_provider)
            except ValueError:
                logger.warning(f"Unknown LLM provider '{self.settings.llm_provider}', using mock")
                provider = LLMProvider.MOCK

            self._summary_generator = create_summary_generator(
                provider=provider,
                api_key=self.settings.openai_api_key,
                model=self.settings.summary_model,
                timeout=self.settings.summary_timeout,
                max_tokens=self.settings.summary_max_tokens,
                temperature=self.settings.summary_temperature,
                max_retries=self.settings.summary_max_retries,
                retry_backoff=self.settings.summary_retry_backoff,
            )
        return self._summary_generator

    @property
    def book_service(self):
        """Get book service instance."""
        if self._book_service is None:
            from ..services.book_service import BookService
            self._book_service = BookService(
                book_repository=self.book_repository,
                summary_generator=self.summary_generator,
            )
        return self._book_service

    async def close(self) -> None:
        """Release the external API client."""
        if self._summary_generator is not None:
            await self._summary_generator.close()
            self._summary_generator = None
            self._book_service = None


# Global service container
_service_container: Optional[ServiceContainer] = None


def init_services(settings: Settings) -> ServiceContainer:
    """Initialize service container."""
    global _service_container
    _service_container = ServiceContainer(settings)
    return _service_container


def get_service_container() -> ServiceContainer:
    """Get service container instance."""
    if _service_container is None:
        # Auto-initialize with default settings if not explicitly initialized
        return init_services(get_settings())
    return _service_container


async def close_services() -> None:
    """Shut down the service container."""
    global _service_container
    if _service_container is not None:
        await _service_container.close()
    _service_container = None


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_book_service(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for book service."""
    return container.book_service
