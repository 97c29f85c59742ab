"""
Book catalog API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import Depends, FastAPI
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from bookcatalog import __version__
from .schemas import HealthResponse
from .routes import books
from .middleware import (
    setup_logging,
    setup_exception_handlers,
    LoggingConfig,
)
from .dependencies import (
    get_settings,
    get_db,
    init_database,
    create_tables,
    dispose_database,
    init_services,
    close_services,
    Settings,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    The database pool and the LLM client are process-wide: created once
    here and released on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting book catalog in {settings.environment} mode")

    try:
        logger.info("Initializing database...")
        init_database(settings)
        await create_tables()

        logger.info("Initializing services...")
        app.state.services = init_services(settings)

        logger.info("Book catalog started successfully")

        yield

    finally:
        logger.info("Shutting down book catalog...")
        await close_services()
        await dispose_database()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Book Catalog",
        description="Book catalog with generated summaries.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ==========================================================================
    # Middleware
    # ==========================================================================

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
    )

    setup_exception_handlers(app)

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api/v1"

    app.include_router(
        books.router,
        prefix=api_prefix,
    )

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
        """
        Health check endpoint.

        Returns status of the database and the LLM configuration.
        """
        components = {}
        overall_healthy = True

        try:
            await db.execute(text("SELECT 1"))
            components["database"] = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            components["database"] = f"unhealthy: {str(e)}"
            overall_healthy = False

        if settings.llm_provider == "openai" and settings.openai_api_key:
            components["llm_api"] = "configured"
        else:
            components["llm_api"] = "mock"

        return HealthResponse(
            status="healthy" if overall_healthy else "degraded",
            version=__version__,
            components=components,
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bookcatalog.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        workers=1 if settings.debug else 4,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
