"""FastAPI application entry point for TrialQuote."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trialquote import __version__
from trialquote.api.cases import router as cases_router
from trialquote.api.health import router as health_router
from trialquote.api.routes import router
from trialquote.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()

    # Startup: ensure the case store directory exists
    settings.storage_path.mkdir(parents=True, exist_ok=True)
    if not settings.has_llm_key:
        logger.warning("No LLM API key configured, protocol analysis uses heuristics only")

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="TrialQuote",
        description="Clinical trial liability insurance intake, quotation and underwriting",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware (dev only)
    if settings.is_dev:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Include routes
    app.include_router(health_router)
    app.include_router(router, prefix="/api/v1")
    app.include_router(cases_router, prefix="/api/v1", tags=["cases"])

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "trialquote.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_dev,
    )
