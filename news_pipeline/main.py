from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from contextlib import asynccontextmanager
from typing import Optional
import logging

from .api.routes import router as api_router
from .core.config import Settings, settings as default_settings
from .services.news_aggregator import NewsAggregator

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None,
               aggregator: Optional[NewsAggregator] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The aggregator is created once in the lifespan (unless one is passed
    in, as tests do) and shared by every request through ``app.state``.
    """
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic for the FastAPI app."""
        logger.info("Starting up the news pipeline...")
        app.state.aggregator = aggregator if aggregator is not None else NewsAggregator(app_settings)
        if not app_settings.has_any_news_key:
            logger.warning("No news provider keys configured; only emergency content will be served")
        try:
            yield
        finally:
            # Close the shared HTTP session to avoid unclosed aiohttp
            # client warnings.
            try:
                await app.state.aggregator.close()
            except Exception as e:
                logger.warning(f"Error closing aggregator: {e}")
            logger.info("Shutting down the news pipeline...")

    app = FastAPI(
        title="News Pipeline",
        description="Multi-source news aggregation with tiered fallback, deduplication and caching",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "message": "Service is healthy"}

    app.include_router(api_router, prefix="/api")
    return app


logging.basicConfig(level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO))

app = create_app()

# Dev entry point
if __name__ == "__main__":
    # Reference the app by module path so uvicorn imports it inside the
    # package namespace and the relative imports resolve.
    uvicorn.run(
        "news_pipeline.main:app",
        host="0.0.0.0",
        port=default_settings.PORT,
        reload=default_settings.is_development
    )
