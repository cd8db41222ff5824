"""FastAPI application factory for the admin and chat API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..agent import BotServices
from ..config import settings
from .routes import router

logger = logging.getLogger(__name__)

# Process-wide services, created on first use
_services: Optional[BotServices] = None


def get_services() -> BotServices:
    """Return the shared services, building them from settings if needed."""
    global _services
    if _services is None:
        _services = BotServices()
    return _services


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup; close provider clients and store on exit."""
    services = get_services()
    await services.initialize()
    try:
        yield
    finally:
        logger.info("Shutting down services")
        await services.shutdown()


def create_app() -> FastAPI:
    """Build the API application."""
    app = FastAPI(
        title="aichatbot",
        description="Chat assistant back end with OpenRouter/OpenAI failover",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix="/api")

    return app
