import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rgpanel.api import health, search
from rgpanel.config import get_settings
from rgpanel.logging_config import configure_json_logging
from rgpanel.middleware.request_id import RequestIDMiddleware
from rgpanel.models.search import SearchOptions
from rgpanel.services.container import init_container
from rgpanel.services.ripgrep import RipgrepSearchService
from rgpanel.services.session import SearchSession
from rgpanel.version import get_version

settings = get_settings()

configure_json_logging(log_level=settings.log_level, use_json=settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup and shutdown."""
    logger.info("Starting rg-panel server...")

    search_service = RipgrepSearchService(
        search_root=settings.search_root,
        rg_binary=settings.rg_binary,
        timeout_seconds=settings.search_timeout_seconds,
    )
    search_session = SearchSession(
        search_service=search_service,
        initial_options=SearchOptions(context_lines=settings.default_context_lines),
    )
    init_container(search_service=search_service, search_session=search_session)

    logger.info(
        "rg-panel server ready",
        extra={"search_root": settings.search_root, "rg_binary": settings.rg_binary},
    )

    yield

    logger.info("rg-panel server shutting down")


app = FastAPI(
    title="rg-panel",
    description="Highlighted, context-windowed ripgrep results",
    version=get_version(),
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)

if settings.cors_enabled and settings.cors_allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        max_age=3600,
    )
    logger.info(f"CORS configured for origins: {settings.cors_allowed_origins}")

app.include_router(health.router)
app.include_router(search.router)


def run() -> None:
    """Serve the app with uvicorn (console entry point)."""
    import uvicorn

    uvicorn.run(
        "rgpanel.main:app",
        host=os.environ.get("RGPANEL_HOST", "127.0.0.1"),
        port=int(os.environ.get("RGPANEL_PORT", "8000")),
        log_config=None,
    )
