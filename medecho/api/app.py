"""FastAPI application for MedEcho."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medecho import __version__
from medecho.api.middleware import RequestLoggingMiddleware
from medecho.api.routes import appointments, assistant, auth, health, notifications, providers, reports
from medecho.config import get_settings
from medecho.scheduling import ProviderLocks

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Per-process state: tables, the LLM router, and booking locks."""

    from medecho.core.database import init_db
    from medecho.llm import create_router_from_settings

    await init_db()

    app.state.llm_router = create_router_from_settings()
    app.state.provider_locks = ProviderLocks()

    logger.info("MedEcho API ready (LLM primary: %s)", app.state.llm_router.active_provider)

    yield

    logger.info("MedEcho API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="MedEcho API",
        description="Clinical scheduling and AI symptom intake",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, tags=["health"])
    for module in (auth, providers, appointments, reports, assistant, notifications):
        tag = module.__name__.rsplit(".", 1)[-1]
        app.include_router(module.router, prefix=API_PREFIX, tags=[tag])

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.debug_mode else None,
            },
        )

    return app
