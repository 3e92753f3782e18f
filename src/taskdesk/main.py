"""FastAPI application factory.

App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (tables, admin seeding,
engine disposal). Middleware, CORS, exception handlers and routers are
all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskdesk import __version__
from taskdesk.api import api_router
from taskdesk.config import settings
from taskdesk.errors import register_exception_handlers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    from taskdesk.bootstrap import create_tables, seed_admin
    from taskdesk.db.engine import async_session_factory, engine

    logger.info(
        "taskdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.auto_create_tables:
        await create_tables(engine)
        logger.info("taskdesk.tables_created")

    async with async_session_factory() as session:
        await seed_admin(session)

    yield

    logger.info("taskdesk.shutdown")
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="TaskDesk",
        description="Role-based task management API",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → Security → handler

    from taskdesk.middleware.request_id import RequestIdMiddleware
    from taskdesk.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/", include_in_schema=False)
    async def welcome():
        return {
            "message": "Welcome to TaskDesk",
            "version": __version__,
            "docs": "/docs",
        }

    app.include_router(api_router)
    return app


# Default app instance (used by uvicorn: taskdesk.main:app)
app = create_app()
