"""crudkit API — FastAPI application factory and demo entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map unanticipated failures to 500, never misclassified
    - CORS configured from settings (not hardcoded)
    - Every CrudResource is validated while the app is built: a resource without
      a default service raises ServiceConfigurationError here, not per request

Design Decisions:
    - Lifespan over @app.on_event for logging setup
    - Module-level `app` serves a demo "notes" resource over the in-memory service
"""

import logging
from contextlib import asynccontextmanager
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crudkit import __version__
from crudkit.api.crud_router import CrudResource, build_crud_router
from crudkit.api.error_handlers import register_error_handlers
from crudkit.api.routes import health
from crudkit.config import Settings, get_settings
from crudkit.infrastructure.observability import setup_logging
from crudkit.services.memory_service import InMemoryStore, make_memory_factory

logger = logging.getLogger(__name__)


def create_app(
    resources: Iterable[CrudResource] = (), settings: Settings | None = None,
) -> FastAPI:
    """Build a FastAPI app serving `resources`."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        logger.info("crudkit API started")
        yield
        logger.info("crudkit API shutting down")

    app = FastAPI(title="crudkit API", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.state.crud_resources = []
    for resource in resources:
        app.include_router(build_crud_router(resource, settings))
        app.state.crud_resources.append(resource.name)

    register_error_handlers(app)
    return app


def demo_resources(settings: Settings | None = None) -> list[CrudResource]:
    settings = settings or get_settings()
    notes = make_memory_factory(
        InMemoryStore(), required_fields=("title",), export_dir=settings.export_dir,
    )
    return [CrudResource(name="notes", default_service=notes)]


app = create_app(demo_resources())
