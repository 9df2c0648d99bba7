"""FastAPI application factory for the filter API."""

from __future__ import annotations

from fastapi import FastAPI

from category_filter import __version__
from category_filter.api.routes import create_routes
from category_filter.api.sessions import SessionRegistry
from category_filter.catalog import CategoryCatalog
from category_filter.config import Config


def create_app(catalog: CategoryCatalog, config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        catalog: Catalog served by the API and used to open sessions.
        config: Optional configuration for session limits. Defaults to
            ``Config()``.

    Returns:
        A configured FastAPI application. The session registry is exposed
        as ``app.state.sessions``.
    """
    config = config or Config()

    app = FastAPI(
        title="Category Filter API",
        description="Compose test-run category filter expressions",
        version=__version__,
    )

    sessions = SessionRegistry(catalog, maxsize=config.max_sessions, ttl=config.session_ttl)
    app.state.catalog = catalog
    app.state.sessions = sessions

    app.include_router(create_routes(catalog, sessions))

    return app


__all__ = ["create_app"]
