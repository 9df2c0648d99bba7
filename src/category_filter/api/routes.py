"""Route handlers for the filter API.

The API is the backend a checklist UI talks to. It exposes three groups of
endpoints:

- /api/categories: the persisted catalog (list, add, delete, restore)
- /api/expression: stateless parse and serialize helpers
- /api/sessions: editing sessions driven by toggle/clear/add/delete commands

Pydantic request/response models are defined in ``category_filter.api.models``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Response

from category_filter.api.models import (
    CatalogResponse,
    CategoryCreateRequest,
    CategoryNameRequest,
    CategoryRowResponse,
    ExpressionRequest,
    ExpressionResponse,
    ParseResponse,
    SerializeRequest,
    SessionOpenRequest,
    SessionResponse,
    ToggleRequest,
)
from category_filter.expression import parse_expression, serialize_state
from category_filter.state import CategoryStateModel

if TYPE_CHECKING:
    from category_filter.api.sessions import SessionRegistry
    from category_filter.catalog import CategoryCatalog
    from category_filter.session import FilterSession

logger = logging.getLogger(__name__)


def _session_response(session: FilterSession) -> SessionResponse:
    """Build the response body describing a session."""
    return SessionResponse(
        session_id=session.session_id,
        draft=session.draft,
        host_expression=session.host_expression,
        modified=session.is_modified,
        rows=[
            CategoryRowResponse(name=row.name, state=row.state, in_catalog=row.in_catalog)
            for row in session.rows()
        ],
    )


def create_routes(catalog: CategoryCatalog, sessions: SessionRegistry) -> APIRouter:
    """Create API routes bound to a catalog and a session registry.

    Args:
        catalog: The catalog served by the /api/categories endpoints.
        sessions: Registry holding open editing sessions.

    Returns:
        An APIRouter with all filter API routes configured.
    """
    router = APIRouter()

    def _require_session(session_id: str) -> FilterSession:
        """Look up an open session.

        Raises:
            HTTPException: 404 if the session is unknown or expired.
        """
        session = sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        return session

    @router.get("/health/live")
    async def health_live() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    # Catalog

    @router.get("/api/categories", response_model=CatalogResponse)
    def list_categories() -> CatalogResponse:
        return CatalogResponse(categories=catalog.load())

    @router.post("/api/categories", response_model=CatalogResponse, status_code=201)
    def add_category(request: CategoryCreateRequest) -> CatalogResponse:
        """Add a category.

        Raises:
            HTTPException: 409 with the user-facing notice if the name is
                empty, invalid or already present.
        """
        reason = catalog.try_add(request.name)
        if reason is not None:
            raise HTTPException(status_code=409, detail=reason)
        return CatalogResponse(categories=catalog.load())

    @router.delete("/api/categories/{name}", response_model=CatalogResponse)
    def delete_category(name: str) -> CatalogResponse:
        catalog.delete(name)
        return CatalogResponse(categories=catalog.load())

    @router.post("/api/categories/restore", response_model=CatalogResponse)
    def restore_categories() -> CatalogResponse:
        catalog.restore_defaults()
        return CatalogResponse(categories=catalog.load())

    # Expression helpers

    @router.post("/api/expression/parse", response_model=ParseResponse)
    def parse(request: ExpressionRequest) -> ParseResponse:
        return ParseResponse(categories=parse_expression(request.expression))

    @router.post("/api/expression/serialize", response_model=ExpressionResponse)
    def serialize(request: SerializeRequest) -> ExpressionResponse:
        """Serialize explicit states; keys are sorted before serializing.

        Raises:
            HTTPException: 422 if a key is not a valid category name.
        """
        try:
            model = CategoryStateModel(states=request.categories)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return ExpressionResponse(expression=serialize_state(model))

    # Sessions
    #
    # Requests addressing the same session run in the threadpool concurrently,
    # so every command and the response built from it hold the session lock.

    @router.post("/api/sessions", response_model=SessionResponse, status_code=201)
    def open_session(request: SessionOpenRequest) -> SessionResponse:
        session = sessions.open(request.expression)
        with session.lock:
            return _session_response(session)

    @router.get("/api/sessions/{session_id}", response_model=SessionResponse)
    def get_session(session_id: str) -> SessionResponse:
        session = _require_session(session_id)
        with session.lock:
            return _session_response(session)

    @router.delete("/api/sessions/{session_id}", status_code=204)
    def close_session(session_id: str) -> Response:
        if not sessions.close(session_id):
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        return Response(status_code=204)

    @router.post("/api/sessions/{session_id}/toggle", response_model=SessionResponse)
    def toggle(session_id: str, request: ToggleRequest) -> SessionResponse:
        """Include or exclude one category.

        Raises:
            HTTPException: 404 for unknown sessions, 422 for invalid names.
        """
        session = _require_session(session_id)
        with session.lock:
            try:
                session.toggle_category(request.name, request.direction)
            except ValueError as e:
                logger.info("Rejected toggle in session %s: %s", session_id, e)
                raise HTTPException(status_code=422, detail=str(e)) from e
            return _session_response(session)

    @router.post("/api/sessions/{session_id}/clear", response_model=SessionResponse)
    def clear(session_id: str, request: CategoryNameRequest) -> SessionResponse:
        session = _require_session(session_id)
        with session.lock:
            session.clear_category(request.name)
            return _session_response(session)

    @router.post("/api/sessions/{session_id}/clear-all", response_model=SessionResponse)
    def clear_all(session_id: str) -> SessionResponse:
        session = _require_session(session_id)
        with session.lock:
            session.clear_all()
            return _session_response(session)

    @router.post("/api/sessions/{session_id}/categories", response_model=SessionResponse)
    def session_add_category(session_id: str, request: CategoryNameRequest) -> SessionResponse:
        """Add a category through a session.

        Raises:
            HTTPException: 404 for unknown sessions, 409 if the name is rejected.
        """
        session = _require_session(session_id)
        with session.lock:
            result = session.add_category(request.name)
            if not result.success:
                raise HTTPException(status_code=409, detail=result.message)
            return _session_response(session)

    @router.delete("/api/sessions/{session_id}/categories/{name}", response_model=SessionResponse)
    def session_delete_category(session_id: str, name: str) -> SessionResponse:
        session = _require_session(session_id)
        with session.lock:
            session.delete_category(name)
            return _session_response(session)

    @router.post("/api/sessions/{session_id}/restore", response_model=SessionResponse)
    def session_restore(session_id: str) -> SessionResponse:
        session = _require_session(session_id)
        with session.lock:
            session.restore_defaults()
            return _session_response(session)

    return router


__all__ = ["create_routes"]
