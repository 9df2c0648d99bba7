"""Pydantic request/response models for the filter API endpoints.

Models are grouped by feature:

- Catalog models: CategoryCreateRequest, CatalogResponse
- Expression models: ExpressionRequest, ParseResponse, SerializeRequest,
  ExpressionResponse
- Session models: SessionOpenRequest, ToggleRequest, CategoryNameRequest,
  CategoryRowResponse, SessionResponse
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from category_filter.types import CategoryState, ToggleDirection

# NOTE: Update this list when adding new models to this module.
__all__: list[str] = [
    # Catalog models
    "CategoryCreateRequest",
    "CatalogResponse",
    # Expression models
    "ExpressionRequest",
    "ParseResponse",
    "SerializeRequest",
    "ExpressionResponse",
    # Session models
    "SessionOpenRequest",
    "ToggleRequest",
    "CategoryNameRequest",
    "CategoryRowResponse",
    "SessionResponse",
]


class CategoryCreateRequest(BaseModel):
    """Request model for adding a category to the catalog."""

    name: str


class CatalogResponse(BaseModel):
    """Response model carrying the sorted catalog."""

    categories: list[str]


class ExpressionRequest(BaseModel):
    """Request model carrying a filter expression."""

    expression: str = ""


class ParseResponse(BaseModel):
    """Response model for expression parsing.

    Only included/excluded categories appear; order follows first appearance.
    """

    categories: dict[str, CategoryState]


class SerializeRequest(BaseModel):
    """Request model for serializing explicit category states."""

    model_config = ConfigDict(extra="forbid")

    categories: dict[str, CategoryState]


class ExpressionResponse(BaseModel):
    """Response model carrying a filter expression."""

    expression: str


class SessionOpenRequest(BaseModel):
    """Request model for opening an editing session on a host expression."""

    expression: str = ""


class ToggleRequest(BaseModel):
    """Request model for toggling one category."""

    name: str
    direction: ToggleDirection


class CategoryNameRequest(BaseModel):
    """Request model naming one category."""

    name: str


class CategoryRowResponse(BaseModel):
    """One checklist row."""

    name: str
    state: CategoryState
    in_catalog: bool


class SessionResponse(BaseModel):
    """Response model describing an editing session."""

    session_id: str
    draft: str
    host_expression: str
    modified: bool
    rows: list[CategoryRowResponse]
