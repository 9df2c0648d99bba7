"""HTTP API for the category filter.

This package exposes the catalog, the expression helpers and editing
sessions as JSON endpoints, so a checklist UI can drive the engine without
embedding it.

Key components:
- create_app: FastAPI application factory
- SessionRegistry: TTL-bounded store of open editing sessions
"""

from category_filter.api.app import create_app
from category_filter.api.sessions import SessionRegistry

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "create_app",
    "SessionRegistry",
]
