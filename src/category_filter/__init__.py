"""Category Filter - compose test-run category filter expressions."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("category-filter")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from category_filter.catalog import DEFAULT_CATEGORIES, CategoryCatalog
from category_filter.expression import parse_expression, serialize_state
from category_filter.session import FilterSession
from category_filter.state import CategoryStateModel, build_state
from category_filter.types import CategoryState, ToggleDirection

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "DEFAULT_CATEGORIES",
    "CategoryCatalog",
    "CategoryState",
    "CategoryStateModel",
    "FilterSession",
    "ToggleDirection",
    "build_state",
    "parse_expression",
    "serialize_state",
]
