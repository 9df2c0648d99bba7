"""Command-line interface argument parsing for the category filter.

This module provides the CLI argument parser that handles:
- Global overrides (log level, .env file, storage path)
- ``parse``: show the categories referenced by an expression
- ``edit``: apply include/exclude/clear commands to an expression
- ``categories``: list, add, delete or restore catalog entries
- ``serve``: run the HTTP API
"""

from __future__ import annotations

import argparse
from pathlib import Path


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace. ``command`` names the subcommand;
        ``categories`` additionally sets ``catalog_action``.
    """
    parser = argparse.ArgumentParser(
        prog="category-filter",
        description="Compose test-run category filter expressions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides CATEGORY_FILTER_LOG_LEVEL)",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    parser.add_argument(
        "--storage-path",
        type=Path,
        default=None,
        help="Path to the JSON storage file (overrides CATEGORY_FILTER_STORAGE_PATH)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser(
        "parse", help="Show the categories an expression includes or excludes"
    )
    parse_cmd.add_argument("expression", help="Filter expression, e.g. 'Category=Smoke'")

    edit_cmd = subparsers.add_parser(
        "edit", help="Apply category changes to an expression and print the result"
    )
    edit_cmd.add_argument(
        "expression",
        nargs="?",
        default="",
        help="Current filter expression (default: empty)",
    )
    edit_cmd.add_argument(
        "--include",
        action="append",
        default=[],
        metavar="NAME",
        help="Include a category (repeatable)",
    )
    edit_cmd.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="NAME",
        help="Exclude a category (repeatable)",
    )
    edit_cmd.add_argument(
        "--clear",
        action="append",
        default=[],
        metavar="NAME",
        help="Return a category to neutral (repeatable)",
    )
    edit_cmd.add_argument(
        "--clear-all",
        action="store_true",
        help="Return every category to neutral before applying other changes",
    )
    edit_cmd.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Also write the resulting expression to this file",
    )

    catalog_cmd = subparsers.add_parser("categories", help="Manage the category catalog")
    catalog_actions = catalog_cmd.add_subparsers(dest="catalog_action", required=True)
    catalog_actions.add_parser("list", help="List known categories")
    add_cmd = catalog_actions.add_parser("add", help="Add a category")
    add_cmd.add_argument("name")
    delete_cmd = catalog_actions.add_parser("delete", help="Delete a category")
    delete_cmd.add_argument("name")
    catalog_actions.add_parser("restore", help="Restore the default categories")

    serve_cmd = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_cmd.add_argument(
        "--host",
        default=None,
        help="Host to bind (overrides CATEGORY_FILTER_API_HOST)",
    )
    serve_cmd.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (overrides CATEGORY_FILTER_API_PORT)",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
