"""Core application runner for the category filter CLI.

Each subcommand has a ``run_*`` function returning a process exit code:

- 0: success
- 1: the operation was rejected (invalid name, duplicate category, commit
  failure)
"""

from __future__ import annotations

import argparse
import sys

from category_filter.bootstrap import BootstrapContext, bootstrap
from category_filter.cli import parse_args
from category_filter.exceptions import CommitError
from category_filter.expression import parse_expression
from category_filter.logging import get_logger
from category_filter.session import FileFilterTarget, FilterSession
from category_filter.types import ToggleDirection

logger = get_logger(__name__)


def run_parse(parsed: argparse.Namespace) -> int:
    """Print ``name<TAB>state`` for every category in the expression."""
    for name, state in parse_expression(parsed.expression).items():
        print(f"{name}\t{state}")
    return 0


def run_edit(parsed: argparse.Namespace, context: BootstrapContext) -> int:
    """Open a session on the expression, apply the requested changes, print the draft.

    ``--clear-all`` runs first, then includes, excludes and clears in that order.
    """
    session = FilterSession.open(context.catalog, parsed.expression)

    if parsed.clear_all:
        session.clear_all()

    try:
        for name in parsed.include:
            session.toggle_category(name, ToggleDirection.INCLUDE)
        for name in parsed.exclude:
            session.toggle_category(name, ToggleDirection.EXCLUDE)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for name in parsed.clear:
        session.clear_category(name)

    if parsed.output is not None:
        try:
            session.commit(FileFilterTarget(parsed.output))
        except CommitError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1

    print(session.draft)
    return 0


def run_categories(parsed: argparse.Namespace, context: BootstrapContext) -> int:
    """Run a catalog subcommand (list, add, delete, restore)."""
    catalog = context.catalog
    action = parsed.catalog_action

    if action == "add":
        reason = catalog.try_add(parsed.name)
        if reason is not None:
            print(f"error: {reason}", file=sys.stderr)
            return 1
    elif action == "delete":
        catalog.delete(parsed.name)
    elif action == "restore":
        catalog.restore_defaults()

    for name in catalog.load():
        print(name)
    return 0


def run_serve(context: BootstrapContext) -> int:
    """Serve the HTTP API until interrupted."""
    import uvicorn

    from category_filter.api import create_app

    config = context.config
    app = create_app(context.catalog, config)
    logger.info("Starting filter API on %s:%s", config.api_host, config.api_port)
    uvicorn.run(
        app,
        host=config.api_host,
        port=config.api_port,
        log_level="warning",
        access_log=False,
    )
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application.
    """
    parsed = parse_args(args)

    if parsed.command == "parse":
        return run_parse(parsed)

    context = bootstrap(parsed)

    if parsed.command == "edit":
        return run_edit(parsed, context)
    if parsed.command == "categories":
        return run_categories(parsed, context)
    return run_serve(context)


__all__ = [
    "main",
    "run_categories",
    "run_edit",
    "run_parse",
    "run_serve",
]
