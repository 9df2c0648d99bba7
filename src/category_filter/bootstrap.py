"""Bootstrap and dependency wiring for the category filter.

This module acts as the composition root: it loads configuration, applies
CLI overrides, sets up logging and builds the storage backend and catalog
that every command works against.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any

from category_filter.catalog import CategoryCatalog
from category_filter.config import Config, load_config
from category_filter.logging import get_logger, setup_logging
from category_filter.storage import JsonFileStorage

logger = get_logger(__name__)


class BootstrapContext:
    """Container for all bootstrapped dependencies."""

    def __init__(self, config: Config, catalog: CategoryCatalog) -> None:
        """Initialize the bootstrap context.

        Args:
            config: Application configuration.
            catalog: Catalog backed by the configured storage.
        """
        self.config = config
        self.catalog = catalog


def apply_cli_overrides(config: Config, parsed: argparse.Namespace) -> Config:
    """Apply CLI argument overrides to the configuration.

    Args:
        config: Base configuration loaded from environment.
        parsed: Parsed command-line arguments.

    Returns:
        New Config instance with CLI overrides applied.
    """
    overrides: dict[str, Any] = {}

    if getattr(parsed, "log_level", None):
        overrides["log_level"] = parsed.log_level
    if getattr(parsed, "storage_path", None):
        overrides["storage_path"] = parsed.storage_path
    if getattr(parsed, "host", None):
        overrides["api_host"] = parsed.host
    if getattr(parsed, "port", None):
        overrides["api_port"] = parsed.port

    if overrides:
        return replace(config, **overrides)
    return config


def create_catalog(config: Config) -> CategoryCatalog:
    """Build the catalog on a JSON file storage at ``config.storage_path``."""
    storage = JsonFileStorage(config.storage_path, lock_timeout_seconds=config.lock_timeout)
    logger.debug("Using category storage at %s", config.storage_path)
    return CategoryCatalog(storage, key=config.storage_key)


def bootstrap(parsed: argparse.Namespace) -> BootstrapContext:
    """Bootstrap the application with all dependencies.

    Args:
        parsed: Parsed command-line arguments.

    Returns:
        BootstrapContext with configuration and catalog.
    """
    config = load_config(parsed.env_file)
    config = apply_cli_overrides(config, parsed)

    setup_logging(
        config.log_level,
        json_format=config.log_json,
        diagnostic_tags=config.diagnostic_tags,
    )

    return BootstrapContext(config=config, catalog=create_catalog(config))


__all__ = [
    "BootstrapContext",
    "apply_cli_overrides",
    "bootstrap",
    "create_catalog",
]
